"""
Read-only content catalogs consulted during a level-up.

- DomainCardCatalog: cards available for the free card and the Domain Card option
- ClassCatalog: classes and subclass features for Multiclass and subclass upgrades
"""

from src.catalog.class_catalog import (
    ClassCatalog,
    ClassDefinition,
    FeatureType,
    SubclassDefinition,
    SubclassFeature,
)
from src.catalog.catalog_loader import (
    LoadResult,
    load_catalogs,
    load_classes,
    load_domain_cards,
)
from src.catalog.domain_cards import CardType, DomainCard, DomainCardCatalog
from src.catalog.srd_sample import default_catalogs

__all__ = [
    # Data structures
    "CardType",
    "ClassDefinition",
    "DomainCard",
    "FeatureType",
    "SubclassDefinition",
    "SubclassFeature",
    # Catalogs
    "ClassCatalog",
    "DomainCardCatalog",
    "default_catalogs",
    # Loading
    "LoadResult",
    "load_catalogs",
    "load_classes",
    "load_domain_cards",
]
