"""
Class and subclass catalog.

Read-only source of class definitions consulted by the Multiclass and
Upgraded Subclass Card advancement options.

Source: Daggerheart SRD, Classes
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional
import logging

from src.leveling.models import UPGRADE_FEATURE_TIERS, ClassPair, MulticlassChoice, SubclassUpgrade
from src.leveling.tiers import Tier

logger = logging.getLogger(__name__)


class FeatureType(str, Enum):
    """Subclass card types, in unlock order."""
    FOUNDATION = "foundation"           # Held from character creation
    SPECIALIZATION = "specialization"
    MASTERY = "mastery"


# Earliest tier in which each card type can be taken
FEATURE_TIERS: dict[FeatureType, Tier] = {
    FeatureType.FOUNDATION: Tier.TIER_1,
    FeatureType.SPECIALIZATION: UPGRADE_FEATURE_TIERS["specialization"],
    FeatureType.MASTERY: UPGRADE_FEATURE_TIERS["mastery"],
}


@dataclass(frozen=True)
class SubclassFeature:
    """One feature printed on a subclass card."""
    name: str
    feature_type: FeatureType
    description: str = ""

    @property
    def tier(self) -> Tier:
        return FEATURE_TIERS[self.feature_type]


@dataclass(frozen=True)
class SubclassDefinition:
    """A subclass and its foundation, specialization and mastery features."""
    name: str
    features: tuple[SubclassFeature, ...] = ()
    spellcast_trait: Optional[str] = None

    def features_of_type(self, feature_type: FeatureType) -> list[SubclassFeature]:
        return [f for f in self.features if f.feature_type == feature_type]


@dataclass(frozen=True)
class ClassDefinition:
    """A class, its two domains and its subclasses."""
    name: str
    domains: tuple[str, ...] = ()
    subclasses: tuple[SubclassDefinition, ...] = ()

    def get_subclass(self, name: str) -> Optional[SubclassDefinition]:
        for subclass in self.subclasses:
            if subclass.name.lower() == name.lower():
                return subclass
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClassDefinition":
        subclasses = []
        for sub in data.get("subclasses", []):
            features = tuple(
                SubclassFeature(
                    name=f["name"],
                    feature_type=FeatureType(f.get("feature_type", f.get("type", "foundation"))),
                    description=f.get("description", ""),
                )
                for f in sub.get("features", [])
            )
            subclasses.append(
                SubclassDefinition(
                    name=sub["name"],
                    features=features,
                    spellcast_trait=sub.get("spellcast_trait", sub.get("spellcastTrait")),
                )
            )
        return cls(
            name=data["name"],
            domains=tuple(data.get("domains", [])),
            subclasses=tuple(subclasses),
        )


class ClassCatalog:
    """Registry of class definitions, keyed case-insensitively by name."""

    def __init__(self, classes: Iterable[ClassDefinition] = ()):
        self._classes: dict[str, ClassDefinition] = {}
        for class_def in classes:
            self.register(class_def)

    def __len__(self) -> int:
        return len(self._classes)

    def register(self, class_def: ClassDefinition) -> None:
        """Register a class definition."""
        self._classes[class_def.name.lower()] = class_def

    def get(self, name: str) -> Optional[ClassDefinition]:
        """Get a class definition by name."""
        return self._classes.get(name.lower())

    def get_all(self) -> list[ClassDefinition]:
        return list(self._classes.values())

    def get_subclass(self, pair: ClassPair) -> Optional[SubclassDefinition]:
        class_def = self.get(pair.class_name)
        if class_def is None:
            return None
        return class_def.get_subclass(pair.subclass_name)

    def multiclass_targets(self, class_pairs: Iterable[ClassPair]) -> list[ClassDefinition]:
        """Get the classes a character does not already have."""
        held = {pair.class_name.lower() for pair in class_pairs}
        return [c for c in self._classes.values() if c.name.lower() not in held]

    def multiclass_choices(self, class_pairs: Iterable[ClassPair]) -> list[MulticlassChoice]:
        """Every class/subclass combination available through Multiclass."""
        return [
            MulticlassChoice(
                class_name=class_def.name,
                subclass_name=subclass.name,
                domains=class_def.domains,
            )
            for class_def in self.multiclass_targets(class_pairs)
            for subclass in class_def.subclasses
        ]

    def next_subclass_feature(
        self,
        pair: ClassPair,
        unlocked: Iterable[str],
        target_tier: Tier,
    ) -> Optional[SubclassUpgrade]:
        """
        Get the next locked subclass feature a character can take.

        Specialization features come before mastery features, and a mastery
        feature is only offered once every specialization feature of the
        subclass is unlocked. Features whose card belongs to a later tier than
        target_tier are not offered.

        Args:
            pair: The class/subclass pair to upgrade
            unlocked: Feature names already unlocked for this pair
            target_tier: Tier the character is levelling into

        Returns:
            The upgrade, or None if the subclass is unknown or fully unlocked
        """
        subclass = self.get_subclass(pair)
        if subclass is None:
            logger.warning(f"Unknown subclass for upgrade: {pair.key}")
            return None

        unlocked_names = {name.lower() for name in unlocked}
        target_tier = Tier.parse(target_tier)
        for feature_type in (FeatureType.SPECIALIZATION, FeatureType.MASTERY):
            locked = [
                f for f in subclass.features_of_type(feature_type)
                if f.name.lower() not in unlocked_names
            ]
            if not locked:
                continue
            feature = locked[0]
            if feature.tier.number > target_tier.number:
                return None
            return SubclassUpgrade(
                class_name=pair.class_name,
                subclass_name=pair.subclass_name,
                feature_name=feature.name,
                feature_type=feature.feature_type.value,
            )
        return None

    def subclass_upgrade_choices(
        self,
        class_pairs: Iterable[ClassPair],
        unlocked_features: dict[str, tuple[str, ...]],
        target_tier: Tier,
    ) -> list[SubclassUpgrade]:
        """Next feature for each of the character's class/subclass pairs."""
        choices = []
        for pair in class_pairs:
            upgrade = self.next_subclass_feature(
                pair, unlocked_features.get(pair.key, ()), target_tier
            )
            if upgrade is not None:
                choices.append(upgrade)
        return choices
