"""
Built-in SRD sample content.

A small slice of the Daggerheart SRD so the engine and the command-line
driver work without content files. Full content is loaded from JSON with
src.catalog.catalog_loader.

Source: Daggerheart SRD
"""

from src.catalog.class_catalog import (
    ClassCatalog,
    ClassDefinition,
    FeatureType,
    SubclassDefinition,
    SubclassFeature,
)
from src.catalog.domain_cards import CardType, DomainCard, DomainCardCatalog

A = CardType.ABILITY
S = CardType.SPELL
G = CardType.GRIMOIRE

F = FeatureType.FOUNDATION
SP = FeatureType.SPECIALIZATION
M = FeatureType.MASTERY


# =============================================================================
# DOMAIN CARDS
# =============================================================================


SAMPLE_DOMAIN_CARDS: tuple[DomainCard, ...] = (
    # Arcana
    DomainCard("Rune Ward", "Arcana", 1, S, 0),
    DomainCard("Unleash Chaos", "Arcana", 1, S, 1),
    DomainCard("Wall Walk", "Arcana", 1, S, 1),
    DomainCard("Cinder Grasp", "Arcana", 2, S, 1),
    DomainCard("Floating Eye", "Arcana", 2, S, 0),
    DomainCard("Counterspell", "Arcana", 3, S, 2),
    # Bone
    DomainCard("Deft Maneuvers", "Bone", 1, A, 0),
    DomainCard("I See It Coming", "Bone", 1, A, 1),
    DomainCard("Untouchable", "Bone", 1, A, 1),
    DomainCard("Ferocity", "Bone", 2, A, 2),
    DomainCard("Strategic Approach", "Bone", 2, A, 1),
    DomainCard("Brace", "Bone", 3, A, 1),
    # Codex
    DomainCard("Book of Ava", "Codex", 1, G, 2),
    DomainCard("Book of Illiat", "Codex", 1, G, 2),
    DomainCard("Book of Tyfar", "Codex", 1, G, 2),
    DomainCard("Book of Sitil", "Codex", 2, G, 2),
    DomainCard("Book of Vagras", "Codex", 2, G, 2),
    DomainCard("Book of Korvax", "Codex", 3, G, 2),
    # Grace
    DomainCard("Deft Deceiver", "Grace", 1, A, 1),
    DomainCard("Enrapture", "Grace", 1, S, 1),
    DomainCard("Inspirational Words", "Grace", 1, A, 0),
    DomainCard("Tell No Lies", "Grace", 2, A, 1),
    DomainCard("Troublemaker", "Grace", 2, A, 1),
    DomainCard("Hypnotic Shimmer", "Grace", 3, S, 1),
    # Midnight
    DomainCard("Pick and Pull", "Midnight", 1, A, 0),
    DomainCard("Rain of Blades", "Midnight", 1, S, 1),
    DomainCard("Uncanny Disguise", "Midnight", 1, S, 0),
    DomainCard("Midnight Spirit", "Midnight", 2, S, 1),
    DomainCard("Shadowbind", "Midnight", 2, S, 0),
    DomainCard("Chokehold", "Midnight", 3, A, 1),
    # Sage
    DomainCard("Gifted Tracker", "Sage", 1, A, 0),
    DomainCard("Nature's Tongue", "Sage", 1, A, 0),
    DomainCard("Vicious Entangle", "Sage", 1, S, 1),
    DomainCard("Conjure Swarm", "Sage", 2, S, 1),
    DomainCard("Natural Familiar", "Sage", 2, S, 1),
    DomainCard("Corrosive Projectile", "Sage", 3, S, 1),
)


# =============================================================================
# CLASSES
# =============================================================================


def _subclass(name: str, trait, *features: tuple[str, FeatureType]) -> SubclassDefinition:
    return SubclassDefinition(
        name=name,
        spellcast_trait=trait,
        features=tuple(SubclassFeature(n, t) for n, t in features),
    )


SAMPLE_CLASSES: tuple[ClassDefinition, ...] = (
    ClassDefinition(
        "Ranger",
        ("Bone", "Sage"),
        (
            _subclass(
                "Beastbound", "Agility",
                ("Companion", F),
                ("Expert Training", SP), ("Battle-Bonded", SP),
                ("Advanced Training", M), ("Loyal Friend", M),
            ),
            _subclass(
                "Wayfinder", "Agility",
                ("Ruthless Predator", F), ("Path Forward", F),
                ("Elusive Predator", SP),
                ("Apex Predator", M),
            ),
        ),
    ),
    ClassDefinition(
        "Guardian",
        ("Valor", "Blade"),
        (
            _subclass(
                "Stalwart", None,
                ("Unwavering", F), ("Iron Will", F),
                ("Unrelenting", SP), ("Partners-in-Arms", SP),
                ("Undaunted", M), ("Loyal Protector", M),
            ),
            _subclass(
                "Vengeance", None,
                ("At Ease", F), ("Revenge", F),
                ("Act of Reprisal", SP),
                ("Nemesis", M),
            ),
        ),
    ),
    ClassDefinition(
        "Wizard",
        ("Codex", "Splendor"),
        (
            _subclass(
                "School of Knowledge", "Knowledge",
                ("Prepared", F), ("Adept", F),
                ("Accomplished", SP), ("Perfect Recall", SP),
                ("Brilliant", M), ("Honed Expertise", M),
            ),
            _subclass(
                "School of War", "Knowledge",
                ("Battlemage", F), ("Face Your Fear", F),
                ("Conjure Shield", SP), ("Fueled by Fear", SP),
                ("Thrive in Chaos", M), ("Have No Fear", M),
            ),
        ),
    ),
    ClassDefinition(
        "Rogue",
        ("Midnight", "Grace"),
        (
            _subclass(
                "Nightwalker", "Finesse",
                ("Shadow Stepper", F),
                ("Dark Cloud", SP), ("Adrenaline", SP),
                ("Fleeting Shadow", M), ("Vanishing Act", M),
            ),
            _subclass(
                "Syndicate", "Finesse",
                ("Well-Connected", F),
                ("Contacts Everywhere", SP),
                ("Reliable Backup", M),
            ),
        ),
    ),
)


def default_catalogs() -> tuple[DomainCardCatalog, ClassCatalog]:
    """Build fresh catalogs from the built-in sample content."""
    return DomainCardCatalog(SAMPLE_DOMAIN_CARDS), ClassCatalog(SAMPLE_CLASSES)
