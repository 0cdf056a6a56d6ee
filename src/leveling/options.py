"""
Advancement option catalog.

Static, declarative table of every option a character may spend advancement
points on when levelling up: cost, per-tier cap, required supplementary
input, offering tiers and mutual exclusions. The catalog is never mutated at
runtime.

Source: Daggerheart SRD, Leveling Up (advancement options per tier)
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional
import logging

from src.leveling.errors import UnknownOptionError
from src.leveling.models import ClassPair
from src.leveling.sub_resolution import SubResolutionKind
from src.leveling.tiers import Tier

logger = logging.getLogger(__name__)


UPPER_TIERS: frozenset[Tier] = frozenset({Tier.TIER_2, Tier.TIER_3, Tier.TIER_4})
LATE_TIERS: frozenset[Tier] = frozenset({Tier.TIER_3, Tier.TIER_4})


@dataclass(frozen=True)
class AdvancementOption:
    """
    One advancement option from the level-up sheet.

    exclusive_with is symmetric once the catalog is built: if A lists B, B
    lists A.
    """
    option_id: str
    label: str
    description: str
    cost: int                                   # 1 or 2 advancement points
    max_per_tier: int                           # Times selectable within one tier
    tiers: frozenset[Tier] = UPPER_TIERS
    sub_resolution: Optional[SubResolutionKind] = None
    exclusive_with: frozenset[str] = frozenset()
    available_to: frozenset[str] = frozenset()  # Class/subclass names; empty = all

    def __post_init__(self):
        if self.cost not in (1, 2):
            raise ValueError(f"Option '{self.option_id}' cost must be 1 or 2, got {self.cost}")
        if self.max_per_tier < 1:
            raise ValueError(f"Option '{self.option_id}' max_per_tier must be positive")

    @property
    def requires_sub_resolution(self) -> bool:
        return self.sub_resolution is not None

    def is_offered_in(self, tier: Tier) -> bool:
        return tier in self.tiers

    def is_available_to(self, class_pairs: Optional[Iterable[ClassPair]]) -> bool:
        """Check class/subclass gating. Ungated options are available to everyone."""
        if not self.available_to:
            return True
        names = set()
        for pair in class_pairs or ():
            names.add(pair.class_name.lower())
            names.add(pair.subclass_name.lower())
        return any(name.lower() in names for name in self.available_to)


# =============================================================================
# OPTION TABLE
# =============================================================================


# Exclusions are declared on one side only; build_catalog adds the reverse edge.
LEVEL_UP_OPTIONS: tuple[AdvancementOption, ...] = (
    AdvancementOption(
        option_id="traits",
        label="Boost Two Traits",
        description="Gain a +1 bonus to two unmarked character traits and mark them.",
        cost=1,
        max_per_tier=3,
        sub_resolution=SubResolutionKind.TRAITS,
    ),
    AdvancementOption(
        option_id="hp",
        label="Gain Hit Point Slot",
        description="Permanently gain one Hit Point slot.",
        cost=1,
        max_per_tier=2,
    ),
    AdvancementOption(
        option_id="stress",
        label="Gain Stress Slot",
        description="Permanently gain one Stress slot.",
        cost=1,
        max_per_tier=2,
    ),
    AdvancementOption(
        option_id="experiences",
        label="Boost Two Experiences",
        description="Permanently gain a +1 bonus to two Experiences.",
        cost=1,
        max_per_tier=1,
        sub_resolution=SubResolutionKind.EXPERIENCES,
    ),
    AdvancementOption(
        option_id="domain-card",
        label="Domain Card",
        description=(
            "Choose an additional domain card of your level or lower "
            "from a domain you have access to."
        ),
        cost=1,
        max_per_tier=1,
        sub_resolution=SubResolutionKind.DOMAIN_CARD,
    ),
    AdvancementOption(
        option_id="evasion",
        label="Boost Evasion",
        description="Permanently gain a +1 bonus to your Evasion.",
        cost=1,
        max_per_tier=1,
    ),
    AdvancementOption(
        option_id="proficiency",
        label="Boost Proficiency",
        description="Increase your Proficiency by +1. This costs 2 advancement slots.",
        cost=2,
        max_per_tier=1,
        tiers=LATE_TIERS,
    ),
    AdvancementOption(
        option_id="subclass",
        label="Upgraded Subclass Card",
        description=(
            "Take the next subclass card (specialization or mastery). "
            "This locks out multiclass for this tier."
        ),
        cost=1,
        max_per_tier=1,
        tiers=LATE_TIERS,
        sub_resolution=SubResolutionKind.SUBCLASS,
        exclusive_with=frozenset({"multiclass"}),
    ),
    AdvancementOption(
        option_id="multiclass",
        label="Multiclass",
        description=(
            "Choose an additional class for your character, then cross out an "
            "unused Upgraded Subclass Card option for this tier."
        ),
        cost=2,
        max_per_tier=1,
        tiers=LATE_TIERS,
        sub_resolution=SubResolutionKind.MULTICLASS,
    ),
    AdvancementOption(
        option_id="companion-training",
        label="Companion Training",
        description="Your companion gains one level of training.",
        cost=1,
        max_per_tier=1,
        sub_resolution=SubResolutionKind.COMPANION_TRAINING,
        available_to=frozenset({"Beastbound"}),
    ),
)


def build_catalog(
    options: Iterable[AdvancementOption],
) -> dict[str, AdvancementOption]:
    """
    Index options by id and make every exclusion symmetric.

    Raises:
        ValueError: On duplicate ids or exclusions naming unknown options
    """
    by_id: dict[str, AdvancementOption] = {}
    for option in options:
        if option.option_id in by_id:
            raise ValueError(f"Duplicate advancement option id: '{option.option_id}'")
        by_id[option.option_id] = option

    reverse: dict[str, set[str]] = {option_id: set() for option_id in by_id}
    for option in by_id.values():
        for other_id in option.exclusive_with:
            if other_id not in by_id:
                raise ValueError(
                    f"Option '{option.option_id}' excludes unknown option '{other_id}'"
                )
            if other_id == option.option_id:
                raise ValueError(f"Option '{option.option_id}' cannot exclude itself")
            reverse[other_id].add(option.option_id)

    return {
        option_id: (
            replace(option, exclusive_with=option.exclusive_with | reverse[option_id])
            if reverse[option_id] - option.exclusive_with
            else option
        )
        for option_id, option in by_id.items()
    }


_CATALOG: dict[str, AdvancementOption] = build_catalog(LEVEL_UP_OPTIONS)


def get_catalog() -> dict[str, AdvancementOption]:
    """Get the built catalog (a copy; the table itself is read-only)."""
    return dict(_CATALOG)


def get_option(option_id: str) -> AdvancementOption:
    """
    Get an option by id.

    Raises:
        UnknownOptionError: If the id is not in the catalog
    """
    option = _CATALOG.get(option_id)
    if option is None:
        raise UnknownOptionError(option_id)
    return option


def options_for_tier(
    tier: Tier,
    class_pairs: Optional[Iterable[ClassPair]] = None,
) -> list[AdvancementOption]:
    """
    Get the options offered in a tier, in catalog order.

    Args:
        tier: The target tier of the level-up
        class_pairs: The character's class/subclass pairs, for class-gated options

    Returns:
        Options whose tier set includes tier and whose class gate passes
    """
    tier = Tier.parse(tier)
    pairs = tuple(class_pairs or ())
    return [
        option
        for option in _CATALOG.values()
        if option.is_offered_in(tier) and option.is_available_to(pairs)
    ]
