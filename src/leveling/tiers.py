"""
Tier resolution for Daggerheart level advancement.

Levels are grouped into four tiers. Per-tier selection caps only ever apply
within a single tier band, so the tier of the target level decides both
which advancement options are offered and whether carried history still
counts.
"""

from enum import Enum
from typing import Optional
import logging

from src.config import MAX_LEVEL, MIN_LEVEL

logger = logging.getLogger(__name__)


class Tier(str, Enum):
    """Tier bands by character level."""
    TIER_1 = "1"        # Level 1
    TIER_2 = "2-4"      # Levels 2-4
    TIER_3 = "5-7"      # Levels 5-7
    TIER_4 = "8-10"     # Levels 8-10

    @property
    def number(self) -> int:
        """Tier number (1-4) for display."""
        return _TIER_NUMBERS[self]

    @property
    def min_level(self) -> int:
        """First level of the tier band."""
        return int(self.value.split("-")[0])

    @property
    def max_level(self) -> int:
        """Last level of the tier band."""
        return int(self.value.split("-")[-1])

    @classmethod
    def parse(cls, value: "str | int | Tier") -> "Tier":
        """
        Parse a tier from its band string ("2-4"), tier number (2) or enum.

        Raises:
            ValueError: If the value is not a known tier
        """
        if isinstance(value, Tier):
            return value
        if isinstance(value, int):
            for tier, number in _TIER_NUMBERS.items():
                if number == value:
                    return tier
            raise ValueError(f"Unknown tier number: {value}")
        return cls(str(value))


_TIER_NUMBERS: dict[Tier, int] = {
    Tier.TIER_1: 1,
    Tier.TIER_2: 2,
    Tier.TIER_3: 3,
    Tier.TIER_4: 4,
}


def resolve_tier(level: int) -> Tier:
    """
    Get the tier band for a character level.

    Args:
        level: Character level (1-10)

    Returns:
        The tier containing the level

    Raises:
        ValueError: If the level is outside the supported range
    """
    if level < MIN_LEVEL or level > MAX_LEVEL:
        raise ValueError(
            f"Level {level} is outside the supported range {MIN_LEVEL}-{MAX_LEVEL}"
        )
    for tier in Tier:
        if tier.min_level <= level <= tier.max_level:
            return tier
    # Unreachable: tier bands cover the whole range
    raise ValueError(f"No tier covers level {level}")


def did_cross_tier(old_tier: Tier, new_tier: Tier) -> bool:
    """Check whether advancing moved the character into a different tier."""
    return Tier.parse(old_tier) != Tier.parse(new_tier)


def effective_tier_history(
    current_tier: Tier,
    target_tier: Tier,
    history: Optional[dict[str, int]],
) -> dict[str, int]:
    """
    Get the tier history the constraint checks should consult.

    History from a previous tier band never carries over: on a tier crossing
    the effective history is empty regardless of what the character carried.

    Args:
        current_tier: Tier before the level-up
        target_tier: Tier after the level-up
        history: Counts of options chosen earlier in current_tier

    Returns:
        A fresh dict (never the caller's object)
    """
    if did_cross_tier(current_tier, target_tier):
        if history:
            logger.debug(
                f"Tier crossing {Tier.parse(current_tier).value} -> "
                f"{Tier.parse(target_tier).value}: discarding history {history}"
            )
        return {}
    return dict(history or {})
