"""
Tier history bookkeeping after a confirmed level-up.

The engine only reads the caller's tier history; once a level-up is
confirmed the caller replaces its history with merge_tier_history().
"""

from typing import Mapping

from src.leveling.models import LevelUpResult
from src.leveling.tiers import Tier, did_cross_tier


def merge_tier_history(
    result: LevelUpResult,
    current_tier: Tier,
    history: Mapping[str, int],
) -> dict[str, int]:
    """
    Get the tier history to persist after a level-up.

    Args:
        result: The confirmed level-up
        current_tier: The character's tier before the level-up
        history: The history the level-up started from

    Returns:
        A new dict; history restarts from empty when the level-up entered a new tier
    """
    merged = {} if did_cross_tier(Tier.parse(current_tier), result.new_tier) else dict(history)
    for selection in result.selections:
        merged[selection.option_id] = merged.get(selection.option_id, 0) + selection.count
    return merged
