"""
Constraint evaluation for advancement options.

Pure functions over the option catalog, the draft's selections and the
effective tier history. is_selectable is the single gate the orchestrator
consults before letting a player choose an option; illegal choices are
reported as not selectable rather than raised.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional, Sequence

from src.leveling.models import ExperienceState, Selection, TraitState
from src.leveling.options import AdvancementOption
from src.leveling.sub_resolution import SubResolutionKind


# Items one boost round consumes from the resource pool
MIN_TRAITS_FOR_BOOST = 2
MIN_EXPERIENCES_FOR_BOOST = 2


class BlockReason(str, Enum):
    """Why an option cannot currently be selected."""
    EXCLUDED = "excluded"                   # Mutually exclusive option already taken
    MAXED = "maxed"                         # Per-tier cap reached
    OVER_BUDGET = "over_budget"             # Costs more than the points remaining
    INSUFFICIENT_RESOURCES = "insufficient_resources"  # Not enough traits/experiences


@dataclass(frozen=True)
class ResourcePool:
    """Traits and experiences still available for boosting this session."""
    traits: tuple[str, ...] = ()
    experiences: tuple[str, ...] = ()   # Experience ids


# =============================================================================
# COUNTS AND BUDGET
# =============================================================================


def selection_count(option_id: str, selections: Sequence[Selection]) -> int:
    """Get how many times an option was chosen in the draft."""
    for selection in selections:
        if selection.option_id == option_id:
            return selection.count
    return 0


def points_spent(
    selections: Sequence[Selection],
    options: Iterable[AdvancementOption],
) -> int:
    """
    Sum cost x count over all selections.

    Unknown option ids contribute zero.
    """
    costs = {option.option_id: option.cost for option in options}
    return sum(costs.get(s.option_id, 0) * s.count for s in selections)


def points_remaining(
    selections: Sequence[Selection],
    options: Iterable[AdvancementOption],
    budget: int,
) -> int:
    """Get the advancement points left to spend."""
    return budget - points_spent(selections, options)


# =============================================================================
# OPTION CHECKS
# =============================================================================


def is_mutually_excluded(
    option: AdvancementOption,
    selections: Sequence[Selection],
    history: Mapping[str, int],
) -> bool:
    """Check if an option's exclusive partner is taken in the draft or this tier's history."""
    for other_id in option.exclusive_with:
        if selection_count(other_id, selections) > 0:
            return True
        if history.get(other_id, 0) > 0:
            return True
    return False


def is_maxed_for_tier(
    option: AdvancementOption,
    selections: Sequence[Selection],
    history: Mapping[str, int],
) -> bool:
    """Check if draft count plus tier history has reached the option's cap."""
    total = selection_count(option.option_id, selections) + history.get(option.option_id, 0)
    return total >= option.max_per_tier


def _list_detail(selections: Sequence[Selection], option_id: str, field_name: str) -> tuple[str, ...]:
    for selection in selections:
        if selection.option_id == option_id and selection.details is not None:
            return getattr(selection.details, field_name)
    return ()


def available_traits(
    traits: Iterable[TraitState],
    selections: Sequence[Selection],
) -> tuple[str, ...]:
    """Unmarked traits not already chosen for a boost in this draft."""
    taken = set(_list_detail(selections, "traits", "selected_traits"))
    return tuple(t.name for t in traits if not t.marked and t.name not in taken)


def available_experiences(
    experiences: Iterable[ExperienceState],
    selections: Sequence[Selection],
    new_experience: Optional[ExperienceState] = None,
) -> tuple[str, ...]:
    """
    Experience ids not already boosted in this draft.

    The Experience gained at this level is boostable once it has been named.
    """
    taken = set(_list_detail(selections, "experiences", "selected_experiences"))
    pool = list(experiences)
    if new_experience is not None:
        pool.append(new_experience)
    return tuple(e.experience_id for e in pool if e.experience_id not in taken)


def has_sufficient_resources(
    option: AdvancementOption,
    traits: Sequence[str],
    experiences: Sequence[str],
) -> bool:
    """
    Check that an option's scarce resources are not exhausted.

    Trait and experience boosts each consume two items; every other option
    passes trivially.
    """
    if option.sub_resolution == SubResolutionKind.TRAITS:
        return len(traits) >= MIN_TRAITS_FOR_BOOST
    if option.sub_resolution == SubResolutionKind.EXPERIENCES:
        return len(experiences) >= MIN_EXPERIENCES_FOR_BOOST
    return True


def explain_unselectable(
    option: AdvancementOption,
    selections: Sequence[Selection],
    history: Mapping[str, int],
    budget_remaining: int,
    resources: ResourcePool,
) -> list[BlockReason]:
    """
    List every reason an option cannot be selected.

    Returns:
        Empty list if the option is selectable
    """
    reasons = []
    if is_mutually_excluded(option, selections, history):
        reasons.append(BlockReason.EXCLUDED)
    if is_maxed_for_tier(option, selections, history):
        reasons.append(BlockReason.MAXED)
    if option.cost > budget_remaining:
        reasons.append(BlockReason.OVER_BUDGET)
    if not has_sufficient_resources(option, resources.traits, resources.experiences):
        reasons.append(BlockReason.INSUFFICIENT_RESOURCES)
    return reasons


def is_selectable(
    option: AdvancementOption,
    selections: Sequence[Selection],
    history: Mapping[str, int],
    budget_remaining: int,
    resources: ResourcePool,
) -> bool:
    """
    Gate for choosing an option.

    True only if the option is not excluded, not maxed for the tier, affordable
    and has enough resources left.
    """
    return (
        not is_mutually_excluded(option, selections, history)
        and not is_maxed_for_tier(option, selections, history)
        and option.cost <= budget_remaining
        and has_sufficient_resources(option, resources.traits, resources.experiences)
    )
