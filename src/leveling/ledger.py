"""
Selection ledger operations.

The ledger is the tuple of Selections in a draft. Every operation returns a
new tuple; nothing is mutated in place. A Selection with a zero count never
stays in the ledger.
"""

from dataclasses import dataclass, replace
from typing import Optional
import logging

from src.leveling.models import Selection, SelectionDetails
from src.leveling.options import AdvancementOption, get_option
from src.leveling.sub_resolution import SubResolutionRegistry, get_sub_resolution_registry

logger = logging.getLogger(__name__)


Ledger = tuple[Selection, ...]


@dataclass(frozen=True)
class SelectOutcome:
    """
    Result of select().

    If pending is set the ledger is unchanged and the named option needs a
    sub-resolution before it counts.
    """
    selections: Ledger
    pending: Optional[str] = None


def _find(option_id: str, selections: Ledger) -> Optional[Selection]:
    for selection in selections:
        if selection.option_id == option_id:
            return selection
    return None


def _replace_selection(selections: Ledger, updated: Selection) -> Ledger:
    return tuple(updated if s.option_id == updated.option_id else s for s in selections)


def select(option: AdvancementOption, selections: Ledger) -> SelectOutcome:
    """
    Choose an option once.

    Options that need supplementary input are handed back as pending instead
    of being added.
    """
    if option.requires_sub_resolution:
        logger.debug(f"Option '{option.option_id}' awaits {option.sub_resolution.value} input")
        return SelectOutcome(selections=tuple(selections), pending=option.option_id)

    existing = _find(option.option_id, selections)
    if existing is not None:
        updated = _replace_selection(selections, replace(existing, count=existing.count + 1))
    else:
        updated = tuple(selections) + (Selection(option_id=option.option_id, count=1),)
    logger.debug(f"Selected '{option.option_id}'")
    return SelectOutcome(selections=updated)


def resolve_supplementary(
    option: AdvancementOption,
    details: SelectionDetails,
    selections: Ledger,
    registry: Optional[SubResolutionRegistry] = None,
) -> Ledger:
    """
    Record one resolved round of supplementary input for an option.

    Raises:
        SupplementaryInputError: If details do not match the option's
            sub-resolution kind
    """
    registry = registry or get_sub_resolution_registry()
    if option.sub_resolution is not None:
        registry.validate(option.sub_resolution, details)

    existing = _find(option.option_id, selections)
    if existing is None:
        logger.debug(f"Resolved '{option.option_id}' with {details.to_dict()}")
        return tuple(selections) + (
            Selection(option_id=option.option_id, count=1, details=details),
        )

    merged = existing.details.merge(details) if existing.details else details
    logger.debug(f"Resolved another round of '{option.option_id}' with {details.to_dict()}")
    return _replace_selection(
        selections, replace(existing, count=existing.count + 1, details=merged)
    )


def remove(
    option_id: str,
    selections: Ledger,
    registry: Optional[SubResolutionRegistry] = None,
) -> Ledger:
    """
    Undo one round of an option.

    The count drops by one and a Selection reaching zero is deleted. For
    list-valued details the items contributed by one round are truncated from
    the end.

    Raises:
        UnknownOptionError: If option_id is not in the catalog
    """
    option = get_option(option_id)
    existing = _find(option_id, selections)
    if existing is None:
        return tuple(selections)

    if existing.count <= 1:
        logger.debug(f"Removed '{option_id}' from ledger")
        return tuple(s for s in selections if s.option_id != option_id)

    details = existing.details
    if details is not None:
        registry = registry or get_sub_resolution_registry()
        for field_name, item_count in registry.items_per_round(option.sub_resolution).items():
            details = details.drop_last(field_name, item_count)

    logger.debug(f"Decremented '{option_id}' to {existing.count - 1}")
    return _replace_selection(
        selections, replace(existing, count=existing.count - 1, details=details)
    )
