"""
Sub-resolution registry.

Some advancement options only count once the player has supplied extra
input (which two traits to boost, which domain card to take, ...). The
registry maps each kind of supplementary input to the SelectionDetails field
that must be filled and, for list-valued input, how many items one round
contributes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from src.leveling.errors import SupplementaryInputError
from src.leveling.models import SelectionDetails

logger = logging.getLogger(__name__)


class SubResolutionKind(str, Enum):
    """Kinds of supplementary input an option may require."""
    TRAITS = "traits"
    EXPERIENCES = "experiences"
    DOMAIN_CARD = "domain-card"
    MULTICLASS = "multiclass"
    SUBCLASS = "subclass"
    COMPANION_TRAINING = "companion-training"


@dataclass(frozen=True)
class SubResolutionSpec:
    """Required input shape for one sub-resolution kind."""
    kind: SubResolutionKind
    field_name: str                         # SelectionDetails field to populate
    items_per_round: Optional[int] = None   # Set for list-valued fields
    description: str = ""

    @property
    def is_list(self) -> bool:
        return self.items_per_round is not None


DEFAULT_SPECS: tuple[SubResolutionSpec, ...] = (
    SubResolutionSpec(
        SubResolutionKind.TRAITS,
        "selected_traits",
        items_per_round=2,
        description="Two unmarked traits to boost",
    ),
    SubResolutionSpec(
        SubResolutionKind.EXPERIENCES,
        "selected_experiences",
        items_per_round=2,
        description="Two experiences to boost",
    ),
    SubResolutionSpec(
        SubResolutionKind.DOMAIN_CARD,
        "selected_domain_card",
        description="One domain card of the target level or lower",
    ),
    SubResolutionSpec(
        SubResolutionKind.MULTICLASS,
        "selected_multiclass",
        description="The class, subclass and domains taken",
    ),
    SubResolutionSpec(
        SubResolutionKind.SUBCLASS,
        "selected_subclass_upgrade",
        description="The subclass feature card unlocked",
    ),
    SubResolutionSpec(
        SubResolutionKind.COMPANION_TRAINING,
        "selected_companion_training",
        description="One companion training, optionally targeting a companion experience",
    ),
)


class SubResolutionRegistry:
    """Registry of sub-resolution specs keyed by kind."""

    def __init__(self, specs: tuple[SubResolutionSpec, ...] = DEFAULT_SPECS):
        self._specs: dict[SubResolutionKind, SubResolutionSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: SubResolutionSpec) -> None:
        """Register (or replace) the spec for a kind."""
        self._specs[spec.kind] = spec

    def get(self, kind: SubResolutionKind) -> SubResolutionSpec:
        """
        Get the spec for a kind.

        Raises:
            SupplementaryInputError: If no spec is registered for the kind
        """
        spec = self._specs.get(SubResolutionKind(kind))
        if spec is None:
            raise SupplementaryInputError(f"No sub-resolution registered for '{kind}'")
        return spec

    def get_all(self) -> list[SubResolutionSpec]:
        """Get all registered specs."""
        return list(self._specs.values())

    def validate(self, kind: SubResolutionKind, details: Optional[SelectionDetails]) -> None:
        """
        Check that details carry exactly one round of input for this kind.

        Raises:
            SupplementaryInputError: If the required field is missing or a list
                field does not hold items_per_round distinct entries
        """
        spec = self.get(kind)
        if details is None:
            raise SupplementaryInputError(
                f"Sub-resolution '{spec.kind.value}' requires details ({spec.description})"
            )
        value = getattr(details, spec.field_name)
        if spec.is_list:
            if len(value) != spec.items_per_round:
                raise SupplementaryInputError(
                    f"Sub-resolution '{spec.kind.value}' requires exactly "
                    f"{spec.items_per_round} entries in {spec.field_name}, got {len(value)}"
                )
            if len(set(value)) != len(value):
                raise SupplementaryInputError(
                    f"Sub-resolution '{spec.kind.value}' entries must be distinct: {list(value)}"
                )
        elif not value:
            raise SupplementaryInputError(
                f"Sub-resolution '{spec.kind.value}' requires {spec.field_name} "
                f"({spec.description})"
            )

    def items_per_round(self, kind: Optional[SubResolutionKind]) -> dict[str, int]:
        """
        Get the list fields one round of this kind contributes to.

        Returns:
            {field_name: item_count}; empty for scalar kinds or None
        """
        if kind is None:
            return {}
        spec = self.get(kind)
        if not spec.is_list:
            return {}
        return {spec.field_name: spec.items_per_round}


# Singleton access
_registry: Optional[SubResolutionRegistry] = None


def get_sub_resolution_registry() -> SubResolutionRegistry:
    """Get the global SubResolutionRegistry instance."""
    global _registry
    if _registry is None:
        _registry = SubResolutionRegistry()
        logger.debug(f"Sub-resolution registry created with {len(DEFAULT_SPECS)} kinds")
    return _registry


def validate_details(kind: SubResolutionKind, details: Optional[SelectionDetails]) -> None:
    """Validate supplementary details against the global registry."""
    get_sub_resolution_registry().validate(kind, details)
