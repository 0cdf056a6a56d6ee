"""
Daggerheart level-up rules engine.

Provides:
- Tier resolution and the advancement option catalog
- Constraint evaluation (budget, per-tier caps, exclusions, resources)
- The selection ledger and sub-resolution registry
- The level-up orchestrator (pure draft transitions and LevelUpSession)
- History merge and result application for the calling layer
"""

from src.leveling.application import CharacterSheet, apply_companion_training, apply_level_up
from src.leveling.companion import (
    COMPANION_TRAINING_OPTIONS,
    TrainingOption,
    available_training,
    validate_training_choice,
)
from src.leveling.constraints import (
    BlockReason,
    ResourcePool,
    available_experiences,
    available_traits,
    explain_unselectable,
    has_sufficient_resources,
    is_maxed_for_tier,
    is_mutually_excluded,
    is_selectable,
    points_remaining,
    points_spent,
    selection_count,
)
from src.leveling.errors import (
    CatalogLoadError,
    InvalidTransitionError,
    LevelUpError,
    SupplementaryInputError,
    UnknownOptionError,
)
from src.leveling.history import merge_tier_history
from src.leveling.models import (
    AutomaticBenefits,
    ClassPair,
    CompanionExperience,
    CompanionState,
    CompanionTrainingChoice,
    ExperienceState,
    LevelUpContext,
    LevelUpDraft,
    LevelUpResult,
    LevelUpStep,
    MulticlassChoice,
    Selection,
    SelectionDetails,
    SubclassUpgrade,
    TraitState,
)
from src.leveling.options import (
    LEVEL_UP_OPTIONS,
    AdvancementOption,
    build_catalog,
    get_catalog,
    get_option,
    options_for_tier,
)
from src.leveling.orchestrator import (
    LevelUpSession,
    OptionState,
    advance,
    can_advance,
    can_confirm,
    cancel,
    cancel_pending,
    choose_companion_training,
    choose_free_domain_card,
    confirm,
    go_back,
    name_new_experience,
    option_states,
    remove_option,
    resolve_pending,
    select_option,
    start_level_up,
)
from src.leveling.sub_resolution import (
    SubResolutionKind,
    SubResolutionRegistry,
    SubResolutionSpec,
    get_sub_resolution_registry,
    validate_details,
)
from src.leveling.tiers import Tier, did_cross_tier, effective_tier_history, resolve_tier

__all__ = [
    # Tiers
    "Tier",
    "resolve_tier",
    "did_cross_tier",
    "effective_tier_history",
    # Data structures
    "AutomaticBenefits",
    "ClassPair",
    "CompanionExperience",
    "CompanionState",
    "CompanionTrainingChoice",
    "ExperienceState",
    "LevelUpContext",
    "LevelUpDraft",
    "LevelUpResult",
    "LevelUpStep",
    "MulticlassChoice",
    "Selection",
    "SelectionDetails",
    "SubclassUpgrade",
    "TraitState",
    # Options
    "LEVEL_UP_OPTIONS",
    "AdvancementOption",
    "build_catalog",
    "get_catalog",
    "get_option",
    "options_for_tier",
    # Constraints
    "BlockReason",
    "ResourcePool",
    "available_experiences",
    "available_traits",
    "explain_unselectable",
    "has_sufficient_resources",
    "is_maxed_for_tier",
    "is_mutually_excluded",
    "is_selectable",
    "points_remaining",
    "points_spent",
    "selection_count",
    # Sub-resolution
    "SubResolutionKind",
    "SubResolutionRegistry",
    "SubResolutionSpec",
    "get_sub_resolution_registry",
    "validate_details",
    # Companion
    "COMPANION_TRAINING_OPTIONS",
    "TrainingOption",
    "available_training",
    "validate_training_choice",
    # Orchestrator
    "LevelUpSession",
    "OptionState",
    "advance",
    "can_advance",
    "can_confirm",
    "cancel",
    "cancel_pending",
    "choose_companion_training",
    "choose_free_domain_card",
    "confirm",
    "go_back",
    "name_new_experience",
    "option_states",
    "remove_option",
    "resolve_pending",
    "select_option",
    "start_level_up",
    # After confirmation
    "CharacterSheet",
    "apply_companion_training",
    "apply_level_up",
    "merge_tier_history",
    # Errors
    "CatalogLoadError",
    "InvalidTransitionError",
    "LevelUpError",
    "SupplementaryInputError",
    "UnknownOptionError",
]
