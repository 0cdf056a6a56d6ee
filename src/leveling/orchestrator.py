"""
Level-up orchestrator.

Drives one level-up through its steps:

    automatic-benefits -> [companion-benefits] -> advancement-options -> confirmed

Every transition is a pure function taking a LevelUpDraft and returning a new
one; the draft itself is never mutated. Choosing an option goes through the
constraint gate, and an option needing supplementary input parks the draft
in a pending state until resolve_pending or cancel_pending.

LevelUpSession wraps the pure functions for callers that want a single
active draft and run-log entries for every step change.
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional
import logging

from src.config import DEFAULT_CONFIG, MIN_LEVEL, LevelUpConfig
from src.leveling import ledger
from src.leveling.companion import TrainingOption, available_training, validate_training_choice
from src.leveling.constraints import (
    BlockReason,
    ResourcePool,
    available_experiences,
    available_traits,
    explain_unselectable,
    points_remaining,
    selection_count,
)
from src.leveling.errors import InvalidTransitionError, SupplementaryInputError
from src.leveling.models import (
    AutomaticBenefits,
    CompanionState,
    CompanionTrainingChoice,
    ExperienceState,
    LevelUpContext,
    LevelUpDraft,
    LevelUpResult,
    LevelUpStep,
    MulticlassChoice,
    SelectionDetails,
    SubclassUpgrade,
    UPGRADE_FEATURE_TIERS,
)
from src.leveling.options import AdvancementOption, get_catalog, get_option, options_for_tier
from src.leveling.sub_resolution import SubResolutionKind, validate_details
from src.leveling.tiers import resolve_tier
from src.observability.run_log import get_run_log

if TYPE_CHECKING:
    from src.catalog.class_catalog import ClassCatalog
    from src.catalog.domain_cards import DomainCard, DomainCardCatalog

logger = logging.getLogger(__name__)


# =============================================================================
# DRAFT QUERIES
# =============================================================================


@dataclass(frozen=True)
class OptionState:
    """Per-option view of the advancement step for display."""
    option: AdvancementOption
    count: int                              # Times chosen in this draft
    history_count: int                      # Times chosen earlier in the tier
    reasons: tuple[BlockReason, ...] = ()

    @property
    def selectable(self) -> bool:
        return not self.reasons

    @property
    def maxed(self) -> bool:
        return BlockReason.MAXED in self.reasons

    @property
    def excluded(self) -> bool:
        return BlockReason.EXCLUDED in self.reasons


def available_options(draft: LevelUpDraft) -> list[AdvancementOption]:
    """Options offered for the draft's target tier and class configuration."""
    options = options_for_tier(draft.target_tier, draft.context.class_pairs)
    if not draft.context.has_companion:
        options = [
            o for o in options if o.sub_resolution != SubResolutionKind.COMPANION_TRAINING
        ]
    return options


def remaining_points(draft: LevelUpDraft) -> int:
    """Advancement points left to spend in the draft."""
    return points_remaining(draft.selections, get_catalog().values(), draft.budget)


def new_experience(draft: LevelUpDraft) -> Optional[ExperienceState]:
    """The Experience gained at this level, once it has been named."""
    if not draft.gets_new_experience or not draft.new_experience_name:
        return None
    return ExperienceState(
        experience_id=draft.new_experience_id,
        name=draft.new_experience_name,
        value=draft.config.new_experience_value,
    )


def resources(draft: LevelUpDraft) -> ResourcePool:
    """Traits and experiences still boostable in this draft."""
    return ResourcePool(
        traits=available_traits(draft.context.traits, draft.selections),
        experiences=available_experiences(
            draft.context.experiences, draft.selections, new_experience(draft)
        ),
    )


def option_states(draft: LevelUpDraft) -> list[OptionState]:
    """Selectable/maxed/excluded view of every offered option."""
    history = draft.history
    remaining = remaining_points(draft)
    pool = resources(draft)
    return [
        OptionState(
            option=option,
            count=selection_count(option.option_id, draft.selections),
            history_count=history.get(option.option_id, 0),
            reasons=tuple(
                explain_unselectable(option, draft.selections, history, remaining, pool)
            ),
        )
        for option in available_options(draft)
    ]


def _chosen_domain_cards(draft: LevelUpDraft) -> set[str]:
    """Lower-cased names of cards owned or taken in this draft."""
    names = {name.lower() for name in draft.context.owned_domain_cards}
    if draft.free_domain_card:
        names.add(draft.free_domain_card.lower())
    for selection in draft.selections:
        if selection.details and selection.details.selected_domain_card:
            names.add(selection.details.selected_domain_card.lower())
    return names


def _companion_with_draft_training(
    draft: LevelUpDraft,
    include_step_choice: bool = True,
) -> Optional[CompanionState]:
    """The companion as it would be with the training already picked in the draft."""
    companion = draft.context.companion
    if companion is None:
        return None

    picks = []
    if include_step_choice and draft.companion_training is not None:
        picks.append(draft.companion_training.training_id)
    for selection in draft.selections:
        if selection.details and selection.details.selected_companion_training:
            picks.append(selection.details.selected_companion_training)

    training = dict(companion.training)
    for training_id in picks:
        training[training_id] = training.get(training_id, 0) + 1
    return replace(companion, training=training)


def _character_domains(draft: LevelUpDraft) -> Optional[list[str]]:
    domains = [d for pair in draft.context.class_pairs for d in pair.domains]
    return domains or None


# =============================================================================
# SUB-RESOLUTION CHOICES
# =============================================================================


def free_domain_card_choices(draft: LevelUpDraft, catalog: "DomainCardCatalog") -> list["DomainCard"]:
    """Cards eligible as the free card granted at this level."""
    exclude = _chosen_domain_cards(draft)
    if draft.free_domain_card:
        exclude.discard(draft.free_domain_card.lower())
    return catalog.cards_for_level(draft.target_level, _character_domains(draft), exclude)


def domain_card_choices(draft: LevelUpDraft, catalog: "DomainCardCatalog") -> list["DomainCard"]:
    """Cards eligible for the Domain Card advancement option."""
    return catalog.cards_for_level(
        draft.target_level, _character_domains(draft), _chosen_domain_cards(draft)
    )


def multiclass_choices(draft: LevelUpDraft, classes: "ClassCatalog") -> list[MulticlassChoice]:
    return classes.multiclass_choices(draft.context.class_pairs)


def subclass_upgrade_choices(draft: LevelUpDraft, classes: "ClassCatalog") -> list[SubclassUpgrade]:
    return classes.subclass_upgrade_choices(
        draft.context.class_pairs,
        draft.context.unlocked_subclass_features,
        draft.target_tier,
    )


def companion_training_choices(draft: LevelUpDraft) -> list[TrainingOption]:
    """
    Trainings the companion can still take.

    In the companion-benefits step the draft's own pick is left out so it can
    be changed.
    """
    include_step_choice = draft.step != LevelUpStep.COMPANION_BENEFITS
    return available_training(_companion_with_draft_training(draft, include_step_choice))


# =============================================================================
# TRANSITIONS
# =============================================================================


def _require(
    draft: LevelUpDraft,
    action: str,
    steps: Optional[frozenset[LevelUpStep]] = None,
    allow_pending: bool = False,
) -> None:
    if draft.is_terminal:
        raise InvalidTransitionError(
            f"Cannot {action}: level-up is already {draft.step.value}"
        )
    if draft.is_pending and not allow_pending:
        raise InvalidTransitionError(
            f"Cannot {action} while '{draft.pending_option}' awaits supplementary input"
        )
    if steps is not None and draft.step not in steps:
        raise InvalidTransitionError(
            f"Cannot {action} in step '{draft.step.value}'"
        )


_AUTOMATIC = frozenset({LevelUpStep.AUTOMATIC_BENEFITS})
_COMPANION = frozenset({LevelUpStep.COMPANION_BENEFITS})
_ADVANCEMENT = frozenset({LevelUpStep.ADVANCEMENT_OPTIONS})


def start_level_up(context: LevelUpContext, config: LevelUpConfig = DEFAULT_CONFIG) -> LevelUpDraft:
    """
    Create a fresh draft for levelling up from context.current_level.

    Raises:
        InvalidTransitionError: If the current level is below the first level
            or already at the maximum
    """
    if context.current_level < MIN_LEVEL:
        raise InvalidTransitionError(
            f"Level {context.current_level} is below {MIN_LEVEL}; cannot level up"
        )
    if context.current_level >= config.max_level:
        raise InvalidTransitionError(
            f"Level {context.current_level} is the maximum; cannot level up"
        )
    target_level = context.current_level + 1
    draft = LevelUpDraft(
        context=context,
        target_level=target_level,
        target_tier=resolve_tier(target_level),
        config=config,
    )
    logger.info(
        f"Level-up started: {context.current_level} -> {target_level} "
        f"(tier {draft.target_tier.value}{', new tier' if draft.tier_changed else ''})"
    )
    return draft


def choose_free_domain_card(
    draft: LevelUpDraft,
    card_name: str,
    catalog: Optional["DomainCardCatalog"] = None,
) -> LevelUpDraft:
    """
    Pick the free domain card granted at every level.

    Raises:
        SupplementaryInputError: If the card is blank, already owned or taken,
            or (with a catalog) not eligible at this level
    """
    _require(draft, "choose a domain card", _AUTOMATIC)
    card_name = (card_name or "").strip()
    if not card_name:
        raise SupplementaryInputError("A domain card name is required")

    taken = _chosen_domain_cards(draft)
    if draft.free_domain_card:
        taken.discard(draft.free_domain_card.lower())
    if card_name.lower() in taken:
        raise SupplementaryInputError(f"Domain card '{card_name}' is already owned or chosen")

    if catalog is not None:
        eligible = {c.name.lower() for c in free_domain_card_choices(draft, catalog)}
        if card_name.lower() not in eligible:
            raise SupplementaryInputError(
                f"Domain card '{card_name}' is not available at level {draft.target_level}"
            )

    return replace(draft, free_domain_card=card_name)


def name_new_experience(draft: LevelUpDraft, name: str) -> LevelUpDraft:
    """
    Name the Experience gained at levels 2, 5 and 8.

    Raises:
        SupplementaryInputError: If this level grants no Experience or the name is blank
    """
    _require(draft, "name an experience", _AUTOMATIC)
    if not draft.gets_new_experience:
        raise SupplementaryInputError(
            f"Level {draft.target_level} does not grant a new Experience"
        )
    name = (name or "").strip()
    if not name:
        raise SupplementaryInputError("The new Experience needs a name")
    return replace(draft, new_experience_name=name)


def choose_companion_training(
    draft: LevelUpDraft,
    choice: Optional[CompanionTrainingChoice],
) -> LevelUpDraft:
    """
    Pick (or clear, with None) the companion's training for this level.

    Raises:
        SupplementaryInputError: If the training is unknown, maxed or
            missing its companion experience
    """
    _require(draft, "choose companion training", _COMPANION)
    if choice is not None:
        validate_training_choice(
            _companion_with_draft_training(draft, include_step_choice=False), choice
        )
    return replace(draft, companion_training=choice)


def select_option(draft: LevelUpDraft, option_id: str) -> LevelUpDraft:
    """
    Choose an advancement option once.

    A closed gate (excluded, maxed, over budget, out of resources, or not
    offered in this tier) leaves the draft unchanged. Options that need
    supplementary input come back pending.

    Raises:
        UnknownOptionError: If option_id is not in the catalog
        InvalidTransitionError: Outside the advancement step or while pending
    """
    _require(draft, "select an option", _ADVANCEMENT)
    option = get_option(option_id)

    if option_id not in {o.option_id for o in available_options(draft)}:
        logger.warning(
            f"Option '{option_id}' is not offered in tier {draft.target_tier.value}"
        )
        return draft

    reasons = explain_unselectable(
        option, draft.selections, draft.history, remaining_points(draft), resources(draft)
    )
    if reasons:
        logger.warning(
            f"Option '{option_id}' is not selectable: {[r.value for r in reasons]}"
        )
        return draft

    outcome = ledger.select(option, draft.selections)
    if outcome.pending:
        return replace(draft, pending_option=outcome.pending)
    return replace(draft, selections=outcome.selections)


def _check_details(
    draft: LevelUpDraft,
    option: AdvancementOption,
    details: SelectionDetails,
    domain_cards: Optional["DomainCardCatalog"],
    classes: Optional["ClassCatalog"],
) -> None:
    """Check resolved input against the character and the catalogs."""
    kind = option.sub_resolution

    if kind == SubResolutionKind.TRAITS:
        allowed = set(resources(draft).traits)
        for trait in details.selected_traits:
            if trait not in allowed:
                raise SupplementaryInputError(
                    f"Trait '{trait}' is marked, unknown or already boosted"
                )

    elif kind == SubResolutionKind.EXPERIENCES:
        allowed = set(resources(draft).experiences)
        for experience_id in details.selected_experiences:
            if experience_id not in allowed:
                raise SupplementaryInputError(
                    f"Experience '{experience_id}' is unknown or already boosted"
                )

    elif kind == SubResolutionKind.DOMAIN_CARD:
        card = details.selected_domain_card
        if card.lower() in _chosen_domain_cards(draft):
            raise SupplementaryInputError(f"Domain card '{card}' is already owned or chosen")
        if domain_cards is not None:
            eligible = {c.name.lower() for c in domain_card_choices(draft, domain_cards)}
            if card.lower() not in eligible:
                raise SupplementaryInputError(
                    f"Domain card '{card}' is not available at level {draft.target_level}"
                )

    elif kind == SubResolutionKind.MULTICLASS:
        choice = details.selected_multiclass
        held = {pair.class_name.lower() for pair in draft.context.class_pairs}
        if choice.class_name.lower() in held:
            raise SupplementaryInputError(f"Character already has class '{choice.class_name}'")
        if classes is not None:
            match = next(
                (
                    c for c in multiclass_choices(draft, classes)
                    if c.class_name.lower() == choice.class_name.lower()
                    and c.subclass_name.lower() == choice.subclass_name.lower()
                ),
                None,
            )
            if match is None:
                raise SupplementaryInputError(
                    f"Unknown multiclass choice: {choice.class_name} / {choice.subclass_name}"
                )
            extra = {d.lower() for d in choice.domains} - {d.lower() for d in match.domains}
            if extra:
                raise SupplementaryInputError(
                    f"{match.class_name} does not grant the domains {sorted(extra)}"
                )

    elif kind == SubResolutionKind.SUBCLASS:
        upgrade = details.selected_subclass_upgrade
        pair = next(
            (
                p for p in draft.context.class_pairs
                if p.class_name.lower() == upgrade.class_name.lower()
                and p.subclass_name.lower() == upgrade.subclass_name.lower()
            ),
            None,
        )
        if pair is None:
            raise SupplementaryInputError(
                f"Character has no subclass {upgrade.class_name} / {upgrade.subclass_name}"
            )
        required = UPGRADE_FEATURE_TIERS.get(upgrade.feature_type)
        if required is None:
            raise SupplementaryInputError(
                f"Unknown subclass feature type '{upgrade.feature_type}'; "
                f"expected one of {sorted(UPGRADE_FEATURE_TIERS)}"
            )
        if draft.target_tier.number < required.number:
            raise SupplementaryInputError(
                f"A {upgrade.feature_type} card needs tier {required.number}, "
                f"not tier {draft.target_tier.number}"
            )
        unlocked = {n.lower() for n in draft.context.unlocked_subclass_features.get(pair.key, ())}
        if upgrade.feature_name.lower() in unlocked:
            raise SupplementaryInputError(f"'{upgrade.feature_name}' is already unlocked")
        if classes is not None:
            upgrades = {
                u.feature_name.lower()
                for u in subclass_upgrade_choices(draft, classes)
                if u.class_name == pair.class_name and u.subclass_name == pair.subclass_name
            }
            if upgrade.feature_name.lower() not in upgrades:
                raise SupplementaryInputError(
                    f"'{upgrade.feature_name}' is not the next feature of {upgrade.subclass_name}"
                )

    elif kind == SubResolutionKind.COMPANION_TRAINING:
        validate_training_choice(
            _companion_with_draft_training(draft),
            CompanionTrainingChoice(
                training_id=details.selected_companion_training,
                experience_index=details.companion_experience_index,
            ),
        )


def resolve_pending(
    draft: LevelUpDraft,
    details: SelectionDetails,
    domain_cards: Optional["DomainCardCatalog"] = None,
    classes: Optional["ClassCatalog"] = None,
) -> LevelUpDraft:
    """
    Supply the input for the pending option and record it in the ledger.

    Args:
        draft: A draft with a pending option
        details: One round of supplementary input
        domain_cards: Optional catalog to check domain card picks against
        classes: Optional catalog to check multiclass and subclass picks against

    Raises:
        InvalidTransitionError: If nothing is pending
        SupplementaryInputError: If details are malformed or not valid for
            this character; the draft stays pending
    """
    _require(draft, "resolve supplementary input", _ADVANCEMENT, allow_pending=True)
    if not draft.is_pending:
        raise InvalidTransitionError("No option is awaiting supplementary input")

    option = get_option(draft.pending_option)
    validate_details(option.sub_resolution, details)
    _check_details(draft, option, details, domain_cards, classes)

    selections = ledger.resolve_supplementary(option, details, draft.selections)
    return replace(draft, selections=selections, pending_option=None)


def cancel_pending(draft: LevelUpDraft) -> LevelUpDraft:
    """
    Abandon the pending option. The ledger is untouched.

    Raises:
        InvalidTransitionError: If nothing is pending
    """
    _require(draft, "cancel supplementary input", _ADVANCEMENT, allow_pending=True)
    if not draft.is_pending:
        raise InvalidTransitionError("No option is awaiting supplementary input")
    logger.debug(f"Cancelled pending option '{draft.pending_option}'")
    return replace(draft, pending_option=None)


def remove_option(draft: LevelUpDraft, option_id: str) -> LevelUpDraft:
    """
    Undo one round of an option.

    Raises:
        UnknownOptionError: If option_id is not in the catalog
        InvalidTransitionError: Outside the advancement step or while pending
    """
    _require(draft, "remove an option", _ADVANCEMENT)
    return replace(draft, selections=ledger.remove(option_id, draft.selections))


def can_advance(draft: LevelUpDraft) -> bool:
    """Check if the current step is complete and has a next step."""
    if draft.is_terminal or draft.is_pending:
        return False
    if draft.step == LevelUpStep.AUTOMATIC_BENEFITS:
        if not draft.free_domain_card:
            return False
        return not draft.gets_new_experience or bool(draft.new_experience_name)
    return draft.step == LevelUpStep.COMPANION_BENEFITS


def advance(draft: LevelUpDraft) -> LevelUpDraft:
    """
    Move to the next step.

    Raises:
        InvalidTransitionError: If the current step is incomplete
    """
    _require(draft, "advance")
    if not can_advance(draft):
        missing = []
        if draft.step == LevelUpStep.AUTOMATIC_BENEFITS:
            if not draft.free_domain_card:
                missing.append("free domain card")
            if draft.gets_new_experience and not draft.new_experience_name:
                missing.append("new experience name")
        detail = f" (missing: {', '.join(missing)})" if missing else ""
        raise InvalidTransitionError(
            f"Cannot advance from step '{draft.step.value}'{detail}"
        )

    if draft.step == LevelUpStep.AUTOMATIC_BENEFITS and draft.context.has_companion:
        next_step = LevelUpStep.COMPANION_BENEFITS
    else:
        next_step = LevelUpStep.ADVANCEMENT_OPTIONS
    return replace(draft, step=next_step)


def go_back(draft: LevelUpDraft) -> LevelUpDraft:
    """
    Return to the previous step, keeping every choice made so far.

    Raises:
        InvalidTransitionError: From the first step, while pending or when terminal
    """
    _require(draft, "go back")
    if draft.step == LevelUpStep.ADVANCEMENT_OPTIONS and draft.context.has_companion:
        previous = LevelUpStep.COMPANION_BENEFITS
    elif draft.step in (LevelUpStep.ADVANCEMENT_OPTIONS, LevelUpStep.COMPANION_BENEFITS):
        previous = LevelUpStep.AUTOMATIC_BENEFITS
    else:
        raise InvalidTransitionError(f"No step before '{draft.step.value}'")
    return replace(draft, step=previous)


def can_confirm(draft: LevelUpDraft) -> bool:
    """Check if the budget is spent exactly and nothing is pending."""
    return (
        draft.step == LevelUpStep.ADVANCEMENT_OPTIONS
        and not draft.is_pending
        and remaining_points(draft) == 0
    )


def automatic_benefits(draft: LevelUpDraft) -> AutomaticBenefits:
    """Benefits granted just for reaching the target level."""
    level = draft.target_level
    return AutomaticBenefits(
        experience_gained=draft.gets_new_experience,
        experience_name=draft.new_experience_name if draft.gets_new_experience else None,
        proficiency_gained=draft.config.grants_proficiency(level),
        traits_cleared=draft.config.clears_trait_marks(level),
        free_domain_card=draft.free_domain_card,
        damage_threshold_increase=draft.config.damage_threshold_increase,
    )


def confirm(draft: LevelUpDraft) -> LevelUpResult:
    """
    Produce the result of the level-up.

    Raises:
        InvalidTransitionError: If points remain, something is pending or the
            draft is not in the advancement step
    """
    _require(draft, "confirm", _ADVANCEMENT)
    if not can_confirm(draft):
        raise InvalidTransitionError(
            f"Cannot confirm with {remaining_points(draft)} advancement point(s) unspent"
        )

    result = LevelUpResult(
        new_level=draft.target_level,
        new_tier=draft.target_tier,
        automatic_benefits=automatic_benefits(draft),
        selections=draft.selections,
        companion_training=draft.companion_training,
    )
    logger.info(
        f"Level-up confirmed: level {result.new_level} with "
        f"{[s.option_id for s in result.selections]}"
    )
    return result


def cancel(draft: LevelUpDraft) -> LevelUpDraft:
    """
    Discard the draft, pending input included.

    Raises:
        InvalidTransitionError: If the draft is already confirmed or cancelled
    """
    if draft.is_terminal:
        raise InvalidTransitionError(f"Level-up is already {draft.step.value}")
    logger.info(f"Level-up to {draft.target_level} cancelled")
    return replace(
        draft, step=LevelUpStep.CANCELLED, selections=(), pending_option=None
    )


# =============================================================================
# SESSION
# =============================================================================


class LevelUpSession:
    """
    Holds the single active level-up draft for a character.

    Delegates to the pure transition functions above and records every step
    change and ledger change in the run log.
    """

    def __init__(
        self,
        config: LevelUpConfig = DEFAULT_CONFIG,
        domain_cards: Optional["DomainCardCatalog"] = None,
        classes: Optional["ClassCatalog"] = None,
    ):
        self.config = config
        self.domain_cards = domain_cards
        self.classes = classes
        self._draft: Optional[LevelUpDraft] = None
        self._last_result: Optional[LevelUpResult] = None

    @property
    def draft(self) -> Optional[LevelUpDraft]:
        """The active draft, or None when no level-up is in progress."""
        return self._draft

    @property
    def is_active(self) -> bool:
        return self._draft is not None

    @property
    def last_result(self) -> Optional[LevelUpResult]:
        return self._last_result

    def _active(self) -> LevelUpDraft:
        if self._draft is None:
            raise InvalidTransitionError("No level-up in progress")
        return self._draft

    def _log_to_run_log(self, from_step: str, to_step: str, trigger: str) -> None:
        draft = self._draft
        context = {"target_level": draft.target_level} if draft else {}
        get_run_log().log_transition(
            from_step=from_step, to_step=to_step, trigger=trigger, context=context
        )

    def _update(self, new_draft: LevelUpDraft, trigger: str) -> LevelUpDraft:
        old_step = self._active().step
        self._draft = new_draft
        if new_draft.step != old_step:
            self._log_to_run_log(old_step.value, new_draft.step.value, trigger)
        return new_draft

    def _log_selection(self, action: str, option_id: str, details: Optional[SelectionDetails] = None) -> None:
        draft = self._active()
        get_run_log().log_selection(
            action=action,
            option_id=option_id,
            count=selection_count(option_id, draft.selections),
            points_remaining=remaining_points(draft),
            details=details.to_dict() if details else None,
            context={"target_level": draft.target_level},
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def begin(self, context: LevelUpContext) -> LevelUpDraft:
        """
        Start a level-up.

        Raises:
            InvalidTransitionError: If a level-up is already in progress
        """
        if self._draft is not None:
            raise InvalidTransitionError(
                f"A level-up to {self._draft.target_level} is already in progress"
            )
        self._draft = start_level_up(context, self.config)
        self._last_result = None
        get_run_log().log_custom(
            "level_up_started",
            {
                "from_level": context.current_level,
                "target_level": self._draft.target_level,
                "target_tier": self._draft.target_tier.value,
                "tier_changed": self._draft.tier_changed,
            },
        )
        self._log_to_run_log("none", self._draft.step.value, "begin")
        return self._draft

    def cancel(self) -> None:
        """Discard the active draft, if any."""
        if self._draft is None:
            return
        cancelled = cancel(self._draft)
        self._log_to_run_log(self._draft.step.value, cancelled.step.value, "cancel")
        self._draft = None

    def confirm(self) -> LevelUpResult:
        """
        Confirm the active draft and end the session's level-up.

        Raises:
            InvalidTransitionError: If the draft cannot be confirmed yet
        """
        draft = self._active()
        result = confirm(draft)
        self._log_to_run_log(draft.step.value, LevelUpStep.CONFIRMED.value, "confirm")
        get_run_log().log_custom("level_up_confirmed", result.to_dict())
        self._draft = None
        self._last_result = result
        return result

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def advance(self) -> LevelUpDraft:
        return self._update(advance(self._active()), "advance")

    def go_back(self) -> LevelUpDraft:
        return self._update(go_back(self._active()), "go_back")

    def can_advance(self) -> bool:
        return self._draft is not None and can_advance(self._draft)

    def can_confirm(self) -> bool:
        return self._draft is not None and can_confirm(self._draft)

    # -------------------------------------------------------------------------
    # Choices
    # -------------------------------------------------------------------------

    def choose_free_domain_card(self, card_name: str) -> LevelUpDraft:
        draft = choose_free_domain_card(self._active(), card_name, self.domain_cards)
        return self._update(draft, "choose_free_domain_card")

    def name_new_experience(self, name: str) -> LevelUpDraft:
        return self._update(name_new_experience(self._active(), name), "name_new_experience")

    def choose_companion_training(
        self, choice: Optional[CompanionTrainingChoice]
    ) -> LevelUpDraft:
        draft = choose_companion_training(self._active(), choice)
        return self._update(draft, "choose_companion_training")

    def select(self, option_id: str) -> LevelUpDraft:
        """Choose an option; refused choices are logged and leave the draft as it was."""
        before = self._active()
        after = self._update(select_option(before, option_id), "select")
        if after.is_pending:
            self._log_selection("pending", option_id)
        elif after is before:
            self._log_selection("refused", option_id)
        else:
            self._log_selection("select", option_id)
        return after

    def resolve(self, details: SelectionDetails) -> LevelUpDraft:
        """Supply input for the pending option, checked against the session's catalogs."""
        option_id = self._active().pending_option
        draft = resolve_pending(self._active(), details, self.domain_cards, self.classes)
        self._update(draft, "resolve")
        self._log_selection("resolve", option_id, details)
        return draft

    def cancel_pending(self) -> LevelUpDraft:
        return self._update(cancel_pending(self._active()), "cancel_pending")

    def remove(self, option_id: str) -> LevelUpDraft:
        draft = self._update(remove_option(self._active(), option_id), "remove")
        self._log_selection("remove", option_id)
        return draft

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def option_states(self) -> list[OptionState]:
        return option_states(self._active())

    def points_remaining(self) -> int:
        return remaining_points(self._active())

    def free_domain_card_choices(self) -> list["DomainCard"]:
        if self.domain_cards is None:
            return []
        return free_domain_card_choices(self._active(), self.domain_cards)

    def domain_card_choices(self) -> list["DomainCard"]:
        if self.domain_cards is None:
            return []
        return domain_card_choices(self._active(), self.domain_cards)

    def multiclass_choices(self) -> list[MulticlassChoice]:
        if self.classes is None:
            return []
        return multiclass_choices(self._active(), self.classes)

    def subclass_upgrade_choices(self) -> list[SubclassUpgrade]:
        if self.classes is None:
            return []
        return subclass_upgrade_choices(self._active(), self.classes)

    def companion_training_choices(self) -> list[TrainingOption]:
        return companion_training_choices(self._active())
