"""
Tests for the level-up step transitions and their gates.
"""

import pytest

from src.config import LevelUpConfig
from src.leveling.errors import (
    InvalidTransitionError,
    SupplementaryInputError,
    UnknownOptionError,
)
from src.leveling.models import (
    ClassPair,
    CompanionTrainingChoice,
    LevelUpContext,
    LevelUpStep,
    MulticlassChoice,
    Selection,
    SelectionDetails,
    SubclassUpgrade,
    TraitState,
)
from src.leveling.orchestrator import (
    advance,
    available_options,
    can_advance,
    can_confirm,
    cancel,
    cancel_pending,
    choose_companion_training,
    choose_free_domain_card,
    companion_training_choices,
    confirm,
    domain_card_choices,
    free_domain_card_choices,
    go_back,
    name_new_experience,
    new_experience,
    option_states,
    remaining_points,
    remove_option,
    resolve_pending,
    select_option,
    start_level_up,
    subclass_upgrade_choices,
)
from src.leveling.tiers import Tier


def ids(options):
    return [o.option_id for o in options]


class TestStartLevelUp:
    """Tests for start_level_up()."""

    def test_initial_draft(self, make_context):
        draft = start_level_up(make_context(1))
        assert draft.target_level == 2
        assert draft.target_tier == Tier.TIER_2
        assert draft.step == LevelUpStep.AUTOMATIC_BENEFITS
        assert draft.selections == ()
        assert draft.budget == 2

    def test_max_level_rejected(self, make_context):
        with pytest.raises(InvalidTransitionError):
            start_level_up(make_context(10))

    def test_configured_max_level(self, make_context):
        with pytest.raises(InvalidTransitionError):
            start_level_up(make_context(4), LevelUpConfig(max_level=4))

    def test_level_below_first_rejected(self):
        context = LevelUpContext(current_level=0, current_tier=Tier.TIER_1)
        with pytest.raises(InvalidTransitionError):
            start_level_up(context)

    def test_band_string_tier_compares_to_target(self, make_context):
        """A context built with a band string or tier number is not a new tier."""
        for tier in ("2-4", 2):
            draft = start_level_up(make_context(3, current_tier=tier, tier_history={"hp": 1}))
            assert draft.context.current_tier is Tier.TIER_2
            assert not draft.tier_changed
            assert draft.history == {"hp": 1}


class TestAutomaticBenefitsStep:
    """Tests for the free domain card and new Experience inputs."""

    def test_card_required_to_advance(self, make_context):
        draft = start_level_up(make_context(2))
        assert not can_advance(draft)
        with pytest.raises(InvalidTransitionError) as exc_info:
            advance(draft)
        assert "free domain card" in str(exc_info.value)

    def test_advance_without_experience_level(self, make_context):
        draft = choose_free_domain_card(start_level_up(make_context(2)), "Book of Sitil")
        assert advance(draft).step == LevelUpStep.ADVANCEMENT_OPTIONS

    def test_name_rejected_when_not_granted(self, make_context):
        draft = start_level_up(make_context(2))
        with pytest.raises(SupplementaryInputError):
            name_new_experience(draft, "Archivist")

    def test_blank_name_rejected(self, make_context):
        draft = start_level_up(make_context(4))
        with pytest.raises(SupplementaryInputError):
            name_new_experience(draft, "   ")

    def test_new_experience_state(self, make_context):
        draft = name_new_experience(start_level_up(make_context(4)), " Archivist ")
        experience = new_experience(draft)
        assert experience.experience_id == "new-exp-5"
        assert experience.name == "Archivist"
        assert experience.value == 2

    def test_owned_card_rejected(self, make_context):
        draft = start_level_up(make_context(2))
        with pytest.raises(SupplementaryInputError):
            choose_free_domain_card(draft, "book of ava")

    def test_card_can_be_changed(self, make_context):
        draft = choose_free_domain_card(start_level_up(make_context(2)), "Book of Sitil")
        draft = choose_free_domain_card(draft, "Book of Vagras")
        assert draft.free_domain_card == "Book of Vagras"

    def test_catalog_checks_level(self, make_context, domain_cards):
        """A level 3 card is not available when levelling to 2."""
        draft = start_level_up(make_context(1))
        with pytest.raises(SupplementaryInputError):
            choose_free_domain_card(draft, "Book of Korvax", domain_cards)

    def test_catalog_checks_domain(self, make_context, domain_cards):
        draft = start_level_up(make_context(2))
        with pytest.raises(SupplementaryInputError):
            choose_free_domain_card(draft, "Gifted Tracker", domain_cards)

    def test_free_card_choices(self, make_context, domain_cards):
        draft = start_level_up(make_context(2))
        names = [c.name for c in free_domain_card_choices(draft, domain_cards)]
        assert "Book of Ava" not in names
        assert "Book of Sitil" in names
        assert all(domain_cards.get(n).domain in ("Codex", "Splendor") for n in names)
        assert all(domain_cards.get(n).level <= 3 for n in names)

    def test_selection_outside_advancement_step(self, make_context):
        draft = start_level_up(make_context(2))
        with pytest.raises(InvalidTransitionError):
            select_option(draft, "hp")


class TestCompanionStep:
    """Tests for the companion-benefits step."""

    def test_companion_step_inserted(self, ranger_context):
        draft = choose_free_domain_card(start_level_up(ranger_context), "Book of Sitil")
        draft = advance(draft)
        assert draft.step == LevelUpStep.COMPANION_BENEFITS
        assert can_advance(draft)
        assert advance(draft).step == LevelUpStep.ADVANCEMENT_OPTIONS

    def test_go_back_through_companion_step(self, ranger_context, to_advancement):
        draft = to_advancement(ranger_context)
        draft = go_back(draft)
        assert draft.step == LevelUpStep.COMPANION_BENEFITS
        draft = go_back(draft)
        assert draft.step == LevelUpStep.AUTOMATIC_BENEFITS
        with pytest.raises(InvalidTransitionError):
            go_back(draft)

    def test_training_choice(self, ranger_context):
        draft = advance(choose_free_domain_card(start_level_up(ranger_context), "Book of Sitil"))
        draft = choose_companion_training(draft, CompanionTrainingChoice("bonded"))
        assert draft.companion_training.training_id == "bonded"
        draft = choose_companion_training(draft, None)
        assert draft.companion_training is None

    def test_own_pick_stays_in_choices(self, ranger_context):
        draft = advance(choose_free_domain_card(start_level_up(ranger_context), "Book of Sitil"))
        draft = choose_companion_training(draft, CompanionTrainingChoice("bonded"))
        assert "bonded" in [t.training_id for t in companion_training_choices(draft)]

    def test_training_outside_step_rejected(self, ranger_context, to_advancement):
        with pytest.raises(InvalidTransitionError):
            choose_companion_training(to_advancement(ranger_context), CompanionTrainingChoice("bonded"))


class TestAdvancementStep:
    """Tests for selecting, resolving and removing options."""

    def test_offered_options_follow_tier(self, make_context, to_advancement):
        offered = ids(available_options(to_advancement(make_context(2))))
        assert "proficiency" not in offered
        assert "companion-training" not in offered

    def test_companion_training_needs_companion(self, make_context, ranger_pair, to_advancement):
        context = make_context(2, class_pairs=(ranger_pair,), owned_domain_cards=frozenset())
        assert "companion-training" not in ids(available_options(to_advancement(context, "Gifted Tracker")))

    def test_unknown_option_raises(self, make_context, to_advancement):
        with pytest.raises(UnknownOptionError):
            select_option(to_advancement(make_context(2)), "flying")

    def test_option_not_in_tier_leaves_draft(self, make_context, to_advancement):
        draft = to_advancement(make_context(2))
        assert select_option(draft, "proficiency") is draft

    def test_pending_blocks_other_actions(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(2)), "traits")
        assert draft.is_pending
        assert not can_advance(draft)
        assert not can_confirm(draft)
        for action in (
            lambda d: select_option(d, "hp"),
            lambda d: remove_option(d, "hp"),
            go_back,
        ):
            with pytest.raises(InvalidTransitionError):
                action(draft)

    def test_cancel_pending_keeps_ledger(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(2)), "hp")
        pending = select_option(draft, "traits")
        restored = cancel_pending(pending)
        assert not restored.is_pending
        assert restored.selections == draft.selections

    def test_resolve_without_pending(self, make_context, to_advancement):
        with pytest.raises(InvalidTransitionError):
            resolve_pending(to_advancement(make_context(2)), SelectionDetails())
        with pytest.raises(InvalidTransitionError):
            cancel_pending(to_advancement(make_context(2)))

    def test_marked_trait_rejected(self, make_context, to_advancement, traits):
        marked = (TraitState("Agility", marked=True),) + traits[1:]
        draft = select_option(to_advancement(make_context(2, traits=marked)), "traits")
        with pytest.raises(SupplementaryInputError):
            resolve_pending(draft, SelectionDetails(selected_traits=("Agility", "Strength")))
        assert draft.pending_option == "traits"

    def test_second_trait_round_excludes_first(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(2)), "traits")
        draft = resolve_pending(draft, SelectionDetails(selected_traits=("Agility", "Strength")))
        draft = select_option(draft, "traits")
        with pytest.raises(SupplementaryInputError):
            resolve_pending(draft, SelectionDetails(selected_traits=("Agility", "Finesse")))
        draft = resolve_pending(draft, SelectionDetails(selected_traits=("Finesse", "Presence")))
        assert draft.selections[0].count == 2
        assert remaining_points(draft) == 0

    def test_new_experience_can_be_boosted(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(4)), "experiences")
        draft = resolve_pending(
            draft, SelectionDetails(selected_experiences=("exp-1", "new-exp-5"))
        )
        assert draft.selections[0].details.selected_experiences == ("exp-1", "new-exp-5")

    def test_unknown_experience_rejected(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(2)), "experiences")
        with pytest.raises(SupplementaryInputError):
            resolve_pending(draft, SelectionDetails(selected_experiences=("exp-1", "exp-9")))

    def test_domain_card_cannot_repeat_free_card(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(2)), "domain-card")
        with pytest.raises(SupplementaryInputError):
            resolve_pending(draft, SelectionDetails(selected_domain_card="Book of Sitil"))

    def test_domain_card_checked_against_catalog(self, make_context, to_advancement, domain_cards):
        draft = select_option(to_advancement(make_context(2)), "domain-card")
        names = [c.name for c in domain_card_choices(draft, domain_cards)]
        assert "Book of Sitil" not in names
        with pytest.raises(SupplementaryInputError):
            resolve_pending(
                draft, SelectionDetails(selected_domain_card="Gifted Tracker"), domain_cards
            )
        draft = resolve_pending(
            draft, SelectionDetails(selected_domain_card=names[0]), domain_cards
        )
        assert draft.selections[0].option_id == "domain-card"

    def test_multiclass_into_held_class_rejected(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(4)), "multiclass")
        choice = MulticlassChoice("Wizard", "School of War", ("Codex",))
        with pytest.raises(SupplementaryInputError):
            resolve_pending(draft, SelectionDetails(selected_multiclass=choice))

    def test_multiclass_domains_checked(self, make_context, to_advancement, classes):
        draft = select_option(to_advancement(make_context(4)), "multiclass")
        choice = MulticlassChoice("Rogue", "Syndicate", ("Bone",))
        with pytest.raises(SupplementaryInputError):
            resolve_pending(draft, SelectionDetails(selected_multiclass=choice), classes=classes)
        choice = MulticlassChoice("Rogue", "Syndicate", ("Grace",))
        draft = resolve_pending(draft, SelectionDetails(selected_multiclass=choice), classes=classes)
        assert remaining_points(draft) == 0

    def test_subclass_upgrade_checked_against_catalog(self, make_context, to_advancement, classes):
        context = make_context(
            4, unlocked_subclass_features={"Wizard:School of Knowledge": ("Prepared", "Adept")}
        )
        draft = to_advancement(context)
        assert [u.feature_name for u in subclass_upgrade_choices(draft, classes)] == ["Accomplished"]

        draft = select_option(draft, "subclass")
        mastery = SubclassUpgrade("Wizard", "School of Knowledge", "Brilliant", "mastery")
        with pytest.raises(SupplementaryInputError):
            resolve_pending(draft, SelectionDetails(selected_subclass_upgrade=mastery), classes=classes)

        upgrade = SubclassUpgrade("Wizard", "School of Knowledge", "Accomplished", "specialization")
        draft = resolve_pending(draft, SelectionDetails(selected_subclass_upgrade=upgrade), classes=classes)
        assert draft.selections == (
            Selection("subclass", 1, SelectionDetails(selected_subclass_upgrade=upgrade)),
        )

    def test_subclass_upgrade_for_unheld_subclass(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(4)), "subclass")
        upgrade = SubclassUpgrade("Rogue", "Syndicate", "Contacts Everywhere", "specialization")
        with pytest.raises(SupplementaryInputError):
            resolve_pending(draft, SelectionDetails(selected_subclass_upgrade=upgrade))

    def test_subclass_feature_type_checked_without_catalog(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(5)), "subclass")
        bogus = SubclassUpgrade("Wizard", "School of Knowledge", "Accomplished", "bogus-type")
        with pytest.raises(SupplementaryInputError):
            resolve_pending(draft, SelectionDetails(selected_subclass_upgrade=bogus))
        assert draft.pending_option == "subclass"

    def test_mastery_needs_tier_four_without_catalog(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(4)), "subclass")
        mastery = SubclassUpgrade("Wizard", "School of Knowledge", "Brilliant", "mastery")
        with pytest.raises(SupplementaryInputError):
            resolve_pending(draft, SelectionDetails(selected_subclass_upgrade=mastery))

        upgrade = SubclassUpgrade("Wizard", "School of Knowledge", "Accomplished", "specialization")
        draft = resolve_pending(draft, SelectionDetails(selected_subclass_upgrade=upgrade))
        assert [s.option_id for s in draft.selections] == ["subclass"]

    def test_mastery_accepted_in_tier_four_without_catalog(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(7)), "subclass")
        mastery = SubclassUpgrade("Wizard", "School of Knowledge", "Brilliant", "mastery")
        draft = resolve_pending(draft, SelectionDetails(selected_subclass_upgrade=mastery))
        assert draft.pending_option is None

    def test_companion_training_counts_step_pick(self, ranger_context):
        draft = advance(choose_free_domain_card(start_level_up(ranger_context), "Book of Sitil"))
        draft = choose_companion_training(draft, CompanionTrainingChoice("bonded"))
        draft = select_option(advance(draft), "companion-training")
        with pytest.raises(SupplementaryInputError):
            resolve_pending(draft, SelectionDetails(selected_companion_training="bonded"))
        draft = resolve_pending(draft, SelectionDetails(selected_companion_training="armored"))
        assert draft.selections[0].details.selected_companion_training == "armored"

    def test_remove_undoes_one_round(self, make_context, to_advancement):
        draft = to_advancement(make_context(2))
        draft = select_option(select_option(draft, "hp"), "hp")
        draft = remove_option(draft, "hp")
        assert draft.selections == (Selection("hp", 1),)
        assert remaining_points(draft) == 1

    def test_go_back_keeps_selections(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(2)), "hp")
        draft = go_back(draft)
        assert draft.step == LevelUpStep.AUTOMATIC_BENEFITS
        assert draft.selections == (Selection("hp", 1),)
        assert advance(draft).selections == (Selection("hp", 1),)


class TestOptionStates:
    """Tests for option_states()."""

    def test_counts_and_reasons(self, make_context, to_advancement):
        draft = to_advancement(make_context(3, tier_history={"hp": 1}))
        draft = select_option(draft, "hp")
        states = {s.option.option_id: s for s in option_states(draft)}

        assert states["hp"].count == 1
        assert states["hp"].history_count == 1
        assert states["hp"].maxed
        assert not states["hp"].selectable
        assert states["stress"].selectable


class TestConfirmAndCancel:
    """Tests for confirm() and cancel()."""

    def test_confirm_result(self, make_context, to_advancement):
        draft = to_advancement(make_context(2))
        draft = select_option(select_option(draft, "hp"), "stress")
        result = confirm(draft)
        assert result.new_level == 3
        assert result.new_tier == Tier.TIER_2
        assert [s.option_id for s in result.selections] == ["hp", "stress"]

    def test_confirm_rejected_with_points_left(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(2)), "hp")
        with pytest.raises(InvalidTransitionError) as exc_info:
            confirm(draft)
        assert "1 advancement point" in str(exc_info.value)

    def test_confirm_rejected_before_advancement(self, make_context):
        with pytest.raises(InvalidTransitionError):
            confirm(start_level_up(make_context(2)))

    def test_cancel_discards_selections(self, make_context, to_advancement):
        draft = select_option(to_advancement(make_context(2)), "hp")
        draft = select_option(draft, "traits")
        cancelled = cancel(draft)
        assert cancelled.step == LevelUpStep.CANCELLED
        assert cancelled.selections == ()
        assert not cancelled.is_pending

    def test_cancelled_draft_is_terminal(self, make_context, to_advancement):
        cancelled = cancel(to_advancement(make_context(2)))
        with pytest.raises(InvalidTransitionError):
            cancel(cancelled)
        with pytest.raises(InvalidTransitionError):
            select_option(cancelled, "hp")
        with pytest.raises(InvalidTransitionError):
            advance(cancelled)
        assert not can_advance(cancelled)
        assert not can_confirm(cancelled)


class TestMulticlassCharacterOptions:
    """Gated options for a character holding two classes."""

    def test_companion_training_for_second_class(self, make_context, wizard_pair, ranger_pair, companion, to_advancement):
        context = make_context(4, class_pairs=(wizard_pair, ranger_pair), companion=companion)
        assert "companion-training" in ids(available_options(to_advancement(context)))

    def test_other_subclass_not_gated_in(self, make_context, wizard_pair, to_advancement):
        context = make_context(4, class_pairs=(wizard_pair, ClassPair("Ranger", "Wayfinder", ("Bone",))))
        assert "companion-training" not in ids(available_options(to_advancement(context)))
