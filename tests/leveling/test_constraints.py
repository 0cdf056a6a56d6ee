"""
Tests for constraint evaluation: budget, caps, exclusions and resources.
"""

import pytest

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
from src.leveling.models import ExperienceState, Selection, SelectionDetails, TraitState
from src.leveling.options import get_catalog, get_option


FULL_POOL = ResourcePool(traits=("Agility", "Strength"), experiences=("exp-1", "exp-2"))


class TestBudget:
    """Tests for points_spent() and points_remaining()."""

    def test_empty_ledger(self):
        assert points_spent((), get_catalog().values()) == 0
        assert points_remaining((), get_catalog().values(), 2) == 2

    def test_cost_times_count(self):
        selections = (Selection("hp", 2), Selection("proficiency", 1))
        assert points_spent(selections, get_catalog().values()) == 4

    def test_unknown_ids_cost_nothing(self):
        selections = (Selection("hp", 1), Selection("retired-option", 5))
        assert points_spent(selections, get_catalog().values()) == 1

    def test_selection_count(self):
        selections = (Selection("hp", 2),)
        assert selection_count("hp", selections) == 2
        assert selection_count("stress", selections) == 0


class TestCapsAndExclusion:
    """Tests for is_maxed_for_tier() and is_mutually_excluded()."""

    def test_maxed_by_draft(self):
        assert is_maxed_for_tier(get_option("hp"), (Selection("hp", 2),), {})

    def test_maxed_by_history(self):
        """Scenario: evasion taken earlier this tier blocks it now."""
        assert is_maxed_for_tier(get_option("evasion"), (), {"evasion": 1})

    def test_draft_plus_history(self):
        assert is_maxed_for_tier(get_option("traits"), (Selection("traits", 1),), {"traits": 2})
        assert not is_maxed_for_tier(get_option("traits"), (Selection("traits", 1),), {"traits": 1})

    def test_exclusion_from_draft_both_directions(self):
        assert is_mutually_excluded(get_option("subclass"), (Selection("multiclass"),), {})
        assert is_mutually_excluded(get_option("multiclass"), (Selection("subclass"),), {})

    def test_exclusion_from_history_both_directions(self):
        assert is_mutually_excluded(get_option("subclass"), (), {"multiclass": 1})
        assert is_mutually_excluded(get_option("multiclass"), (), {"subclass": 1})

    def test_zero_history_does_not_exclude(self):
        assert not is_mutually_excluded(get_option("subclass"), (), {"multiclass": 0})


class TestResources:
    """Tests for available_traits(), available_experiences() and has_sufficient_resources()."""

    def test_marked_traits_unavailable(self):
        traits = (TraitState("Agility", marked=True), TraitState("Strength"), TraitState("Finesse"))
        assert available_traits(traits, ()) == ("Strength", "Finesse")

    def test_traits_selected_this_session_unavailable(self, traits):
        selections = (
            Selection("traits", 1, SelectionDetails(selected_traits=("Agility", "Finesse"))),
        )
        available = available_traits(traits, selections)
        assert "Agility" not in available
        assert "Finesse" not in available
        assert len(available) == 4

    def test_new_experience_is_boostable(self, experiences):
        new = ExperienceState("new-exp-5", "Archivist")
        assert available_experiences(experiences, (), new) == ("exp-1", "exp-2", "new-exp-5")

    def test_boosted_experiences_unavailable(self, experiences):
        selections = (
            Selection("experiences", 1, SelectionDetails(selected_experiences=("exp-1", "exp-2"))),
        )
        assert available_experiences(experiences, selections) == ()

    def test_trait_boost_needs_two(self):
        option = get_option("traits")
        assert has_sufficient_resources(option, ("Agility", "Strength"), ())
        assert not has_sufficient_resources(option, ("Agility",), ())

    def test_experience_boost_needs_two(self):
        option = get_option("experiences")
        assert not has_sufficient_resources(option, (), ("exp-1",))

    def test_other_options_always_sufficient(self):
        assert has_sufficient_resources(get_option("hp"), (), ())


class TestIsSelectable:
    """Tests for the is_selectable() gate."""

    def test_open_gate(self):
        assert is_selectable(get_option("hp"), (), {}, 2, FULL_POOL)

    def test_over_budget(self):
        assert not is_selectable(get_option("proficiency"), (), {}, 1, FULL_POOL)

    def test_history_maxed_with_full_budget(self):
        """An option at its cap through history is rejected even with the whole budget."""
        option = get_option("domain-card")
        assert is_maxed_for_tier(option, (), {"domain-card": 1})
        assert not is_selectable(option, (), {"domain-card": 1}, 2, FULL_POOL)

    def test_insufficient_resources(self):
        pool = ResourcePool(traits=("Agility",), experiences=())
        assert not is_selectable(get_option("traits"), (), {}, 2, pool)

    def test_explain_lists_every_reason(self):
        reasons = explain_unselectable(
            get_option("subclass"),
            (Selection("multiclass"),),
            {"subclass": 1},
            0,
            FULL_POOL,
        )
        assert reasons == [BlockReason.EXCLUDED, BlockReason.MAXED, BlockReason.OVER_BUDGET]

    @pytest.mark.parametrize("option_id", ["hp", "traits", "experiences", "evasion"])
    def test_explain_empty_when_selectable(self, option_id):
        assert explain_unselectable(get_option(option_id), (), {}, 2, FULL_POOL) == []
