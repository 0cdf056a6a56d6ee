"""
Pytest fixtures for the Daggerheart level-up test suite.

Provides reusable character snapshots, catalogs and helpers for driving a
draft to the advancement-options step.
"""

import pytest

from src.catalog import default_catalogs
from src.leveling.models import (
    ClassPair,
    CompanionExperience,
    CompanionState,
    ExperienceState,
    LevelUpContext,
    TraitState,
)
from src.leveling.orchestrator import (
    advance,
    choose_free_domain_card,
    name_new_experience,
    start_level_up,
)
from src.leveling.tiers import resolve_tier
from src.observability.run_log import reset_run_log


TRAIT_NAMES = ("Agility", "Strength", "Finesse", "Instinct", "Presence", "Knowledge")


# =============================================================================
# RUN LOG
# =============================================================================


@pytest.fixture(autouse=True)
def clean_run_log():
    """Give every test an empty run log."""
    log = reset_run_log()
    yield log
    reset_run_log()


# =============================================================================
# CHARACTER FIXTURES
# =============================================================================


@pytest.fixture
def traits():
    """Six unmarked traits."""
    return tuple(TraitState(name=name, value=0) for name in TRAIT_NAMES)


@pytest.fixture
def experiences():
    """Two starting experiences."""
    return (
        ExperienceState("exp-1", "Tracker", 2),
        ExperienceState("exp-2", "Survivalist", 2),
    )


@pytest.fixture
def wizard_pair():
    return ClassPair("Wizard", "School of Knowledge", ("Codex", "Splendor"))


@pytest.fixture
def ranger_pair():
    return ClassPair("Ranger", "Beastbound", ("Bone", "Sage"))


@pytest.fixture
def companion():
    """A Beastbound companion with no training yet."""
    return CompanionState(
        name="Ash",
        training={},
        experiences=(CompanionExperience("Scout"), CompanionExperience("Guard")),
    )


@pytest.fixture
def make_context(traits, experiences, wizard_pair):
    """Factory for a LevelUpContext at a given level."""

    def _make(level: int = 1, **overrides) -> LevelUpContext:
        values = dict(
            current_level=level,
            current_tier=resolve_tier(level),
            traits=traits,
            experiences=experiences,
            tier_history={},
            class_pairs=(wizard_pair,),
            owned_domain_cards=frozenset({"Book of Ava"}),
        )
        values.update(overrides)
        return LevelUpContext(**values)

    return _make


@pytest.fixture
def ranger_context(make_context, ranger_pair, companion):
    """A level 2 Beastbound Ranger with a companion."""
    return make_context(
        2,
        class_pairs=(ranger_pair,),
        owned_domain_cards=frozenset({"Gifted Tracker"}),
        companion=companion,
    )


# =============================================================================
# CATALOG FIXTURES
# =============================================================================


@pytest.fixture
def catalogs():
    """Built-in SRD sample catalogs (domain cards, classes)."""
    return default_catalogs()


@pytest.fixture
def domain_cards(catalogs):
    return catalogs[0]


@pytest.fixture
def classes(catalogs):
    return catalogs[1]


# =============================================================================
# DRAFT HELPERS
# =============================================================================


@pytest.fixture
def to_advancement():
    """Helper that starts a level-up and walks it to the advancement-options step."""

    def _walk(context, card: str = "Book of Sitil", experience: str = "Archivist"):
        draft = start_level_up(context)
        draft = choose_free_domain_card(draft, card)
        if draft.gets_new_experience:
            draft = name_new_experience(draft, experience)
        draft = advance(draft)
        if context.has_companion:
            draft = advance(draft)
        return draft

    return _walk
