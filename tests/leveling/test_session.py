"""
Tests for LevelUpSession and the run-log entries it records.
"""

import pytest

from src.leveling.errors import InvalidTransitionError, SupplementaryInputError
from src.leveling.models import LevelUpStep, MulticlassChoice, SelectionDetails
from src.leveling.orchestrator import LevelUpSession
from src.observability.run_log import EventType, get_run_log


@pytest.fixture
def session(catalogs):
    domain_cards, classes = catalogs
    return LevelUpSession(domain_cards=domain_cards, classes=classes)


def walk_to_advancement(session, context):
    session.begin(context)
    session.choose_free_domain_card("Book of Sitil")
    if session.draft.gets_new_experience:
        session.name_new_experience("Archivist")
    session.advance()
    return session.draft


class TestSessionLifecycle:
    """Tests for begin/cancel/confirm."""

    def test_inactive_session(self, session):
        assert not session.is_active
        assert session.draft is None
        assert not session.can_advance()
        assert not session.can_confirm()
        with pytest.raises(InvalidTransitionError):
            session.select("hp")

    def test_single_active_draft(self, session, make_context):
        session.begin(make_context(2))
        with pytest.raises(InvalidTransitionError):
            session.begin(make_context(2))

    def test_cancel_clears_draft(self, session, make_context):
        session.begin(make_context(2))
        session.cancel()
        assert not session.is_active
        session.cancel()
        session.begin(make_context(3))
        assert session.draft.target_level == 4

    def test_confirm_stores_result(self, session, make_context):
        walk_to_advancement(session, make_context(2))
        session.select("hp")
        session.select("evasion")
        assert session.can_confirm()

        result = session.confirm()
        assert not session.is_active
        assert session.last_result is result
        assert result.new_level == 3

    def test_confirm_rejected_keeps_draft(self, session, make_context):
        walk_to_advancement(session, make_context(2))
        with pytest.raises(InvalidTransitionError):
            session.confirm()
        assert session.is_active

    def test_session_checks_catalogs(self, session, make_context):
        session.begin(make_context(1))
        with pytest.raises(SupplementaryInputError):
            session.choose_free_domain_card("Book of Korvax")

    def test_catalog_choice_helpers(self, session, make_context):
        walk_to_advancement(session, make_context(4))
        assert "Book of Sitil" not in [c.name for c in session.domain_card_choices()]
        assert {c.class_name for c in session.multiclass_choices()} == {"Guardian", "Ranger", "Rogue"}
        assert session.points_remaining() == 2

    def test_helpers_without_catalogs(self, make_context):
        session = LevelUpSession()
        session.begin(make_context(2))
        assert session.free_domain_card_choices() == []
        assert session.multiclass_choices() == []
        assert session.subclass_upgrade_choices() == []


class TestSessionRunLog:
    """Tests for the run-log entries recorded by a session."""

    def test_begin_logged(self, session, make_context):
        session.begin(make_context(4))
        log = get_run_log()
        custom = log.get_events(EventType.CUSTOM)
        assert custom[0].context["event_name"] == "level_up_started"
        assert custom[0].context["tier_changed"] is True
        transition = log.get_transitions()[0]
        assert (transition.from_step, transition.to_step) == ("none", "automatic-benefits")

    def test_step_changes_logged(self, session, make_context):
        walk_to_advancement(session, make_context(2))
        session.go_back()
        steps = [(t.from_step, t.to_step, t.trigger) for t in get_run_log().get_transitions()]
        assert steps[1:] == [
            ("automatic-benefits", "advancement-options", "advance"),
            ("advancement-options", "automatic-benefits", "go_back"),
        ]

    def test_choices_without_step_change_not_logged_as_transitions(self, session, make_context):
        session.begin(make_context(2))
        session.choose_free_domain_card("Book of Sitil")
        assert len(get_run_log().get_transitions()) == 1

    def test_selection_actions_logged(self, session, make_context):
        walk_to_advancement(session, make_context(4))
        session.select("multiclass")
        session.resolve(
            SelectionDetails(selected_multiclass=MulticlassChoice("Rogue", "Syndicate", ("Midnight",)))
        )
        session.select("subclass")
        session.remove("multiclass")

        actions = [(s.action, s.option_id) for s in get_run_log().get_selections()]
        assert actions == [
            ("pending", "multiclass"),
            ("resolve", "multiclass"),
            ("refused", "subclass"),
            ("remove", "multiclass"),
        ]
        resolve = get_run_log().get_selections()[1]
        assert resolve.count == 1
        assert resolve.points_remaining == 0
        assert resolve.details["selected_multiclass"]["class_name"] == "Rogue"

    def test_confirm_logged(self, session, make_context):
        walk_to_advancement(session, make_context(2))
        session.select("hp")
        session.select("stress")
        session.confirm()

        log = get_run_log()
        assert log.get_transitions()[-1].to_step == LevelUpStep.CONFIRMED.value
        assert log.get_events(EventType.CUSTOM)[-1].context["event_name"] == "level_up_confirmed"

    def test_cancel_logged(self, session, make_context):
        session.begin(make_context(2))
        session.cancel()
        last = get_run_log().get_transitions()[-1]
        assert (last.from_step, last.to_step, last.trigger) == (
            "automatic-benefits",
            "cancelled",
            "cancel",
        )
