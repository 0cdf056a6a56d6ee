"""
Daggerheart Level-Up - Main Entry Point

Replays a level-up plan against a character file and prints the confirmed
result, the merged tier history and, optionally, the updated character.

    python -m src.main --character char.json --plan plan.json

A plan is a JSON object:

    {
        "free_domain_card": "Book of Sitil",
        "new_experience": "Archivist",
        "companion_training": {"training_id": "aware"},
        "selections": [
            {"option_id": "hp"},
            {"option_id": "traits", "details": {"selected_traits": ["Agility", "Strength"]}}
        ]
    }
"""

import sys
from pathlib import Path

# Add the project root to the Python path for module discovery
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import argparse
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from src.catalog import default_catalogs, load_catalogs
from src.config import LevelUpConfig, load_config, setup_logging
from src.leveling import (
    CharacterSheet,
    CompanionTrainingChoice,
    LevelUpError,
    LevelUpResult,
    LevelUpSession,
    LevelUpStep,
    SelectionDetails,
    apply_level_up,
    merge_tier_history,
)
from src.observability import get_run_log

logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_UNBALANCED = 1
EXIT_ERROR = 2


@dataclass
class PlannedSelection:
    """One advancement option in a plan, with its supplementary input."""
    option_id: str
    details: Optional[SelectionDetails] = None


@dataclass
class LevelUpPlan:
    """The choices to replay for one level-up."""
    free_domain_card: Optional[str] = None
    new_experience: Optional[str] = None
    companion_training: Optional[CompanionTrainingChoice] = None
    selections: list[PlannedSelection] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LevelUpPlan":
        training = data.get("companion_training")
        return cls(
            free_domain_card=data.get("free_domain_card"),
            new_experience=data.get("new_experience"),
            companion_training=CompanionTrainingChoice.from_dict(training) if training else None,
            selections=[
                PlannedSelection(
                    option_id=s["option_id"],
                    details=SelectionDetails.from_dict(s["details"]) if s.get("details") else None,
                )
                for s in data.get("selections", [])
            ],
        )


def _load_json(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def replay_plan(session: LevelUpSession, sheet: CharacterSheet, plan: LevelUpPlan) -> Optional[LevelUpResult]:
    """
    Drive a session through a plan.

    Returns:
        The confirmed result, or None if the plan leaves points unspent or
        overspent (the draft is cancelled)

    Raises:
        LevelUpError: If the plan contains invalid input
    """
    session.begin(sheet.to_context())

    if plan.free_domain_card:
        session.choose_free_domain_card(plan.free_domain_card)
    if plan.new_experience:
        session.name_new_experience(plan.new_experience)
    session.advance()

    if session.draft.step == LevelUpStep.COMPANION_BENEFITS:
        if plan.companion_training is not None:
            session.choose_companion_training(plan.companion_training)
        session.advance()

    for planned in plan.selections:
        draft = session.select(planned.option_id)
        if draft.is_pending:
            if planned.details is None:
                logger.warning(f"Plan gives no details for '{planned.option_id}'; skipping")
                session.cancel_pending()
                continue
            session.resolve(planned.details)

    if not session.can_confirm():
        logger.error(
            f"Plan leaves {session.points_remaining()} advancement point(s) unspent"
        )
        session.cancel()
        return None
    return session.confirm()


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Daggerheart Level-Up - replay a level-up plan against a character",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m src.main --character ranger.json --plan level5.json
  python -m src.main --character ranger.json --plan level5.json --apply
  python -m src.main --character ranger.json --plan level5.json --content-dir data/content
        """
    )
    parser.add_argument(
        "--character",
        type=Path,
        required=True,
        help="Character JSON file",
    )
    parser.add_argument(
        "--plan",
        type=Path,
        required=True,
        help="Level-up plan JSON file",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Rules configuration JSON file",
    )
    parser.add_argument(
        "--content-dir",
        type=Path,
        help="Directory with domain_cards/ and classes/ JSON (default: built-in SRD sample)",
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Also print the character after applying the level-up",
    )
    parser.add_argument(
        "--run-log",
        type=Path,
        help="Save the run log to this file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> LevelUpConfig:
    """Create configuration from command line arguments."""
    data = load_config(args.config).to_dict() if args.config else {}
    if args.content_dir:
        data["content_dir"] = args.content_dir
    data["verbose"] = args.verbose or data.get("verbose", False)
    return LevelUpConfig.from_dict(data)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    try:
        config = create_config_from_args(args)
        if config.content_dir:
            domain_cards, classes = load_catalogs(config.content_dir)
        else:
            domain_cards, classes = default_catalogs()

        sheet = CharacterSheet.from_dict(_load_json(args.character))
        plan = LevelUpPlan.from_dict(_load_json(args.plan))

        session = LevelUpSession(config, domain_cards=domain_cards, classes=classes)
        result = replay_plan(session, sheet, plan)
    except (LevelUpError, OSError, ValueError, KeyError) as e:
        logger.error(f"Level-up failed: {e}")
        return EXIT_ERROR
    finally:
        if args.run_log:
            get_run_log().save(str(args.run_log))

    if result is None:
        return EXIT_UNBALANCED

    output: dict[str, Any] = {
        "result": result.to_dict(),
        "tier_history": merge_tier_history(result, sheet.tier, sheet.tier_history),
    }
    if args.apply:
        output["character"] = apply_level_up(sheet, result, config).to_dict()
    print(json.dumps(output, indent=2))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
