"""
Companion training for Beastbound Rangers.

A companion gains one training each level (the companion-benefits step), and
Beastbound characters may also buy extra training as an advancement option.
Counted trainings can be taken up to three times; the rest only once.
"""

from dataclasses import dataclass
from typing import Optional

from src.leveling.errors import SupplementaryInputError
from src.leveling.models import CompanionState, CompanionTrainingChoice


@dataclass(frozen=True)
class TrainingOption:
    """One companion training from the Beastbound sheet."""
    training_id: str
    label: str
    description: str
    max_selections: int
    targets_experience: bool = False


COMPANION_TRAINING_OPTIONS: tuple[TrainingOption, ...] = (
    TrainingOption(
        "intelligent",
        "Intelligent",
        "+1 Companion Experience bonus (max +3 total)",
        3,
        targets_experience=True,
    ),
    TrainingOption("vicious", "Vicious", "Upgrade damage die by one step (max 3 upgrades)", 3),
    TrainingOption("resilient", "Resilient", "+1 Stress Slot (max 3 extra slots)", 3),
    TrainingOption("aware", "Aware", "+2 Evasion (max +6 total)", 3),
    TrainingOption(
        "lightInTheDark",
        "Light in the Dark",
        "Gain an additional Hope slot while your companion is with you",
        1,
    ),
    TrainingOption(
        "creatureComfort",
        "Creature Comfort",
        "Clear +1 Stress when taking a short rest with your companion",
        1,
    ),
    TrainingOption("armored", "Armored", "Companion gains +2 Armor", 1),
    TrainingOption("bonded", "Bonded", "Telepathic communication with your companion", 1),
)

_TRAINING_BY_ID: dict[str, TrainingOption] = {t.training_id: t for t in COMPANION_TRAINING_OPTIONS}


def get_training_option(training_id: str) -> Optional[TrainingOption]:
    """Get a training option by id."""
    return _TRAINING_BY_ID.get(training_id)


def is_training_available(option: TrainingOption, companion: CompanionState) -> bool:
    return companion.training_count(option.training_id) < option.max_selections


def available_training(companion: Optional[CompanionState]) -> list[TrainingOption]:
    """Trainings the companion has not maxed out."""
    if companion is None:
        return []
    return [t for t in COMPANION_TRAINING_OPTIONS if is_training_available(t, companion)]


def validate_training_choice(
    companion: Optional[CompanionState],
    choice: CompanionTrainingChoice,
) -> None:
    """
    Check a training choice against the companion.

    Raises:
        SupplementaryInputError: If there is no companion, the training is
            unknown or maxed, or an Intelligent pick does not name a valid
            companion experience
    """
    if companion is None:
        raise SupplementaryInputError("Companion training requires a companion")

    option = get_training_option(choice.training_id)
    if option is None:
        raise SupplementaryInputError(f"Unknown companion training: '{choice.training_id}'")
    if not is_training_available(option, companion):
        raise SupplementaryInputError(
            f"Companion training '{option.label}' is already at its maximum "
            f"({option.max_selections})"
        )

    if option.targets_experience and companion.experiences:
        index = choice.experience_index
        if index is None or not 0 <= index < len(companion.experiences):
            raise SupplementaryInputError(
                f"'{option.label}' requires the index of one of "
                f"{len(companion.experiences)} companion experiences, got {index}"
            )
