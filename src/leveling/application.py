"""
Applying a confirmed level-up to a character sheet.

The engine itself never touches character data. apply_level_up is the
reference for what a persistence layer does with a LevelUpResult: it returns
a new CharacterSheet and leaves the old one untouched.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional
import logging

from src.config import DEFAULT_CONFIG, LevelUpConfig
from src.leveling.companion import get_training_option
from src.leveling.history import merge_tier_history
from src.leveling.models import (
    ClassPair,
    CompanionState,
    ExperienceState,
    LevelUpContext,
    LevelUpResult,
    Selection,
    TraitState,
)
from src.leveling.tiers import Tier, resolve_tier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CharacterSheet:
    """The parts of a character a level-up can change."""
    level: int = 1
    traits: tuple[TraitState, ...] = ()
    experiences: tuple[ExperienceState, ...] = ()
    class_pairs: tuple[ClassPair, ...] = ()
    domain_cards: tuple[str, ...] = ()
    unlocked_subclass_features: dict[str, tuple[str, ...]] = field(default_factory=dict)
    tier_history: dict[str, int] = field(default_factory=dict)
    companion: Optional[CompanionState] = None

    # Scores
    hit_points: int = 6
    stress: int = 6
    evasion: int = 10
    proficiency: int = 1
    major_threshold: int = 1
    severe_threshold: int = 2

    @property
    def tier(self) -> Tier:
        return resolve_tier(self.level)

    @property
    def domains(self) -> list[str]:
        seen: list[str] = []
        for pair in self.class_pairs:
            for domain in pair.domains:
                if domain not in seen:
                    seen.append(domain)
        return seen

    def to_context(self) -> LevelUpContext:
        """Snapshot the sheet for starting a level-up."""
        return LevelUpContext(
            current_level=self.level,
            current_tier=self.tier,
            traits=self.traits,
            experiences=self.experiences,
            tier_history=dict(self.tier_history),
            class_pairs=self.class_pairs,
            owned_domain_cards=frozenset(self.domain_cards),
            unlocked_subclass_features=dict(self.unlocked_subclass_features),
            companion=self.companion,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CharacterSheet":
        context = LevelUpContext.from_dict(data)
        return cls(
            level=context.current_level,
            traits=context.traits,
            experiences=context.experiences,
            class_pairs=context.class_pairs,
            domain_cards=tuple(data.get("domain_cards", data.get("owned_domain_cards", []))),
            unlocked_subclass_features=context.unlocked_subclass_features,
            tier_history=context.tier_history,
            companion=context.companion,
            hit_points=data.get("hit_points", 6),
            stress=data.get("stress", 6),
            evasion=data.get("evasion", 10),
            proficiency=data.get("proficiency", 1),
            major_threshold=data.get("major_threshold", 1),
            severe_threshold=data.get("severe_threshold", 2),
        )

    def to_dict(self) -> dict[str, Any]:
        companion = None
        if self.companion is not None:
            companion = {
                "name": self.companion.name,
                "training": dict(self.companion.training),
                "experiences": [
                    {"name": e.name, "bonus": e.bonus} for e in self.companion.experiences
                ],
            }
        return {
            "level": self.level,
            "tier": self.tier.value,
            "traits": [
                {"name": t.name, "value": t.value, "marked": t.marked} for t in self.traits
            ],
            "experiences": [
                {"id": e.experience_id, "name": e.name, "value": e.value}
                for e in self.experiences
            ],
            "class_pairs": [p.to_dict() for p in self.class_pairs],
            "domain_cards": list(self.domain_cards),
            "unlocked_subclass_features": {
                k: list(v) for k, v in self.unlocked_subclass_features.items()
            },
            "tier_history": dict(self.tier_history),
            "companion": companion,
            "hit_points": self.hit_points,
            "stress": self.stress,
            "evasion": self.evasion,
            "proficiency": self.proficiency,
            "major_threshold": self.major_threshold,
            "severe_threshold": self.severe_threshold,
        }


# =============================================================================
# HELPERS
# =============================================================================


def _add_card(cards: tuple[str, ...], card: Optional[str]) -> tuple[str, ...]:
    if not card or card.lower() in {c.lower() for c in cards}:
        return cards
    return cards + (card,)


def _boost_traits(traits: tuple[TraitState, ...], names: tuple[str, ...]) -> tuple[TraitState, ...]:
    boosted = set(names)
    return tuple(
        replace(t, value=t.value + 1, marked=True) if t.name in boosted else t
        for t in traits
    )


def _boost_experiences(
    experiences: tuple[ExperienceState, ...],
    experience_ids: tuple[str, ...],
) -> tuple[ExperienceState, ...]:
    boosted = set(experience_ids)
    return tuple(
        replace(e, value=e.value + 1) if e.experience_id in boosted else e
        for e in experiences
    )


def apply_companion_training(
    companion: Optional[CompanionState],
    training_id: str,
    experience_index: Optional[int] = None,
) -> Optional[CompanionState]:
    """
    Record one training on a companion.

    Counted trainings increment; single-pick trainings are set to 1.
    Intelligent also raises the chosen companion Experience by 1.
    """
    if companion is None:
        return None
    option = get_training_option(training_id)
    if option is None:
        logger.warning(f"Ignoring unknown companion training '{training_id}'")
        return companion

    training = dict(companion.training)
    training[training_id] = min(training.get(training_id, 0) + 1, option.max_selections)

    experiences = companion.experiences
    if option.targets_experience and experience_index is not None:
        if 0 <= experience_index < len(experiences):
            experiences = tuple(
                replace(e, bonus=e.bonus + 1) if i == experience_index else e
                for i, e in enumerate(experiences)
            )
    return replace(companion, training=training, experiences=experiences)


def _apply_selection(
    sheet: CharacterSheet,
    selection: Selection,
    new_experience_id: str,
) -> CharacterSheet:
    details = selection.details
    option_id = selection.option_id

    if option_id == "hp":
        return replace(sheet, hit_points=sheet.hit_points + selection.count)
    if option_id == "stress":
        return replace(sheet, stress=sheet.stress + selection.count)
    if option_id == "evasion":
        return replace(sheet, evasion=sheet.evasion + selection.count)
    if option_id == "proficiency":
        return replace(sheet, proficiency=sheet.proficiency + selection.count)
    if details is None:
        return sheet

    if option_id == "traits":
        return replace(sheet, traits=_boost_traits(sheet.traits, details.selected_traits))

    if option_id == "experiences":
        # The new Experience is added with its boost already included
        ids = tuple(i for i in details.selected_experiences if i != new_experience_id)
        return replace(sheet, experiences=_boost_experiences(sheet.experiences, ids))

    if option_id == "domain-card":
        return replace(sheet, domain_cards=_add_card(sheet.domain_cards, details.selected_domain_card))

    if option_id == "multiclass" and details.selected_multiclass:
        choice = details.selected_multiclass
        pair = ClassPair(choice.class_name, choice.subclass_name, choice.domains)
        unlocked = dict(sheet.unlocked_subclass_features)
        unlocked.setdefault(pair.key, ())
        return replace(
            sheet,
            class_pairs=sheet.class_pairs + (pair,),
            unlocked_subclass_features=unlocked,
        )

    if option_id == "subclass" and details.selected_subclass_upgrade:
        upgrade = details.selected_subclass_upgrade
        key = f"{upgrade.class_name}:{upgrade.subclass_name}"
        unlocked = dict(sheet.unlocked_subclass_features)
        unlocked[key] = tuple(unlocked.get(key, ())) + (upgrade.feature_name,)
        return replace(sheet, unlocked_subclass_features=unlocked)

    if option_id == "companion-training" and details.selected_companion_training:
        return replace(
            sheet,
            companion=apply_companion_training(
                sheet.companion,
                details.selected_companion_training,
                details.companion_experience_index,
            ),
        )

    return sheet


def apply_level_up(
    sheet: CharacterSheet,
    result: LevelUpResult,
    config: LevelUpConfig = DEFAULT_CONFIG,
) -> CharacterSheet:
    """
    Apply a confirmed level-up to a character sheet.

    Order: progression and tier history, automatic benefits, each selection,
    the companion-benefits training, then damage thresholds.

    Args:
        sheet: The sheet the level-up started from
        result: The confirmed level-up
        config: Rules configuration (new Experience value)

    Returns:
        A new sheet
    """
    if result.new_level != sheet.level + 1:
        logger.warning(
            f"Applying level {result.new_level} result to a level {sheet.level} sheet"
        )

    new_experience_id = f"new-exp-{result.new_level}"
    benefits = result.automatic_benefits

    updated = replace(
        sheet,
        level=result.new_level,
        tier_history=merge_tier_history(result, sheet.tier, sheet.tier_history),
    )

    # Automatic benefits
    if benefits.proficiency_gained:
        updated = replace(updated, proficiency=updated.proficiency + 1)

    if benefits.experience_gained and benefits.experience_name:
        boosted = any(
            new_experience_id in (s.details.selected_experiences if s.details else ())
            for s in result.selections
            if s.option_id == "experiences"
        )
        value = config.new_experience_value + (1 if boosted else 0)
        updated = replace(
            updated,
            experiences=updated.experiences
            + (ExperienceState(new_experience_id, benefits.experience_name, value),),
        )

    updated = replace(updated, domain_cards=_add_card(updated.domain_cards, benefits.free_domain_card))

    if benefits.traits_cleared:
        updated = replace(updated, traits=tuple(replace(t, marked=False) for t in updated.traits))

    # Advancement options
    for selection in result.selections:
        updated = _apply_selection(updated, selection, new_experience_id)

    if result.companion_training is not None:
        updated = replace(
            updated,
            companion=apply_companion_training(
                updated.companion,
                result.companion_training.training_id,
                result.companion_training.experience_index,
            ),
        )

    increase = benefits.damage_threshold_increase
    updated = replace(
        updated,
        major_threshold=updated.major_threshold + increase,
        severe_threshold=updated.severe_threshold + increase,
    )

    logger.info(f"Applied level-up: now level {updated.level} (tier {updated.tier.value})")
    return updated
