"""
Data structures for a Daggerheart level-up.

The caller supplies a LevelUpContext snapshot of the character; the engine
works on an immutable LevelUpDraft that is replaced by every transition, and
produces exactly one LevelUpResult on confirmation.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from src.config import DEFAULT_CONFIG, LevelUpConfig
from src.leveling.tiers import Tier, effective_tier_history, resolve_tier


# =============================================================================
# STEPS
# =============================================================================


class LevelUpStep(str, Enum):
    """Steps of the level-up sequence."""
    AUTOMATIC_BENEFITS = "automatic-benefits"
    COMPANION_BENEFITS = "companion-benefits"   # Only with a bonded companion
    ADVANCEMENT_OPTIONS = "advancement-options"
    CONFIRMED = "confirmed"                     # Terminal
    CANCELLED = "cancelled"                     # Terminal


TERMINAL_STEPS: frozenset[LevelUpStep] = frozenset(
    {LevelUpStep.CONFIRMED, LevelUpStep.CANCELLED}
)


# =============================================================================
# CHARACTER SNAPSHOT
# =============================================================================


@dataclass(frozen=True)
class TraitState:
    """A character trait and whether it is marked this tier."""
    name: str
    value: int = 0
    marked: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TraitState":
        return cls(
            name=data["name"],
            value=data.get("value", 0),
            marked=data.get("marked", False),
        )


@dataclass(frozen=True)
class ExperienceState:
    """A named Experience and its current bonus."""
    experience_id: str
    name: str
    value: int = 2

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExperienceState":
        return cls(
            experience_id=data.get("id", data.get("experience_id", data["name"])),
            name=data["name"],
            value=data.get("value", 2),
        )


@dataclass(frozen=True)
class ClassPair:
    """One class/subclass combination held by the character."""
    class_name: str
    subclass_name: str
    domains: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        """Key used for unlocked subclass features ("Class:Subclass")."""
        return f"{self.class_name}:{self.subclass_name}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClassPair":
        return cls(
            class_name=data.get("class_name", data.get("className", "")),
            subclass_name=data.get("subclass_name", data.get("subclassName", "")),
            domains=tuple(data.get("domains", [])),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "class_name": self.class_name,
            "subclass_name": self.subclass_name,
            "domains": list(self.domains),
        }


@dataclass(frozen=True)
class CompanionExperience:
    """An Experience belonging to an animal companion."""
    name: str
    bonus: int = 2


@dataclass(frozen=True)
class CompanionState:
    """
    A bonded companion (Beastbound Ranger).

    Training values are counts; single-pick trainings use 0/1.
    """
    name: str
    training: dict[str, int] = field(default_factory=dict)
    experiences: tuple[CompanionExperience, ...] = ()

    def training_count(self, training_id: str) -> int:
        return int(self.training.get(training_id, 0))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompanionState":
        training = {k: int(v) for k, v in data.get("training", {}).items()}
        return cls(
            name=data.get("name", ""),
            training=training,
            experiences=tuple(
                CompanionExperience(name=e["name"], bonus=e.get("bonus", 2))
                for e in data.get("experiences", [])
            ),
        )


@dataclass(frozen=True)
class LevelUpContext:
    """
    Immutable snapshot of the character supplied when a level-up starts.

    The engine never mutates any of these values; tier_history in particular
    stays owned by the caller.
    """
    current_level: int
    current_tier: Tier
    traits: tuple[TraitState, ...] = ()
    experiences: tuple[ExperienceState, ...] = ()
    tier_history: dict[str, int] = field(default_factory=dict)
    class_pairs: tuple[ClassPair, ...] = ()
    owned_domain_cards: frozenset[str] = frozenset()
    unlocked_subclass_features: dict[str, tuple[str, ...]] = field(default_factory=dict)
    companion: Optional[CompanionState] = None

    def __post_init__(self):
        object.__setattr__(self, "current_tier", Tier.parse(self.current_tier))

    @property
    def has_companion(self) -> bool:
        return self.companion is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LevelUpContext":
        """Build a context from a character record."""
        level = data.get("current_level", data.get("level", 1))
        tier = data.get("current_tier")
        companion = data.get("companion")
        return cls(
            current_level=level,
            current_tier=Tier.parse(tier) if tier is not None else resolve_tier(level),
            traits=tuple(TraitState.from_dict(t) for t in data.get("traits", [])),
            experiences=tuple(
                ExperienceState.from_dict(e) for e in data.get("experiences", [])
            ),
            tier_history=dict(data.get("tier_history", {})),
            class_pairs=tuple(ClassPair.from_dict(p) for p in data.get("class_pairs", [])),
            owned_domain_cards=frozenset(data.get("owned_domain_cards", [])),
            unlocked_subclass_features={
                k: tuple(v) for k, v in data.get("unlocked_subclass_features", {}).items()
            },
            companion=CompanionState.from_dict(companion) if companion else None,
        )


# =============================================================================
# SELECTIONS
# =============================================================================


@dataclass(frozen=True)
class MulticlassChoice:
    """The class taken through the Multiclass option."""
    class_name: str
    subclass_name: str
    domains: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "class_name": self.class_name,
            "subclass_name": self.subclass_name,
            "domains": list(self.domains),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MulticlassChoice":
        return cls(
            class_name=data["class_name"],
            subclass_name=data["subclass_name"],
            domains=tuple(data.get("domains", [])),
        )


@dataclass(frozen=True)
class SubclassUpgrade:
    """The subclass card taken through the Upgraded Subclass Card option."""
    class_name: str
    subclass_name: str
    feature_name: str
    feature_type: str  # "specialization" or "mastery"

    def to_dict(self) -> dict[str, Any]:
        return {
            "class_name": self.class_name,
            "subclass_name": self.subclass_name,
            "feature_name": self.feature_name,
            "feature_type": self.feature_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubclassUpgrade":
        return cls(
            class_name=data["class_name"],
            subclass_name=data["subclass_name"],
            feature_name=data["feature_name"],
            feature_type=data.get("feature_type", "specialization"),
        )


# Earliest target tier at which each upgradable subclass card can be taken
UPGRADE_FEATURE_TIERS: dict[str, Tier] = {
    "specialization": Tier.TIER_3,
    "mastery": Tier.TIER_4,
}


# Fields of SelectionDetails holding lists that accumulate across rounds
LIST_DETAIL_FIELDS: tuple[str, ...] = ("selected_traits", "selected_experiences")


@dataclass(frozen=True)
class SelectionDetails:
    """
    Supplementary input attached to a Selection.

    Which field is populated depends on the option's sub-resolution kind.
    """
    selected_traits: tuple[str, ...] = ()
    selected_experiences: tuple[str, ...] = ()
    selected_domain_card: Optional[str] = None
    selected_multiclass: Optional[MulticlassChoice] = None
    selected_subclass_upgrade: Optional[SubclassUpgrade] = None
    selected_companion_training: Optional[str] = None
    companion_experience_index: Optional[int] = None

    def __post_init__(self):
        for name in LIST_DETAIL_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

    def merge(self, newer: "SelectionDetails") -> "SelectionDetails":
        """
        Merge details from a later round into these.

        List fields concatenate; scalar fields take the newer value when set.
        """
        return SelectionDetails(
            selected_traits=self.selected_traits + newer.selected_traits,
            selected_experiences=self.selected_experiences + newer.selected_experiences,
            selected_domain_card=newer.selected_domain_card or self.selected_domain_card,
            selected_multiclass=newer.selected_multiclass or self.selected_multiclass,
            selected_subclass_upgrade=(
                newer.selected_subclass_upgrade or self.selected_subclass_upgrade
            ),
            selected_companion_training=(
                newer.selected_companion_training or self.selected_companion_training
            ),
            companion_experience_index=(
                newer.companion_experience_index
                if newer.companion_experience_index is not None
                else self.companion_experience_index
            ),
        )

    def drop_last(self, field_name: str, item_count: int) -> "SelectionDetails":
        """Remove the last item_count entries from a list field."""
        items = getattr(self, field_name)
        kept = items[: max(0, len(items) - item_count)]
        return replace(self, **{field_name: kept})

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.selected_traits:
            data["selected_traits"] = list(self.selected_traits)
        if self.selected_experiences:
            data["selected_experiences"] = list(self.selected_experiences)
        if self.selected_domain_card:
            data["selected_domain_card"] = self.selected_domain_card
        if self.selected_multiclass:
            data["selected_multiclass"] = self.selected_multiclass.to_dict()
        if self.selected_subclass_upgrade:
            data["selected_subclass_upgrade"] = self.selected_subclass_upgrade.to_dict()
        if self.selected_companion_training:
            data["selected_companion_training"] = self.selected_companion_training
        if self.companion_experience_index is not None:
            data["companion_experience_index"] = self.companion_experience_index
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SelectionDetails":
        multiclass = data.get("selected_multiclass")
        upgrade = data.get("selected_subclass_upgrade")
        return cls(
            selected_traits=tuple(data.get("selected_traits", [])),
            selected_experiences=tuple(data.get("selected_experiences", [])),
            selected_domain_card=data.get("selected_domain_card"),
            selected_multiclass=MulticlassChoice.from_dict(multiclass) if multiclass else None,
            selected_subclass_upgrade=SubclassUpgrade.from_dict(upgrade) if upgrade else None,
            selected_companion_training=data.get("selected_companion_training"),
            companion_experience_index=data.get("companion_experience_index"),
        )


@dataclass(frozen=True)
class Selection:
    """An advancement option chosen in the current draft."""
    option_id: str
    count: int = 1
    details: Optional[SelectionDetails] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"option_id": self.option_id, "count": self.count}
        if self.details is not None:
            data["details"] = self.details.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Selection":
        details = data.get("details")
        return cls(
            option_id=data["option_id"],
            count=data.get("count", 1),
            details=SelectionDetails.from_dict(details) if details is not None else None,
        )


@dataclass(frozen=True)
class CompanionTrainingChoice:
    """A companion training pick, optionally targeting a companion Experience."""
    training_id: str
    experience_index: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {"training_id": self.training_id, "experience_index": self.experience_index}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompanionTrainingChoice":
        return cls(
            training_id=data["training_id"],
            experience_index=data.get("experience_index"),
        )


# =============================================================================
# DRAFT
# =============================================================================


@dataclass(frozen=True)
class LevelUpDraft:
    """
    In-progress level-up state.

    Never mutated: every operation in src.leveling.orchestrator returns a new
    draft built with dataclasses.replace.
    """
    context: LevelUpContext
    target_level: int
    target_tier: Tier
    config: LevelUpConfig = DEFAULT_CONFIG
    step: LevelUpStep = LevelUpStep.AUTOMATIC_BENEFITS
    selections: tuple[Selection, ...] = ()
    pending_option: Optional[str] = None
    free_domain_card: Optional[str] = None
    new_experience_name: Optional[str] = None
    companion_training: Optional[CompanionTrainingChoice] = None

    @property
    def tier_changed(self) -> bool:
        return self.target_tier != self.context.current_tier

    @property
    def history(self) -> dict[str, int]:
        """Tier history in effect for this level-up (empty after a tier crossing)."""
        return effective_tier_history(
            self.context.current_tier, self.target_tier, self.context.tier_history
        )

    @property
    def gets_new_experience(self) -> bool:
        return self.config.grants_experience(self.target_level)

    @property
    def new_experience_id(self) -> str:
        """Identity given to the Experience gained at this level."""
        return f"new-exp-{self.target_level}"

    @property
    def budget(self) -> int:
        return self.config.points_per_level

    @property
    def is_pending(self) -> bool:
        return self.pending_option is not None

    @property
    def is_terminal(self) -> bool:
        return self.step in TERMINAL_STEPS


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class AutomaticBenefits:
    """Benefits every character receives on reaching the new level."""
    experience_gained: bool
    proficiency_gained: bool
    traits_cleared: bool
    experience_name: Optional[str] = None
    free_domain_card: Optional[str] = None
    damage_threshold_increase: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "experience_gained": self.experience_gained,
            "experience_name": self.experience_name,
            "proficiency_gained": self.proficiency_gained,
            "traits_cleared": self.traits_cleared,
            "free_domain_card": self.free_domain_card,
            "damage_threshold_increase": self.damage_threshold_increase,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AutomaticBenefits":
        return cls(
            experience_gained=data.get("experience_gained", False),
            experience_name=data.get("experience_name"),
            proficiency_gained=data.get("proficiency_gained", False),
            traits_cleared=data.get("traits_cleared", False),
            free_domain_card=data.get("free_domain_card"),
            damage_threshold_increase=data.get("damage_threshold_increase", 1),
        )


@dataclass(frozen=True)
class LevelUpResult:
    """Everything that changed in one confirmed level-up."""
    new_level: int
    new_tier: Tier
    automatic_benefits: AutomaticBenefits
    selections: tuple[Selection, ...] = ()
    companion_training: Optional[CompanionTrainingChoice] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the caller's persistence layer."""
        return {
            "new_level": self.new_level,
            "new_tier": self.new_tier.value,
            "automatic_benefits": self.automatic_benefits.to_dict(),
            "selections": [s.to_dict() for s in self.selections],
            "companion_training": (
                self.companion_training.to_dict() if self.companion_training else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LevelUpResult":
        training = data.get("companion_training")
        return cls(
            new_level=data["new_level"],
            new_tier=Tier.parse(data["new_tier"]),
            automatic_benefits=AutomaticBenefits.from_dict(data["automatic_benefits"]),
            selections=tuple(Selection.from_dict(s) for s in data.get("selections", [])),
            companion_training=(
                CompanionTrainingChoice.from_dict(training) if training else None
            ),
        )
