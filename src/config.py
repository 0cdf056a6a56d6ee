"""
Configuration for the Daggerheart level-up engine.

Holds the fixed advancement rules (point budget, which levels grant
experiences and proficiency, which levels clear trait marks) so that tables
running house rules can adjust them from a JSON file.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional
import json
import logging

logger = logging.getLogger(__name__)


# Character levels covered by the tier table
MIN_LEVEL = 1
MAX_LEVEL = 10


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@dataclass(frozen=True)
class LevelUpConfig:
    """Rules configuration for a level-up."""

    # Advancement budget spent on options each level
    points_per_level: int = 2

    # Automatic benefits by target level
    experience_levels: tuple[int, ...] = (2, 5, 8)
    proficiency_levels: tuple[int, ...] = (2, 5, 8)
    trait_clear_levels: tuple[int, ...] = (5, 8)
    damage_threshold_increase: int = 1
    new_experience_value: int = 2

    max_level: int = MAX_LEVEL

    # Content options
    content_dir: Optional[Path] = None

    # Runtime options
    verbose: bool = False

    def __post_init__(self):
        """Normalise JSON lists and path strings."""
        for name in ("experience_levels", "proficiency_levels", "trait_clear_levels"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))
        if isinstance(self.content_dir, str):
            object.__setattr__(self, "content_dir", Path(self.content_dir))
        if self.points_per_level < 1:
            raise ValueError(f"points_per_level must be positive, got {self.points_per_level}")
        if not MIN_LEVEL < self.max_level <= MAX_LEVEL:
            raise ValueError(
                f"max_level must be between {MIN_LEVEL + 1} and {MAX_LEVEL}, got {self.max_level}"
            )

    def grants_experience(self, level: int) -> bool:
        """Check if reaching this level grants a new Experience."""
        return level in self.experience_levels

    def grants_proficiency(self, level: int) -> bool:
        """Check if reaching this level grants +1 Proficiency."""
        return level in self.proficiency_levels

    def clears_trait_marks(self, level: int) -> bool:
        """Check if reaching this level clears all trait marks."""
        return level in self.trait_clear_levels

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LevelUpConfig":
        """Create from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {unknown}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "points_per_level": self.points_per_level,
            "experience_levels": list(self.experience_levels),
            "proficiency_levels": list(self.proficiency_levels),
            "trait_clear_levels": list(self.trait_clear_levels),
            "damage_threshold_increase": self.damage_threshold_increase,
            "new_experience_value": self.new_experience_value,
            "max_level": self.max_level,
            "content_dir": str(self.content_dir) if self.content_dir else None,
            "verbose": self.verbose,
        }


def load_config(path: Path) -> LevelUpConfig:
    """
    Load configuration from a JSON file.

    Args:
        path: Path to the JSON config file

    Returns:
        The loaded configuration (defaults for missing keys)
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    config = LevelUpConfig.from_dict(data)
    logger.info(f"Loaded level-up config from {path}")
    return config


DEFAULT_CONFIG = LevelUpConfig()
