"""
Exceptions raised by the level-up engine.

Illegal player choices are gated rather than raised; these exceptions only
signal data-integrity problems (catalog/ledger desynchronisation, malformed
supplementary input) or misuse of the step sequence by the calling layer.
"""


class LevelUpError(Exception):
    """Base class for level-up engine errors."""

    pass


class UnknownOptionError(LevelUpError, KeyError):
    """Raised when an option identity is absent from the catalog."""

    def __init__(self, option_id: str):
        self.option_id = option_id
        super().__init__(f"Unknown advancement option: '{option_id}'")

    def __str__(self) -> str:
        return self.args[0]


class SupplementaryInputError(LevelUpError, ValueError):
    """Raised when supplementary details do not match the option's sub-resolution."""

    pass


class InvalidTransitionError(LevelUpError):
    """Raised when a draft operation is not valid in the current step."""

    pass


class CatalogLoadError(LevelUpError):
    """Raised when a catalog file cannot be read or parsed."""

    pass
