import enum


class MoveError(enum.Enum):
    EMPTY_SOURCE = "Source tower is empty"
    SIZE_VIOLATION = "Cannot place larger disk on smaller disk"


class HanoiError(Exception):
    pass


class InputRejected(HanoiError):
    """A selection or move was refused; the puzzle is unchanged."""

    def __init__(self, reason: MoveError, message: str = None):
        super().__init__(message or reason.value)
        self.reason = reason


class PersistenceUnavailable(HanoiError):
    """The local key-value store could not be read or written."""


class ImportValidationError(HanoiError):
    """An imported score payload was rejected as a whole."""


class RemoteUnavailable(HanoiError):
    """The global leaderboard store could not be reached."""
