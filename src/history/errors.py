"""Exceptions raised by the history store."""


class HistoryError(Exception):
    """Base exception for history storage errors."""


class StorageInitError(HistoryError):
    """Raised when the data directory, connection or schema cannot be set up.

    Also raised when an operation is attempted on a closed store.
    """


class ConstraintViolationError(HistoryError):
    """Raised when a write violates a database constraint."""


class DuplicateQuizError(ConstraintViolationError):
    """Raised when saving a quiz whose ID is already stored.

    Attributes:
        quiz_id: The conflicting identifier.
    """

    def __init__(self, message: str, quiz_id: str):
        super().__init__(message)
        self.quiz_id = quiz_id


class SerializationError(HistoryError):
    """Raised when a record field cannot be encoded for storage."""


class StorageIOError(HistoryError):
    """Raised when the database cannot be read or written."""


__all__ = [
    "HistoryError",
    "StorageInitError",
    "ConstraintViolationError",
    "DuplicateQuizError",
    "SerializationError",
    "StorageIOError",
]
