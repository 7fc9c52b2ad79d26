"""Storage protocol for quiz history.

Defines the interface that all storage backends must implement.
"""

from pathlib import Path
from typing import Protocol

from ..models import QuizSummary, StorageConfig


class HistoryStorage(Protocol):
    """Protocol defining the storage interface for quiz history.

    Records are write-once: a quiz and its results are created together
    by ``save`` and removed only by ``clear_all``.
    """

    db_path: Path

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """Open storage and create tables and indexes if absent.

        Must be idempotent.
        """
        ...

    def close(self) -> None:
        """Close storage connections and clean up resources."""
        ...

    @property
    def config(self) -> StorageConfig:
        """Get storage configuration."""
        ...

    # =========================================================================
    # Quiz Operations
    # =========================================================================

    def save(self, quiz: QuizSummary) -> None:
        """Persist a quiz and all of its results atomically.

        Args:
            quiz: Fully populated quiz summary.

        Raises:
            DuplicateQuizError: If a quiz with the same ID exists.
            ConstraintViolationError: If any other constraint fails.
            SerializationError: If a field cannot be encoded or bound.
            StorageIOError: On any other storage failure.
        """
        ...

    def list_all(self) -> list[QuizSummary]:
        """Return every stored quiz with its results, newest first.

        Returns:
            List of quizzes ordered by date descending.
        """
        ...

    def clear_all(self) -> None:
        """Delete every quiz and result."""
        ...

    def count(self) -> int:
        """Return the number of stored quizzes."""
        ...


__all__ = ["HistoryStorage"]
