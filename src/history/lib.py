"""History Manager for quintry.

Provides quiz history persistence behind a process-wide manager that is
opened once at startup and closed at shutdown.
"""

import logging
import threading
from pathlib import Path

from .models import ItemResult, QuizSummary, StorageConfig
from .storage import SQLiteStorage
from .storage.protocol import HistoryStorage

logger = logging.getLogger(__name__)

# Default storage path
DEFAULT_DB_PATH = Path("data/quintry.db")


class HistoryManager:
    """Manager for completed quiz attempts.

    Provides a high-level interface for:
    - Saving a quiz together with its per-port results
    - Listing the full history, newest first
    - Clearing all history

    Example:
        >>> manager = HistoryManager(db_path="data/quintry.db")
        >>> quiz = manager.record_quiz(
        ...     results=[ItemResult("Rotterdam", True)],
        ...     duration=42,
        ...     difficulty="easy",
        ... )
        >>> [q.id for q in manager.list_all()] == [quiz.id]
        True

    Args:
        storage: Storage backend to use. If None, creates SQLiteStorage.
        config: Storage configuration. If None, uses defaults.
        db_path: Path to database file (only used if storage is None).
    """

    def __init__(
        self,
        storage: HistoryStorage | None = None,
        config: StorageConfig | None = None,
        db_path: Path | str | None = None,
    ):
        self._config = config or StorageConfig()

        if storage:
            self._storage = storage
        else:
            db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
            self._storage = SQLiteStorage(db_path, self._config)

        self._storage.initialize()

    @property
    def config(self) -> StorageConfig:
        """Get storage configuration."""
        return self._config

    @property
    def db_path(self) -> Path:
        """Get the database file path."""
        return self._storage.db_path

    def close(self) -> None:
        """Close storage connections."""
        self._storage.close()

    # =========================================================================
    # Quiz History
    # =========================================================================

    def save(self, quiz: QuizSummary) -> QuizSummary:
        """Persist a completed quiz and its results atomically.

        Score and total are stored as given; they are not checked
        against the results.

        Args:
            quiz: Quiz to store.

        Returns:
            The stored quiz.
        """
        self._storage.save(quiz)
        return quiz

    def record_quiz(
        self,
        results: list[ItemResult],
        duration: int,
        difficulty: str,
        regions: list[str] | None = None,
        countries: list[str] | None = None,
    ) -> QuizSummary:
        """Build a quiz from finished results and persist it.

        Args:
            results: Per-port results of the attempt.
            duration: Seconds taken.
            difficulty: Difficulty label.
            regions: Regions the quiz covered.
            countries: Countries the quiz covered.

        Returns:
            The stored quiz with generated ID and timestamp.
        """
        quiz = QuizSummary.create(
            results=results,
            duration=duration,
            difficulty=difficulty,
            regions=regions,
            countries=countries,
        )
        return self.save(quiz)

    def list_all(self) -> list[QuizSummary]:
        """List every stored quiz, newest first.

        Returns:
            List of quizzes with their results attached.
        """
        return self._storage.list_all()

    def clear_all(self) -> None:
        """Delete all quiz history irreversibly."""
        self._storage.clear_all()

    def count(self) -> int:
        """Get the number of stored quizzes."""
        return self._storage.count()


# Global instance for convenience
_global_manager: HistoryManager | None = None
_global_lock = threading.Lock()


def get_history_manager(
    db_path: Path | str | None = None,
    config: StorageConfig | None = None,
) -> HistoryManager:
    """Get or create the global history manager.

    Args:
        db_path: Database path (only used on first call).
        config: Storage config (only used on first call).

    Returns:
        Global HistoryManager instance.
    """
    global _global_manager
    with _global_lock:
        if _global_manager is None:
            _global_manager = HistoryManager(db_path=db_path, config=config)
        return _global_manager


def has_history_manager() -> bool:
    """Whether the global history manager is currently open."""
    return _global_manager is not None


def close_history_manager() -> None:
    """Close and clear the global history manager."""
    global _global_manager
    with _global_lock:
        if _global_manager:
            _global_manager.close()
            _global_manager = None


__all__ = [
    "HistoryManager",
    "get_history_manager",
    "has_history_manager",
    "close_history_manager",
]
