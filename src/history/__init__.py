"""Quiz history management for quintry.

This module persists completed quiz attempts and their per-port results,
and derives performance statistics from them.

Example:
    >>> from src.history import ItemResult, QuizSummary, get_history_manager
    >>> manager = get_history_manager("data/quintry.db")
    >>> manager.save(
    ...     QuizSummary(
    ...         id="q1",
    ...         date=1000,
    ...         score=1,
    ...         total=2,
    ...         accuracy=0.5,
    ...         duration=60,
    ...         difficulty="hard",
    ...         regions=["Europe"],
    ...         countries=["France", "Spain"],
    ...         results=[ItemResult("Le Havre", True), ItemResult("Valencia", False)],
    ...     )
    ... )
    >>> history = manager.list_all()

Features:
    - Atomic save of a quiz with its results (SQLite transaction)
    - Full history listing, newest first
    - Clear-all with cascading delete of results
    - Per-port and per-difficulty statistics
"""

from .errors import (
    ConstraintViolationError,
    DuplicateQuizError,
    HistoryError,
    SerializationError,
    StorageInitError,
    StorageIOError,
)
from .lib import (
    HistoryManager,
    close_history_manager,
    get_history_manager,
    has_history_manager,
)
from .models import (
    DifficultyStats,
    ItemResult,
    PortStats,
    QuizSummary,
    StorageConfig,
)
from .stats import (
    get_average_score,
    get_performance_by_difficulty,
    get_port_stats,
    get_strongest_ports,
    get_weakest_ports,
)

__all__ = [
    # Manager
    "HistoryManager",
    "get_history_manager",
    "has_history_manager",
    "close_history_manager",
    # Models
    "ItemResult",
    "QuizSummary",
    "PortStats",
    "DifficultyStats",
    "StorageConfig",
    # Errors
    "HistoryError",
    "StorageInitError",
    "ConstraintViolationError",
    "DuplicateQuizError",
    "SerializationError",
    "StorageIOError",
    # Stats
    "get_port_stats",
    "get_weakest_ports",
    "get_strongest_ports",
    "get_average_score",
    "get_performance_by_difficulty",
]
