"""Quiz history commands invoked by the host application.

Every command returns a dictionary with an ``ok`` flag. Failures never
raise; they are logged and reported as ``{"ok": False, "error": message}``
for the host to display.
"""

import logging
from collections.abc import Mapping
from dataclasses import asdict
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from src.config import get_busy_timeout_ms, get_db_path, get_log_level, load_env_file
from src.core import setup_logging
from src.history import (
    HistoryError,
    HistoryManager,
    QuizSummary,
    StorageConfig,
    close_history_manager,
    get_average_score,
    get_history_manager,
    get_performance_by_difficulty,
    get_strongest_ports,
    get_weakest_ports,
    has_history_manager,
)

from .models import QuizHistoryPayload

logger = logging.getLogger(__name__)


def startup(data_dir: Path | str | None = None) -> HistoryManager:
    """Open the process-wide history store.

    Loads ``.env``, resolves the data directory and creates the schema if
    needed. Calling it again returns the already open manager; a different
    ``data_dir`` is ignored with a warning until ``shutdown`` is called.

    Args:
        data_dir: Application data directory supplied by the host.

    Returns:
        The global HistoryManager.

    Raises:
        StorageInitError: If the directory or database cannot be set up.
    """
    if has_history_manager():
        manager = get_history_manager()
        if data_dir is not None:
            requested = get_db_path(data_dir)
            if requested.resolve() != manager.db_path.resolve():
                logger.warning(
                    f"History store already open at {manager.db_path}; "
                    f"ignoring requested {requested}"
                )
        return manager

    load_env_file()
    setup_logging(get_log_level())

    db_path = get_db_path(data_dir)
    config = StorageConfig(busy_timeout_ms=get_busy_timeout_ms())
    return get_history_manager(db_path=db_path, config=config)


def shutdown() -> None:
    """Close the process-wide history store."""
    close_history_manager()


def _error(message: str) -> dict[str, Any]:
    logger.warning(message)
    return {"ok": False, "error": message}


def save_quiz_history(history: Mapping[str, Any] | QuizSummary) -> dict[str, Any]:
    """Save a completed quiz with its results.

    Args:
        history: Quiz as a host payload (``isCorrect`` keys) or a QuizSummary.

    Returns:
        ``{"ok": True}`` or ``{"ok": False, "error": message}``.

    Example:
        >>> save_quiz_history({"id": "q1", "date": 1000, ...})
        {'ok': True}
    """
    try:
        if isinstance(history, QuizSummary):
            quiz = history
        else:
            quiz = QuizHistoryPayload.model_validate(history).to_summary()
        startup().save(quiz)
    except ValidationError as e:
        return _error(f"Invalid quiz history: {e}")
    except HistoryError as e:
        return _error(str(e))

    return {"ok": True}


def get_quiz_history() -> dict[str, Any]:
    """Load the full quiz history, newest first.

    Returns:
        Dictionary containing:
        - ok: True on success
        - history: List of quiz payloads with their results
        or ``{"ok": False, "error": message}``.
    """
    try:
        quizzes = startup().list_all()
    except HistoryError as e:
        return _error(str(e))

    return {
        "ok": True,
        "history": [
            QuizHistoryPayload.from_summary(quiz).model_dump(by_alias=True)
            for quiz in quizzes
        ],
    }


def clear_quiz_history() -> dict[str, Any]:
    """Delete all quiz history.

    Returns:
        ``{"ok": True}`` or ``{"ok": False, "error": message}``.
    """
    try:
        startup().clear_all()
    except HistoryError as e:
        return _error(str(e))

    return {"ok": True}


def get_quiz_stats(limit: int = 10) -> dict[str, Any]:
    """Summarise performance over the full history.

    Args:
        limit: Maximum ports in the weakest and strongest lists (1-50).

    Returns:
        Dictionary containing:
        - ok: True on success
        - stats: quizCount, averageScore, weakestPorts, strongestPorts
          and byDifficulty
        or ``{"ok": False, "error": message}``.
    """
    limit = max(1, min(50, limit))

    try:
        quizzes = startup().list_all()
    except HistoryError as e:
        return _error(str(e))

    by_difficulty = get_performance_by_difficulty(quizzes)
    return {
        "ok": True,
        "stats": {
            "quizCount": len(quizzes),
            "averageScore": get_average_score(quizzes),
            "weakestPorts": [asdict(s) for s in get_weakest_ports(quizzes, limit)],
            "strongestPorts": [
                asdict(s) for s in get_strongest_ports(quizzes, limit)
            ],
            "byDifficulty": {
                name: {"count": s.count, "avgAccuracy": s.avg_accuracy}
                for name, s in by_difficulty.items()
            },
        },
    }


__all__ = [
    "startup",
    "shutdown",
    "save_quiz_history",
    "get_quiz_history",
    "clear_quiz_history",
    "get_quiz_stats",
]
