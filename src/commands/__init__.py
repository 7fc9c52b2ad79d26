"""Quiz history commands for the host application.

Example:
    >>> from src.commands import get_quiz_history, save_quiz_history, startup
    >>> startup("/path/to/app-data")
    >>> save_quiz_history(payload)
    {'ok': True}
    >>> get_quiz_history()["history"][0]["id"]
    'q1'
"""

from .lib import (
    clear_quiz_history,
    get_quiz_history,
    get_quiz_stats,
    save_quiz_history,
    shutdown,
    startup,
)
from .models import QuizHistoryPayload, QuizResultPayload

__all__ = [
    # Lifecycle
    "startup",
    "shutdown",
    # Commands
    "save_quiz_history",
    "get_quiz_history",
    "clear_quiz_history",
    "get_quiz_stats",
    # Wire models
    "QuizHistoryPayload",
    "QuizResultPayload",
]
