"""quintry: quiz history persistence for the port map quiz."""

from src.commands import (
    clear_quiz_history,
    get_quiz_history,
    get_quiz_stats,
    save_quiz_history,
    shutdown,
    startup,
)
from src.history import HistoryManager, ItemResult, QuizSummary

__all__ = [
    # Commands
    "startup",
    "shutdown",
    "save_quiz_history",
    "get_quiz_history",
    "clear_quiz_history",
    "get_quiz_stats",
    # History
    "HistoryManager",
    "QuizSummary",
    "ItemResult",
]
