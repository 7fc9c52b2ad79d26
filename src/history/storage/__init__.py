"""Storage backends for quiz history.

This module provides storage implementations for persisting
quiz summaries and their per-port results.

Available backends:
- SQLiteStorage: File-based SQLite database
"""

from .protocol import HistoryStorage
from .sqlite import SQLiteStorage

__all__ = [
    "HistoryStorage",
    "SQLiteStorage",
]
