"""Data models for quiz history.

This module defines the records persisted by the history store: a
completed quiz attempt and the per-port results it is made of.
"""

import time
from dataclasses import dataclass, field
from uuid import uuid4


@dataclass
class ItemResult:
    """One answered item within a quiz attempt.

    Attributes:
        port: Name of the port (location) that was quizzed.
        is_correct: Whether the user placed it correctly.
    """

    port: str
    is_correct: bool


@dataclass
class QuizSummary:
    """A completed quiz attempt with its per-item breakdown.

    Attributes:
        id: Caller-generated unique identifier.
        date: Completion time in epoch milliseconds.
        score: Number of correct answers.
        total: Number of items in the quiz.
        accuracy: Score ratio, expected in [0, 1].
        duration: Time taken in seconds.
        difficulty: Difficulty label (easy, normal, hard).
        regions: Regions the quiz drew ports from, in selection order.
        countries: Countries the quiz drew ports from, in selection order.
        results: Per-port results. Order is not preserved by storage.
    """

    id: str
    date: int
    score: int
    total: int
    accuracy: float
    duration: int
    difficulty: str
    regions: list[str] = field(default_factory=list)
    countries: list[str] = field(default_factory=list)
    results: list[ItemResult] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        results: list[ItemResult],
        duration: int,
        difficulty: str,
        regions: list[str] | None = None,
        countries: list[str] | None = None,
    ) -> "QuizSummary":
        """Factory method to build a summary from finished results.

        Generates the ID, stamps the current time and derives score,
        total and accuracy from ``results``.
        """
        total = len(results)
        score = sum(1 for r in results if r.is_correct)
        return cls(
            id=str(uuid4()),
            date=int(time.time() * 1000),
            score=score,
            total=total,
            accuracy=score / total if total else 0.0,
            duration=duration,
            difficulty=difficulty,
            regions=list(regions or []),
            countries=list(countries or []),
            results=list(results),
        )

    @property
    def correct_count(self) -> int:
        """Number of results flagged correct."""
        return sum(1 for r in self.results if r.is_correct)


@dataclass
class PortStats:
    """Aggregated performance for a single port across attempts.

    Attributes:
        port: Port name.
        attempts: Times the port was quizzed.
        correct: Times it was answered correctly.
        accuracy: Percentage of correct answers (0-100).
    """

    port: str
    attempts: int = 0
    correct: int = 0
    accuracy: float = 0.0


@dataclass
class DifficultyStats:
    """Attempt count and mean accuracy for one difficulty level."""

    count: int = 0
    avg_accuracy: float = 0.0


@dataclass
class StorageConfig:
    """Configuration for the SQLite history store.

    Attributes:
        busy_timeout_ms: How long a write waits on a locked database.
        journal_mode: SQLite journal mode.
    """

    busy_timeout_ms: int = 5000
    journal_mode: str = "WAL"


__all__ = [
    "ItemResult",
    "QuizSummary",
    "PortStats",
    "DifficultyStats",
    "StorageConfig",
]
