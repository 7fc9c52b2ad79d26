"""Performance statistics over quiz history.

Aggregates stored quizzes into per-port and per-difficulty figures
for the stats panel.
"""

import logging

import numpy as np

from .models import DifficultyStats, PortStats, QuizSummary

logger = logging.getLogger(__name__)

# Minimum attempts before a port is ranked as weak or strong
MIN_RANKED_ATTEMPTS = 2
WEAK_ACCURACY_BELOW = 80.0
STRONG_ACCURACY_FROM = 81.0

DIFFICULTIES = ("easy", "normal", "hard")


def get_port_stats(history: list[QuizSummary]) -> list[PortStats]:
    """Aggregate attempts and correct answers per port.

    Args:
        history: Quizzes to aggregate.

    Returns:
        One PortStats per port, most attempted first. Accuracy is a
        percentage (0-100).
    """
    by_port: dict[str, PortStats] = {}
    for quiz in history:
        for result in quiz.results:
            stats = by_port.setdefault(result.port, PortStats(port=result.port))
            stats.attempts += 1
            if result.is_correct:
                stats.correct += 1

    for stats in by_port.values():
        stats.accuracy = stats.correct / stats.attempts * 100

    # sorted() is stable: ties keep first-seen order
    return sorted(by_port.values(), key=lambda s: s.attempts, reverse=True)


def get_weakest_ports(
    history: list[QuizSummary],
    limit: int = 10,
) -> list[PortStats]:
    """Ports answered below 80% accuracy, worst first.

    Only ports attempted at least twice are considered.
    """
    candidates = [
        s
        for s in get_port_stats(history)
        if s.attempts >= MIN_RANKED_ATTEMPTS and s.accuracy < WEAK_ACCURACY_BELOW
    ]
    return sorted(candidates, key=lambda s: s.accuracy)[:limit]


def get_strongest_ports(
    history: list[QuizSummary],
    limit: int = 10,
) -> list[PortStats]:
    """Ports answered at 81% accuracy or better, best first.

    Only ports attempted at least twice are considered.
    """
    candidates = [
        s
        for s in get_port_stats(history)
        if s.attempts >= MIN_RANKED_ATTEMPTS and s.accuracy >= STRONG_ACCURACY_FROM
    ]
    return sorted(candidates, key=lambda s: s.accuracy, reverse=True)[:limit]


def get_average_score(history: list[QuizSummary]) -> float:
    """Mean accuracy across quizzes, 0.0 for an empty history."""
    if not history:
        return 0.0
    return float(np.mean([quiz.accuracy for quiz in history]))


def get_performance_by_difficulty(
    history: list[QuizSummary],
) -> dict[str, DifficultyStats]:
    """Quiz count and mean accuracy per difficulty.

    The result always contains easy, normal and hard. Quizzes with any
    other label are reported under that label.

    Args:
        history: Quizzes to aggregate.

    Returns:
        Mapping of difficulty label to DifficultyStats.
    """
    accuracies: dict[str, list[float]] = {name: [] for name in DIFFICULTIES}
    for quiz in history:
        if quiz.difficulty not in accuracies:
            logger.debug(f"Unexpected difficulty label: {quiz.difficulty!r}")
        accuracies.setdefault(quiz.difficulty, []).append(quiz.accuracy)

    return {
        name: DifficultyStats(
            count=len(values),
            avg_accuracy=float(np.mean(values)) if values else 0.0,
        )
        for name, values in accuracies.items()
    }


__all__ = [
    "get_port_stats",
    "get_weakest_ports",
    "get_strongest_ports",
    "get_average_score",
    "get_performance_by_difficulty",
]
