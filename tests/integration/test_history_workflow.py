"""Integration tests for the quiz history workflow.

Tests the full lifecycle as the host application drives it:
1. Start the store in an app data directory
2. Save finished quizzes -> listed newest first with results
3. Restart the process -> history still there
4. Clear history -> everything gone, including results
"""

import sqlite3

import pytest

from src.commands import (
    clear_quiz_history,
    get_quiz_history,
    get_quiz_stats,
    save_quiz_history,
    shutdown,
    startup,
)


def _quiz(quiz_id: str, date: int, results: list[tuple[str, bool]]) -> dict:
    score = sum(1 for _, ok in results if ok)
    return {
        "id": quiz_id,
        "date": date,
        "score": score,
        "total": len(results),
        "accuracy": score / len(results) if results else 0.0,
        "duration": 60,
        "difficulty": "normal",
        "regions": ["Europe", "Africa"],
        "countries": ["Portugal", "Morocco"],
        "results": [{"port": port, "isCorrect": ok} for port, ok in results],
    }


@pytest.fixture
def app_data_dir(tmp_path):
    shutdown()
    yield tmp_path / "app-data"
    shutdown()


@pytest.mark.integration
def test_save_restart_clear(app_data_dir):
    startup(app_data_dir)
    assert save_quiz_history(_quiz("a", 1000, [("Lisbon", True), ("Porto", False)]))["ok"]
    assert save_quiz_history(_quiz("b", 3000, [("Tangier", True)]))["ok"]
    assert save_quiz_history(_quiz("c", 2000, []))["ok"]

    # Simulate an application restart
    shutdown()
    startup(app_data_dir)

    history = get_quiz_history()["history"]
    assert [q["id"] for q in history] == ["b", "c", "a"]
    assert history[0]["results"] == [{"port": "Tangier", "isCorrect": True}]
    assert history[1]["results"] == []
    assert history[2]["regions"] == ["Europe", "Africa"]
    assert {r["port"] for r in history[2]["results"]} == {"Lisbon", "Porto"}

    assert get_quiz_stats()["stats"]["quizCount"] == 3

    assert clear_quiz_history() == {"ok": True}
    assert get_quiz_history()["history"] == []

    db_path = app_data_dir / "quintry.db"
    conn = sqlite3.connect(str(db_path))
    try:
        assert conn.execute("SELECT COUNT(*) FROM quiz_results").fetchone() == (0,)
        assert conn.execute("SELECT COUNT(*) FROM quiz_history").fetchone() == (0,)
    finally:
        conn.close()


@pytest.mark.integration
def test_duplicate_after_restart_is_rejected(app_data_dir):
    startup(app_data_dir)
    save_quiz_history(_quiz("same", 1, [("Casablanca", True)]))
    shutdown()

    startup(app_data_dir)
    result = save_quiz_history(_quiz("same", 2, [("Agadir", False)]))
    assert result["ok"] is False

    [kept] = get_quiz_history()["history"]
    assert kept["date"] == 1
    assert kept["results"] == [{"port": "Casablanca", "isCorrect": True}]
