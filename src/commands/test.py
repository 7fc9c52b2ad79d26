"""Tests for quiz history commands."""

import logging

import pytest

from src.history import ItemResult, QuizSummary, has_history_manager

from .lib import (
    clear_quiz_history,
    get_quiz_history,
    get_quiz_stats,
    save_quiz_history,
    shutdown,
    startup,
)
from .models import QuizHistoryPayload, QuizResultPayload


@pytest.fixture
def data_dir(tmp_path):
    """Open the process-wide store in a temporary data directory."""
    shutdown()
    startup(tmp_path)
    yield tmp_path
    shutdown()


@pytest.fixture
def payload():
    """The example quiz in the host's wire shape."""
    return {
        "id": "q1",
        "date": 1000,
        "score": 4,
        "total": 5,
        "accuracy": 0.8,
        "duration": 60,
        "difficulty": "hard",
        "regions": ["Europe"],
        "countries": ["France", "Spain"],
        "results": [
            {"port": "FR-001", "isCorrect": True},
            {"port": "ES-002", "isCorrect": False},
        ],
    }


class TestPayloadModels:
    """Tests for wire model conversion."""

    @pytest.mark.unit
    def test_result_alias(self):
        result = QuizResultPayload.model_validate({"port": "Kobe", "isCorrect": True})
        assert result.is_correct is True
        assert result.model_dump(by_alias=True) == {"port": "Kobe", "isCorrect": True}

    @pytest.mark.unit
    def test_result_accepts_field_name(self):
        result = QuizResultPayload(port="Kobe", is_correct=False)
        assert result.to_result() == ItemResult("Kobe", False)

    @pytest.mark.unit
    def test_to_summary(self, payload):
        quiz = QuizHistoryPayload.model_validate(payload).to_summary()
        assert isinstance(quiz, QuizSummary)
        assert quiz.countries == ["France", "Spain"]
        assert quiz.results == [ItemResult("FR-001", True), ItemResult("ES-002", False)]

    @pytest.mark.unit
    def test_from_summary_round_trip(self, payload):
        quiz = QuizHistoryPayload.model_validate(payload).to_summary()
        dumped = QuizHistoryPayload.from_summary(quiz).model_dump(by_alias=True)
        assert dumped == payload


class TestSaveQuizHistory:
    """Tests for save_quiz_history."""

    @pytest.mark.unit
    def test_save_payload(self, data_dir, payload):
        assert save_quiz_history(payload) == {"ok": True}
        assert (data_dir / "quintry.db").exists()

    @pytest.mark.unit
    def test_save_dataclass(self, data_dir):
        quiz = QuizSummary.create(
            results=[ItemResult("Santos", True)], duration=5, difficulty="easy"
        )
        assert save_quiz_history(quiz) == {"ok": True}
        [stored] = get_quiz_history()["history"]
        assert stored["id"] == quiz.id

    @pytest.mark.unit
    def test_duplicate_id_reports_error(self, data_dir, payload):
        save_quiz_history(payload)
        result = save_quiz_history(payload)

        assert result["ok"] is False
        assert "already exists" in result["error"]
        assert len(get_quiz_history()["history"]) == 1

    @pytest.mark.unit
    def test_invalid_payload_reports_error(self, data_dir, payload):
        del payload["difficulty"]
        result = save_quiz_history(payload)

        assert result["ok"] is False
        assert result["error"].startswith("Invalid quiz history")
        assert get_quiz_history()["history"] == []

    @pytest.mark.unit
    def test_non_string_country_reports_error(self, data_dir, payload):
        payload["countries"] = ["France", {"name": "Spain"}]
        result = save_quiz_history(payload)
        assert result["ok"] is False

    @pytest.mark.unit
    def test_bad_dataclass_names_report_error(self, data_dir):
        quiz = QuizSummary(
            id="bad",
            date=1,
            score=0,
            total=0,
            accuracy=0.0,
            duration=0,
            difficulty="easy",
            regions="Europe",
        )
        result = save_quiz_history(quiz)
        assert result["ok"] is False
        assert "regions" in result["error"]

    @pytest.mark.unit
    def test_out_of_range_date_reports_error(self, data_dir, payload):
        payload["date"] = 2**63
        result = save_quiz_history(payload)

        assert result["ok"] is False
        assert result["error"].startswith("Failed to serialize quiz history")
        assert get_quiz_history()["history"] == []


class TestGetQuizHistory:
    """Tests for get_quiz_history."""

    @pytest.mark.unit
    def test_empty(self, data_dir):
        assert get_quiz_history() == {"ok": True, "history": []}

    @pytest.mark.unit
    def test_returns_wire_shape(self, data_dir, payload):
        save_quiz_history(payload)
        [stored] = get_quiz_history()["history"]

        results = stored.pop("results")
        expected = dict(payload)
        expected_results = expected.pop("results")
        assert stored == expected
        assert sorted(results, key=lambda r: r["port"]) == sorted(
            expected_results, key=lambda r: r["port"]
        )

    @pytest.mark.unit
    def test_newest_first(self, data_dir, payload):
        for quiz_id, date in (("old", 1), ("new", 3), ("mid", 2)):
            save_quiz_history({**payload, "id": quiz_id, "date": date})
        ids = [q["id"] for q in get_quiz_history()["history"]]
        assert ids == ["new", "mid", "old"]


class TestClearQuizHistory:
    """Tests for clear_quiz_history."""

    @pytest.mark.unit
    def test_clear(self, data_dir, payload):
        save_quiz_history(payload)
        assert clear_quiz_history() == {"ok": True}
        assert get_quiz_history()["history"] == []

    @pytest.mark.unit
    def test_clear_twice(self, data_dir):
        assert clear_quiz_history() == {"ok": True}
        assert clear_quiz_history() == {"ok": True}


class TestGetQuizStats:
    """Tests for get_quiz_stats."""

    @pytest.mark.unit
    def test_empty_history(self, data_dir):
        result = get_quiz_stats()
        assert result["ok"] is True
        stats = result["stats"]
        assert stats["quizCount"] == 0
        assert stats["averageScore"] == 0.0
        assert stats["weakestPorts"] == []
        assert stats["byDifficulty"]["hard"] == {"count": 0, "avgAccuracy": 0.0}

    @pytest.mark.unit
    def test_aggregates(self, data_dir, payload):
        save_quiz_history(payload)
        save_quiz_history({**payload, "id": "q2", "date": 2000, "accuracy": 0.4})
        stats = get_quiz_stats()["stats"]

        assert stats["quizCount"] == 2
        assert stats["averageScore"] == pytest.approx(0.6)
        assert [p["port"] for p in stats["weakestPorts"]] == ["ES-002"]
        assert [p["port"] for p in stats["strongestPorts"]] == ["FR-001"]
        assert stats["strongestPorts"][0] == {
            "port": "FR-001",
            "attempts": 2,
            "correct": 2,
            "accuracy": 100.0,
        }
        assert stats["byDifficulty"]["hard"]["count"] == 2


class TestLifecycle:
    """Tests for startup and shutdown."""

    @pytest.mark.unit
    def test_startup_is_idempotent(self, data_dir):
        assert startup() is startup(data_dir)

    @pytest.mark.unit
    def test_startup_warns_on_different_data_dir(self, data_dir, tmp_path, caplog):
        other = tmp_path / "other"
        with caplog.at_level(logging.WARNING, logger="src.commands.lib"):
            manager = startup(other)

        assert manager is startup()
        assert manager.db_path == data_dir / "quintry.db"
        assert "already open" in caplog.text
        assert not other.exists()

    @pytest.mark.unit
    def test_startup_same_data_dir_is_quiet(self, data_dir, caplog):
        with caplog.at_level(logging.WARNING, logger="src.commands.lib"):
            startup(data_dir)
        assert "already open" not in caplog.text

    @pytest.mark.unit
    def test_commands_start_store_lazily(self, monkeypatch, tmp_path, payload):
        shutdown()
        monkeypatch.setenv("QUINTRY_DATA_DIR", str(tmp_path / "lazy"))
        try:
            assert save_quiz_history(payload) == {"ok": True}
            assert has_history_manager()
            assert (tmp_path / "lazy" / "quintry.db").exists()
        finally:
            shutdown()

    @pytest.mark.unit
    def test_unusable_data_dir_reports_error(self, monkeypatch, tmp_path, payload):
        shutdown()
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        monkeypatch.setenv("QUINTRY_DATA_DIR", str(blocker / "data"))
        try:
            result = save_quiz_history(payload)
            assert result["ok"] is False
            assert "Failed to create app data dir" in result["error"]
            assert get_quiz_history()["ok"] is False
            assert clear_quiz_history()["ok"] is False
        finally:
            shutdown()
