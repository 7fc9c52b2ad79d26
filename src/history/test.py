"""Tests for quiz history module.

Tests cover:
- Data models
- SQLite schema creation and idempotent initialization
- Save/list round trips and ordering
- Duplicate IDs, atomic rollback and clearing
- Lenient decoding of stored name lists
- HistoryManager lifecycle
- Statistics helpers
"""

import sqlite3
import tempfile
import threading
from pathlib import Path

import pytest

from .errors import (
    ConstraintViolationError,
    DuplicateQuizError,
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
from .models import ItemResult, QuizSummary, StorageConfig
from .stats import (
    get_average_score,
    get_performance_by_difficulty,
    get_port_stats,
    get_strongest_ports,
    get_weakest_ports,
)
from .storage import SQLiteStorage
from .storage.sqlite import decode_names, encode_names

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test storage."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def db_path(temp_dir):
    return temp_dir / "quintry.db"


@pytest.fixture
def storage(db_path):
    """Create an initialized SQLiteStorage."""
    store = SQLiteStorage(db_path, StorageConfig(busy_timeout_ms=1000))
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def manager(db_path):
    """Create a HistoryManager on a temporary database."""
    mgr = HistoryManager(db_path=db_path)
    yield mgr
    mgr.close()


@pytest.fixture
def sample_quiz():
    """The example quiz from the product docs."""
    return QuizSummary(
        id="q1",
        date=1000,
        score=4,
        total=5,
        accuracy=0.8,
        duration=60,
        difficulty="hard",
        regions=["Europe"],
        countries=["France", "Spain"],
        results=[ItemResult("FR-001", True), ItemResult("ES-002", False)],
    )


def make_quiz(quiz_id: str, date: int, **kwargs) -> QuizSummary:
    """Build a small quiz with sensible defaults."""
    fields = {
        "score": 1,
        "total": 2,
        "accuracy": 0.5,
        "duration": 30,
        "difficulty": "normal",
        "regions": ["Asia"],
        "countries": ["Japan"],
        "results": [ItemResult("Kobe", True), ItemResult("Osaka", False)],
    }
    fields.update(kwargs)
    return QuizSummary(id=quiz_id, date=date, **fields)


def raw_rows(db_path: Path, sql: str) -> list[tuple]:
    """Query the database file through an independent connection."""
    conn = sqlite3.connect(str(db_path))
    try:
        return conn.execute(sql).fetchall()
    finally:
        conn.close()


def result_pairs(quiz: QuizSummary) -> set[tuple[str, bool]]:
    return {(r.port, r.is_correct) for r in quiz.results}


# =============================================================================
# Model Tests
# =============================================================================


class TestModels:
    """Tests for data models."""

    @pytest.mark.unit
    def test_quiz_creation_via_factory(self):
        """Factory derives score, total and accuracy from results."""
        results = [
            ItemResult("Rotterdam", True),
            ItemResult("Antwerp", True),
            ItemResult("Hamburg", False),
            ItemResult("Bremen", True),
        ]
        quiz = QuizSummary.create(
            results=results, duration=90, difficulty="easy", regions=["Europe"]
        )
        assert quiz.id
        assert quiz.date > 0
        assert quiz.score == 3
        assert quiz.total == 4
        assert quiz.accuracy == pytest.approx(0.75)
        assert quiz.regions == ["Europe"]
        assert quiz.countries == []

    @pytest.mark.unit
    def test_factory_with_no_results(self):
        quiz = QuizSummary.create(results=[], duration=0, difficulty="easy")
        assert quiz.total == 0
        assert quiz.accuracy == 0.0

    @pytest.mark.unit
    def test_factory_ids_are_unique(self):
        a = QuizSummary.create(results=[], duration=0, difficulty="easy")
        b = QuizSummary.create(results=[], duration=0, difficulty="easy")
        assert a.id != b.id

    @pytest.mark.unit
    def test_correct_count(self, sample_quiz):
        assert sample_quiz.correct_count == 1

    @pytest.mark.unit
    def test_storage_config_defaults(self):
        config = StorageConfig()
        assert config.busy_timeout_ms == 5000
        assert config.journal_mode == "WAL"


# =============================================================================
# Schema Tests
# =============================================================================


class TestSchema:
    """Tests for SQLite schema creation."""

    @pytest.mark.unit
    def test_creates_db_file_and_parent_dirs(self, temp_dir):
        path = temp_dir / "nested" / "dir" / "quintry.db"
        store = SQLiteStorage(path)
        store.initialize()
        store.close()
        assert path.exists()

    @pytest.mark.unit
    def test_creates_tables_and_indexes(self, storage, db_path):
        names = {
            row[0]
            for row in raw_rows(
                db_path, "SELECT name FROM sqlite_master WHERE type IN ('table', 'index')"
            )
        }
        assert {"quiz_history", "quiz_results"} <= names
        assert {
            "idx_quiz_history_date",
            "idx_quiz_history_difficulty",
            "idx_quiz_results_port_correct",
        } <= names

    @pytest.mark.unit
    def test_initialize_is_idempotent(self, storage, sample_quiz):
        storage.save(sample_quiz)
        storage.initialize()
        storage.initialize()
        assert storage.count() == 1

    @pytest.mark.unit
    def test_reopen_keeps_data(self, db_path, sample_quiz):
        first = SQLiteStorage(db_path)
        first.initialize()
        first.save(sample_quiz)
        first.close()

        second = SQLiteStorage(db_path)
        second.initialize()
        try:
            assert [q.id for q in second.list_all()] == ["q1"]
        finally:
            second.close()

    @pytest.mark.unit
    def test_uninitialized_storage_raises(self, db_path, sample_quiz):
        store = SQLiteStorage(db_path)
        with pytest.raises(StorageInitError):
            store.save(sample_quiz)
        with pytest.raises(StorageInitError):
            store.list_all()

    @pytest.mark.unit
    def test_closed_storage_raises(self, db_path):
        store = SQLiteStorage(db_path)
        store.initialize()
        store.close()
        assert store.is_open is False
        with pytest.raises(StorageInitError):
            store.clear_all()

    @pytest.mark.unit
    def test_unwritable_location_raises(self, temp_dir):
        blocker = temp_dir / "not-a-dir"
        blocker.write_text("file in the way")
        store = SQLiteStorage(blocker / "quintry.db")
        with pytest.raises(StorageInitError):
            store.initialize()


# =============================================================================
# Save / List Tests
# =============================================================================


class TestSaveAndList:
    """Tests for writing and reading quizzes."""

    @pytest.mark.unit
    def test_round_trip(self, storage, sample_quiz):
        storage.save(sample_quiz)
        [loaded] = storage.list_all()

        assert loaded.id == "q1"
        assert loaded.date == 1000
        assert loaded.score == 4
        assert loaded.total == 5
        assert loaded.accuracy == pytest.approx(0.8)
        assert loaded.duration == 60
        assert loaded.difficulty == "hard"
        assert loaded.regions == ["Europe"]
        assert loaded.countries == ["France", "Spain"]
        assert result_pairs(loaded) == {("FR-001", True), ("ES-002", False)}

    @pytest.mark.unit
    def test_round_trip_without_results(self, storage):
        storage.save(make_quiz("empty", 10, results=[], regions=[], countries=[]))
        [loaded] = storage.list_all()
        assert loaded.results == []
        assert loaded.regions == []
        assert loaded.countries == []

    @pytest.mark.unit
    def test_name_order_preserved(self, storage):
        countries = ["Spain", "France", "Åland", "Côte d'Ivoire", "Japan"]
        storage.save(make_quiz("order", 10, countries=countries))
        [loaded] = storage.list_all()
        assert loaded.countries == countries

    @pytest.mark.unit
    def test_duplicate_ports_are_kept(self, storage):
        results = [ItemResult("Lagos", True), ItemResult("Lagos", True)]
        storage.save(make_quiz("dup-ports", 10, results=results))
        [loaded] = storage.list_all()
        assert len(loaded.results) == 2

    @pytest.mark.unit
    def test_results_attached_to_their_own_quiz(self, storage):
        storage.save(make_quiz("a", 1, results=[ItemResult("Dakar", True)]))
        storage.save(make_quiz("b", 2, results=[ItemResult("Lima", False)]))
        by_id = {q.id: q for q in storage.list_all()}
        assert result_pairs(by_id["a"]) == {("Dakar", True)}
        assert result_pairs(by_id["b"]) == {("Lima", False)}

    @pytest.mark.unit
    def test_newest_first(self, storage):
        storage.save(make_quiz("t2", 2000))
        storage.save(make_quiz("t1", 1000))
        storage.save(make_quiz("t3", 3000))
        assert [q.id for q in storage.list_all()] == ["t3", "t2", "t1"]

    @pytest.mark.unit
    def test_equal_dates_keep_insertion_order(self, storage):
        for quiz_id in ("first", "second", "third"):
            storage.save(make_quiz(quiz_id, 500))
        assert [q.id for q in storage.list_all()] == ["first", "second", "third"]

    @pytest.mark.unit
    def test_score_not_checked_against_results(self, storage):
        quiz = make_quiz("loose", 1, score=9, total=3, accuracy=1.5)
        storage.save(quiz)
        [loaded] = storage.list_all()
        assert (loaded.score, loaded.total, loaded.accuracy) == (9, 3, 1.5)
        assert len(loaded.results) == 2

    @pytest.mark.unit
    def test_correctness_stored_as_integer(self, storage, sample_quiz, db_path):
        storage.save(sample_quiz)
        rows = raw_rows(db_path, "SELECT port, is_correct FROM quiz_results")
        assert set(rows) == {("FR-001", 1), ("ES-002", 0)}

    @pytest.mark.unit
    def test_names_stored_as_compact_json(self, storage, sample_quiz, db_path):
        storage.save(sample_quiz)
        [(regions, countries)] = raw_rows(
            db_path, "SELECT regions, countries FROM quiz_history"
        )
        assert regions == '["Europe"]'
        assert countries == '["France","Spain"]'

    @pytest.mark.unit
    def test_count(self, storage):
        assert storage.count() == 0
        storage.save(make_quiz("a", 1))
        storage.save(make_quiz("b", 2))
        assert storage.count() == 2


# =============================================================================
# Integrity Tests
# =============================================================================


class TestIntegrity:
    """Tests for constraints, rollback and clearing."""

    @pytest.mark.unit
    def test_duplicate_id_rejected(self, storage, sample_quiz):
        storage.save(sample_quiz)
        clash = make_quiz("q1", 5000, results=[ItemResult("Other", True)])

        with pytest.raises(DuplicateQuizError) as exc_info:
            storage.save(clash)

        assert exc_info.value.quiz_id == "q1"
        assert isinstance(exc_info.value, ConstraintViolationError)
        [kept] = storage.list_all()
        assert kept.date == 1000
        assert result_pairs(kept) == {("FR-001", True), ("ES-002", False)}

    @pytest.mark.unit
    def test_failed_result_insert_rolls_back_quiz(self, storage, db_path):
        quiz = make_quiz(
            "broken",
            1,
            results=[ItemResult("Good", True), ItemResult(None, False)],
        )
        with pytest.raises(ConstraintViolationError):
            storage.save(quiz)

        assert storage.list_all() == []
        assert raw_rows(db_path, "SELECT COUNT(*) FROM quiz_results") == [(0,)]

    @pytest.mark.unit
    def test_missing_id_rejected(self, storage):
        with pytest.raises(ConstraintViolationError) as exc_info:
            storage.save(make_quiz(None, 1))

        assert not isinstance(exc_info.value, DuplicateQuizError)
        with pytest.raises(ConstraintViolationError):
            storage.save(make_quiz(None, 2))
        assert storage.count() == 0

    @pytest.mark.unit
    def test_unbindable_value_raises_serialization_error(self, storage, db_path):
        with pytest.raises(SerializationError, match="Failed to serialize"):
            storage.save(make_quiz("huge", 2**63))

        assert storage.count() == 0
        assert raw_rows(db_path, "SELECT COUNT(*) FROM quiz_results") == [(0,)]
        storage.save(make_quiz("huge", 1))
        assert [q.id for q in storage.list_all()] == ["huge"]

    @pytest.mark.unit
    def test_interrupted_save_leaves_nothing(self, storage, db_path, monkeypatch):
        """A failure after the quiz row is written rolls the whole save back."""

        def fail_after_parent(conn, quiz):
            conn.execute(
                "INSERT INTO quiz_results (quiz_id, port, is_correct) VALUES (?, ?, ?)",
                (quiz.id, "Half-written", 1),
            )
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(storage, "_insert_results", fail_after_parent)

        with pytest.raises(StorageIOError, match="disk I/O error"):
            storage.save(make_quiz("interrupted", 1))

        assert storage.list_all() == []
        assert raw_rows(db_path, "SELECT COUNT(*) FROM quiz_results") == [(0,)]

    @pytest.mark.unit
    def test_storage_usable_after_failed_save(self, storage, monkeypatch):
        original = storage._insert_results

        def boom(conn, quiz):
            raise sqlite3.OperationalError("boom")

        monkeypatch.setattr(storage, "_insert_results", boom)
        with pytest.raises(StorageIOError):
            storage.save(make_quiz("x", 1))

        monkeypatch.setattr(storage, "_insert_results", original)
        storage.save(make_quiz("x", 1))
        assert [q.id for q in storage.list_all()] == ["x"]

    @pytest.mark.unit
    def test_clear_all(self, storage, sample_quiz, db_path):
        storage.save(sample_quiz)
        storage.save(make_quiz("q2", 2000))
        storage.clear_all()

        assert storage.list_all() == []
        assert raw_rows(db_path, "SELECT COUNT(*) FROM quiz_results") == [(0,)]

    @pytest.mark.unit
    def test_clear_all_twice(self, storage, sample_quiz):
        storage.save(sample_quiz)
        storage.clear_all()
        storage.clear_all()
        assert storage.list_all() == []

    @pytest.mark.unit
    def test_clear_empty_store(self, storage):
        storage.clear_all()
        assert storage.count() == 0

    @pytest.mark.unit
    def test_deleting_quiz_cascades_to_results(self, storage, sample_quiz, db_path):
        storage.save(sample_quiz)
        conn = sqlite3.connect(str(db_path))
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("DELETE FROM quiz_history WHERE id = 'q1'")
            conn.commit()
        finally:
            conn.close()
        assert raw_rows(db_path, "SELECT COUNT(*) FROM quiz_results") == [(0,)]

    @pytest.mark.unit
    def test_result_requires_existing_quiz(self, storage):
        with pytest.raises(sqlite3.IntegrityError):
            storage._conn.execute(
                "INSERT INTO quiz_results (quiz_id, port, is_correct) VALUES (?, ?, ?)",
                ("missing", "Nowhere", 0),
            )

    @pytest.mark.unit
    def test_concurrent_saves(self, storage):
        errors: list[Exception] = []

        def worker(start: int) -> None:
            try:
                for i in range(start, start + 10):
                    storage.save(make_quiz(f"t{i}", i))
            except Exception as e:  # collected for the assertion below
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n * 10,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        history = storage.list_all()
        assert len(history) == 40
        assert all(len(q.results) == 2 for q in history)


# =============================================================================
# Name Encoding Tests
# =============================================================================


class TestNameEncoding:
    """Tests for regions/countries encoding."""

    @pytest.mark.unit
    def test_encode_rejects_non_list(self):
        with pytest.raises(SerializationError):
            encode_names("Europe", "regions")

    @pytest.mark.unit
    def test_encode_rejects_non_string_elements(self):
        with pytest.raises(SerializationError, match="countries"):
            encode_names(["France", 3], "countries")

    @pytest.mark.unit
    def test_encode_accepts_tuple(self):
        assert encode_names(("A", "B"), "regions") == '["A","B"]'

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw", [None, "", "not json", "{}", '"Europe"', "[1, 2]", '["a", null]']
    )
    def test_decode_malformed_returns_empty(self, raw):
        assert decode_names(raw) == []

    @pytest.mark.unit
    def test_save_with_bad_regions_writes_nothing(self, storage):
        with pytest.raises(SerializationError):
            storage.save(make_quiz("bad", 1, regions=[{"name": "Europe"}]))
        assert storage.count() == 0

    @pytest.mark.unit
    def test_corrupt_row_does_not_block_listing(self, storage, db_path):
        storage.save(make_quiz("good", 2, countries=["Chile"]))
        storage.save(make_quiz("corrupt", 1))
        conn = sqlite3.connect(str(db_path))
        try:
            conn.execute(
                "UPDATE quiz_history SET regions = 'oops', countries = '[' "
                "WHERE id = 'corrupt'"
            )
            conn.commit()
        finally:
            conn.close()

        history = storage.list_all()
        assert [q.id for q in history] == ["good", "corrupt"]
        assert history[0].countries == ["Chile"]
        assert history[1].regions == []
        assert history[1].countries == []
        assert len(history[1].results) == 2


# =============================================================================
# HistoryManager Tests
# =============================================================================


class TestHistoryManager:
    """Tests for HistoryManager operations."""

    @pytest.mark.unit
    def test_save_and_list(self, manager, sample_quiz):
        stored = manager.save(sample_quiz)
        assert stored is sample_quiz
        assert [q.id for q in manager.list_all()] == ["q1"]
        assert manager.count() == 1

    @pytest.mark.unit
    def test_record_quiz(self, manager):
        quiz = manager.record_quiz(
            results=[ItemResult("Busan", True), ItemResult("Incheon", True)],
            duration=20,
            difficulty="easy",
            countries=["South Korea"],
        )
        [loaded] = manager.list_all()
        assert loaded.id == quiz.id
        assert loaded.score == 2
        assert loaded.accuracy == pytest.approx(1.0)
        assert loaded.countries == ["South Korea"]

    @pytest.mark.unit
    def test_clear_all(self, manager, sample_quiz):
        manager.save(sample_quiz)
        manager.clear_all()
        assert manager.list_all() == []

    @pytest.mark.unit
    def test_db_path(self, manager, db_path):
        assert manager.db_path == db_path

    @pytest.mark.unit
    def test_uses_given_storage(self, db_path):
        store = SQLiteStorage(db_path)
        mgr = HistoryManager(storage=store)
        try:
            assert store.is_open
        finally:
            mgr.close()
        assert not store.is_open


class TestGlobalManager:
    """Tests for the process-wide manager."""

    @pytest.mark.unit
    def test_get_returns_same_instance(self, db_path):
        try:
            first = get_history_manager(db_path)
            second = get_history_manager()
            assert first is second
            assert has_history_manager()
        finally:
            close_history_manager()
        assert not has_history_manager()

    @pytest.mark.unit
    def test_close_without_open_is_noop(self):
        close_history_manager()
        close_history_manager()
        assert not has_history_manager()


# =============================================================================
# Statistics Tests
# =============================================================================


@pytest.fixture
def stats_history():
    """Three quizzes over a handful of ports."""
    return [
        make_quiz(
            "s1",
            1,
            accuracy=0.5,
            difficulty="easy",
            results=[
                ItemResult("Rotterdam", True),
                ItemResult("Hamburg", False),
                ItemResult("Lagos", True),
            ],
        ),
        make_quiz(
            "s2",
            2,
            accuracy=1.0,
            difficulty="hard",
            results=[
                ItemResult("Rotterdam", True),
                ItemResult("Hamburg", False),
            ],
        ),
        make_quiz(
            "s3",
            3,
            accuracy=0.0,
            difficulty="hard",
            results=[
                ItemResult("Rotterdam", True),
                ItemResult("Hamburg", True),
            ],
        ),
    ]


class TestStats:
    """Tests for history statistics."""

    @pytest.mark.unit
    def test_port_stats(self, stats_history):
        stats = {s.port: s for s in get_port_stats(stats_history)}
        assert stats["Rotterdam"].attempts == 3
        assert stats["Rotterdam"].correct == 3
        assert stats["Rotterdam"].accuracy == pytest.approx(100.0)
        assert stats["Hamburg"].accuracy == pytest.approx(100 / 3)
        assert stats["Lagos"].attempts == 1

    @pytest.mark.unit
    def test_port_stats_sorted_by_attempts(self, stats_history):
        ports = [s.port for s in get_port_stats(stats_history)]
        assert ports[-1] == "Lagos"

    @pytest.mark.unit
    def test_weakest_ports(self, stats_history):
        weakest = get_weakest_ports(stats_history)
        assert [s.port for s in weakest] == ["Hamburg"]

    @pytest.mark.unit
    def test_strongest_ports(self, stats_history):
        strongest = get_strongest_ports(stats_history)
        # Lagos is excluded with a single attempt
        assert [s.port for s in strongest] == ["Rotterdam"]

    @pytest.mark.unit
    def test_limit(self, stats_history):
        assert get_weakest_ports(stats_history, limit=0) == []

    @pytest.mark.unit
    def test_average_score(self, stats_history):
        assert get_average_score(stats_history) == pytest.approx(0.5)
        assert get_average_score([]) == 0.0

    @pytest.mark.unit
    def test_performance_by_difficulty(self, stats_history):
        perf = get_performance_by_difficulty(stats_history)
        assert set(perf) == {"easy", "normal", "hard"}
        assert perf["easy"].count == 1
        assert perf["hard"].count == 2
        assert perf["hard"].avg_accuracy == pytest.approx(0.5)
        assert perf["normal"].count == 0
        assert perf["normal"].avg_accuracy == 0.0

    @pytest.mark.unit
    def test_unknown_difficulty_reported_separately(self):
        perf = get_performance_by_difficulty([make_quiz("x", 1, difficulty="expert")])
        assert perf["expert"].count == 1
        assert perf["easy"].count == 0
