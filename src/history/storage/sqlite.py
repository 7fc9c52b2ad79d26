"""SQLite storage backend for quiz history.

Holds one long-lived connection per store. Every public operation runs in
its own explicit transaction under a re-entrant lock, so a quiz and its
results are written, read and cleared all-or-nothing.
"""

import json
import logging
import sqlite3
import threading
from collections import defaultdict
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from ..errors import (
    ConstraintViolationError,
    DuplicateQuizError,
    SerializationError,
    StorageInitError,
    StorageIOError,
)
from ..models import ItemResult, QuizSummary, StorageConfig

logger = logging.getLogger(__name__)

# SQL Schema
SCHEMA_SQL = """
BEGIN;

-- Quiz summaries
CREATE TABLE IF NOT EXISTS quiz_history (
    id TEXT PRIMARY KEY NOT NULL,
    date INTEGER NOT NULL,  -- epoch milliseconds
    score INTEGER NOT NULL,
    total INTEGER NOT NULL,
    accuracy REAL NOT NULL,
    duration INTEGER NOT NULL,  -- seconds
    difficulty TEXT NOT NULL,
    regions TEXT NOT NULL,  -- JSON array
    countries TEXT NOT NULL  -- JSON array
);

CREATE INDEX IF NOT EXISTS idx_quiz_history_date ON quiz_history(date DESC);
CREATE INDEX IF NOT EXISTS idx_quiz_history_difficulty ON quiz_history(difficulty);

-- Per-port results
CREATE TABLE IF NOT EXISTS quiz_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    quiz_id TEXT NOT NULL,
    port TEXT NOT NULL,
    is_correct INTEGER NOT NULL,  -- 0/1
    FOREIGN KEY (quiz_id) REFERENCES quiz_history(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_quiz_results_port_correct ON quiz_results(port, is_correct);

COMMIT;
"""

QUIZ_COLUMNS = (
    "id, date, score, total, accuracy, duration, difficulty, regions, countries"
)


def encode_names(values: Sequence[str], field_name: str) -> str:
    """Encode an ordered list of names as a compact JSON array.

    Args:
        values: Names to encode.
        field_name: Field being encoded, used in the error message.

    Returns:
        JSON text such as ``["France","Spain"]``.

    Raises:
        SerializationError: If ``values`` is not a list/tuple of strings.
    """
    if not isinstance(values, (list, tuple)):
        raise SerializationError(
            f"Failed to serialize {field_name}: expected a list of strings, "
            f"got {type(values).__name__}"
        )
    for value in values:
        if not isinstance(value, str):
            raise SerializationError(
                f"Failed to serialize {field_name}: "
                f"non-string element {value!r}"
            )
    return json.dumps(list(values), separators=(",", ":"), ensure_ascii=False)


def decode_names(raw: str | None) -> list[str]:
    """Decode a JSON array written by ``encode_names``.

    Missing or malformed text decodes to an empty list so one corrupt
    field never blocks listing the rest of the history.
    """
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.debug(f"Discarding malformed name list: {raw!r}")
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        logger.debug(f"Discarding non-string name list: {raw!r}")
        return []
    return value


class SQLiteStorage:
    """SQLite-based storage backend for quiz history.

    Features:
    - Persistent storage in a single SQLite database file
    - Quiz results removed with their quiz via ON DELETE CASCADE
    - Transactional save/list/clear over one shared connection

    Args:
        db_path: Path to SQLite database file.
        config: Storage configuration.
    """

    def __init__(
        self,
        db_path: Path | str,
        config: StorageConfig | None = None,
    ):
        self.db_path = Path(db_path)
        self._config = config or StorageConfig()
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    @property
    def config(self) -> StorageConfig:
        """Get storage configuration."""
        return self._config

    @property
    def is_open(self) -> bool:
        """Whether the connection is currently open."""
        return self._conn is not None

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection."""
        if self._conn is None:
            raise StorageInitError("Storage not initialized. Call initialize() first.")
        return self._conn

    def initialize(self) -> None:
        """Initialize storage (create directory, database, tables, indexes).

        Safe to call repeatedly; an open store only re-checks the schema.
        """
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.executescript(SCHEMA_SQL)
                except sqlite3.Error as e:
                    self._rollback_quietly(self._conn)
                    raise StorageInitError(
                        f"Failed to create schema at {self.db_path}: {e}"
                    ) from e
                return

            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageInitError(
                    f"Failed to create app data dir {self.db_path.parent}: {e}"
                ) from e

            conn: sqlite3.Connection | None = None
            try:
                conn = sqlite3.connect(
                    str(self.db_path),
                    check_same_thread=False,
                    isolation_level=None,
                    timeout=self._config.busy_timeout_ms / 1000,
                )
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA foreign_keys = ON")
                conn.execute(f"PRAGMA journal_mode = {self._config.journal_mode}")
                conn.executescript(SCHEMA_SQL)
            except sqlite3.Error as e:
                if conn is not None:
                    conn.close()
                raise StorageInitError(
                    f"Failed to initialize database at {self.db_path}: {e}"
                ) from e

            self._conn = conn

        logger.info(f"Initialized SQLite history storage at {self.db_path}")

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    @contextmanager
    def _transaction(self, immediate: bool = True) -> Iterator[sqlite3.Connection]:
        """Run a block inside one transaction, rolling back on any error.

        Args:
            immediate: Take the write lock up front (``BEGIN IMMEDIATE``).
        """
        with self._lock:
            conn = self._get_conn()
            conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException:
                self._rollback_quietly(conn)
                raise

    @staticmethod
    def _rollback_quietly(conn: sqlite3.Connection) -> None:
        # SQLite may already have rolled back on its own (e.g. SQLITE_FULL)
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    # =========================================================================
    # Quiz Operations
    # =========================================================================

    def save(self, quiz: QuizSummary) -> None:
        """Store a quiz and its results in a single transaction."""
        regions_json = encode_names(quiz.regions, "regions")
        countries_json = encode_names(quiz.countries, "countries")

        try:
            with self._transaction() as conn:
                self._insert_quiz(conn, quiz, regions_json, countries_json)
                self._insert_results(conn, quiz)
        except sqlite3.IntegrityError as e:
            if "UNIQUE constraint failed: quiz_history.id" in str(e):
                raise DuplicateQuizError(
                    f"Failed to insert quiz history: quiz {quiz.id!r} already exists",
                    quiz_id=quiz.id,
                ) from e
            raise ConstraintViolationError(
                f"Failed to insert quiz history: {e}"
            ) from e
        except sqlite3.Error as e:
            raise StorageIOError(f"Failed to save quiz history: {e}") from e
        except (OverflowError, TypeError) as e:
            # Values SQLite cannot bind, e.g. integers beyond 64 bits
            raise SerializationError(f"Failed to serialize quiz history: {e}") from e

        logger.debug(f"Saved quiz {quiz.id} with {len(quiz.results)} results")

    def list_all(self) -> list[QuizSummary]:
        """List every quiz with its results, newest first."""
        try:
            with self._transaction(immediate=False) as conn:
                quiz_rows = conn.execute(
                    f"SELECT {QUIZ_COLUMNS} FROM quiz_history "
                    "ORDER BY date DESC, rowid ASC"
                ).fetchall()
                result_rows = conn.execute(
                    "SELECT quiz_id, port, is_correct FROM quiz_results ORDER BY id"
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageIOError(f"Failed to fetch quiz history: {e}") from e

        results_by_quiz: dict[str, list[ItemResult]] = defaultdict(list)
        for row in result_rows:
            results_by_quiz[row["quiz_id"]].append(self._row_to_result(row))

        return [
            self._row_to_quiz(row, results_by_quiz.get(row["id"], []))
            for row in quiz_rows
        ]

    def clear_all(self) -> None:
        """Delete all results, then all quizzes."""
        try:
            with self._transaction() as conn:
                # Results before quizzes, independent of ON DELETE CASCADE
                results_deleted = conn.execute("DELETE FROM quiz_results").rowcount
                quizzes_deleted = conn.execute("DELETE FROM quiz_history").rowcount
        except sqlite3.Error as e:
            raise StorageIOError(f"Failed to clear quiz history: {e}") from e

        logger.info(
            f"Cleared quiz history: {quizzes_deleted} quizzes, "
            f"{results_deleted} results"
        )

    def count(self) -> int:
        """Return the number of stored quizzes."""
        try:
            with self._lock:
                row = self._get_conn().execute(
                    "SELECT COUNT(*) FROM quiz_history"
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageIOError(f"Failed to count quiz history: {e}") from e
        return row[0]

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _insert_quiz(
        self,
        conn: sqlite3.Connection,
        quiz: QuizSummary,
        regions_json: str,
        countries_json: str,
    ) -> None:
        conn.execute(
            f"INSERT INTO quiz_history ({QUIZ_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                quiz.id,
                quiz.date,
                quiz.score,
                quiz.total,
                quiz.accuracy,
                quiz.duration,
                quiz.difficulty,
                regions_json,
                countries_json,
            ),
        )

    def _insert_results(self, conn: sqlite3.Connection, quiz: QuizSummary) -> None:
        conn.executemany(
            "INSERT INTO quiz_results (quiz_id, port, is_correct) VALUES (?, ?, ?)",
            [(quiz.id, r.port, 1 if r.is_correct else 0) for r in quiz.results],
        )

    def _row_to_result(self, row: sqlite3.Row) -> ItemResult:
        """Convert a quiz_results row to an ItemResult."""
        return ItemResult(port=row["port"], is_correct=row["is_correct"] != 0)

    def _row_to_quiz(
        self,
        row: sqlite3.Row,
        results: list[ItemResult],
    ) -> QuizSummary:
        """Convert a quiz_history row and its results to a QuizSummary."""
        return QuizSummary(
            id=row["id"],
            date=row["date"],
            score=row["score"],
            total=row["total"],
            accuracy=row["accuracy"],
            duration=row["duration"],
            difficulty=row["difficulty"],
            regions=decode_names(row["regions"]),
            countries=decode_names(row["countries"]),
            results=results,
        )


__all__ = ["SQLiteStorage", "SCHEMA_SQL", "encode_names", "decode_names"]
