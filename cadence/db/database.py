"""SQLite database setup and operations."""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from cadence.db.models import (
    AttemptRecord,
    DifficultyLevel,
    ExerciseType,
    LanguageComplexity,
    LearningItem,
    MasteryLevel,
    MistakeRecord,
    MistakeType,
    ProgressRecord,
)
from cadence.errors import ConflictError

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS learning_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    word TEXT NOT NULL,
    translation TEXT NOT NULL,
    language TEXT NOT NULL DEFAULT 'de',
    difficulty TEXT NOT NULL DEFAULT 'BEGINNER',
    category TEXT DEFAULT '',
    complexity TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS progress (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    learner_id INTEGER NOT NULL,
    item_id INTEGER NOT NULL REFERENCES learning_items(id),
    mastery_level INTEGER NOT NULL DEFAULT 0,
    correct_attempts INTEGER NOT NULL DEFAULT 0,
    total_attempts INTEGER NOT NULL DEFAULT 0,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    repetitions INTEGER NOT NULL DEFAULT 0,
    interval_days INTEGER NOT NULL DEFAULT 1,
    lapse_count INTEGER NOT NULL DEFAULT 0,
    streak_count INTEGER NOT NULL DEFAULT 0,
    last_seen TIMESTAMP,
    next_review TIMESTAMP,
    version INTEGER NOT NULL DEFAULT 1,
    UNIQUE(learner_id, item_id)
);

CREATE TABLE IF NOT EXISTS attempts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    learner_id INTEGER NOT NULL,
    item_id INTEGER NOT NULL REFERENCES learning_items(id),
    session_id TEXT NOT NULL,
    is_correct INTEGER NOT NULL,
    response_time_ms INTEGER NOT NULL DEFAULT 0,
    hints_used INTEGER NOT NULL DEFAULT 0,
    exercise_type TEXT NOT NULL,
    attempted_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS mistakes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    attempt_id INTEGER NOT NULL REFERENCES attempts(id),
    learner_id INTEGER NOT NULL,
    item_id INTEGER NOT NULL REFERENCES learning_items(id),
    mistake_type TEXT NOT NULL,
    severity REAL NOT NULL,
    correct_answer TEXT NOT NULL,
    given_answer TEXT NOT NULL,
    exercise_type TEXT NOT NULL,
    response_time_ms INTEGER NOT NULL DEFAULT 0,
    hints_used INTEGER NOT NULL DEFAULT 0,
    language_code TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_progress_learner ON progress(learner_id);
CREATE INDEX IF NOT EXISTS idx_progress_next_review ON progress(next_review);
CREATE INDEX IF NOT EXISTS idx_attempts_learner ON attempts(learner_id, attempted_at);
CREATE INDEX IF NOT EXISTS idx_mistakes_learner ON mistakes(learner_id, created_at);
CREATE INDEX IF NOT EXISTS idx_mistakes_attempt ON mistakes(attempt_id);
"""


class Database:
    """SQLite database wrapper with thread-local connection pooling."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._local = threading.local()
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create a thread-local database connection."""
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(self.db_path)
            self._local.conn.row_factory = sqlite3.Row
        return self._local.conn

    @contextmanager
    def connection(self):
        """Get a database connection (reuses thread-local connection).

        Everything executed inside one `with` block commits or rolls back together.
        """
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def close(self) -> None:
        """Close the thread-local connection if open."""
        if hasattr(self._local, "conn") and self._local.conn is not None:
            self._local.conn.close()
            self._local.conn = None

    def init_schema(self) -> None:
        """Initialize the database schema and run migrations."""
        with self.connection() as conn:
            conn.executescript(SCHEMA)
            # Run migrations for existing databases
            self._migrate(conn)

    def _migrate(self, conn: sqlite3.Connection) -> None:
        """Run schema migrations for existing databases."""
        # Optimistic locking column for concurrent attempt processing
        cursor = conn.execute("PRAGMA table_info(progress)")
        columns = {row[1] for row in cursor.fetchall()}
        if "version" not in columns:
            conn.execute("ALTER TABLE progress ADD COLUMN version INTEGER NOT NULL DEFAULT 1")

    # Learning item operations
    def add_item(self, item: LearningItem) -> int:
        """Add a learning item and return its ID."""
        with self.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO learning_items (word, translation, language, difficulty, category, complexity)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    item.word,
                    item.translation,
                    item.language,
                    item.difficulty.value,
                    item.category,
                    json.dumps(_complexity_to_dict(item.complexity)) if item.complexity else None,
                ),
            )
            return cursor.lastrowid

    def get_item(self, item_id: int) -> LearningItem | None:
        """Get a learning item by ID."""
        with self.connection() as conn:
            row = conn.execute("SELECT * FROM learning_items WHERE id = ?", (item_id,)).fetchone()
            if row:
                return self._row_to_item(row)
            return None

    def get_item_by_word(self, word: str, language: str = "de") -> LearningItem | None:
        """Get a learning item by its word (case-insensitive)."""
        with self.connection() as conn:
            row = conn.execute(
                "SELECT * FROM learning_items WHERE LOWER(word) = LOWER(?) AND language = ?",
                (word, language),
            ).fetchone()
            if row:
                return self._row_to_item(row)
            return None

    def get_all_items(self) -> list[LearningItem]:
        """Get all learning items."""
        with self.connection() as conn:
            rows = conn.execute("SELECT * FROM learning_items ORDER BY id").fetchall()
            return [self._row_to_item(row) for row in rows]

    def _row_to_item(self, row: sqlite3.Row) -> LearningItem:
        """Convert a database row to a LearningItem."""
        return LearningItem(
            id=row["id"],
            word=row["word"],
            translation=row["translation"],
            language=row["language"],
            difficulty=DifficultyLevel(row["difficulty"]),
            category=row["category"] or "",
            complexity=LanguageComplexity(**json.loads(row["complexity"])) if row["complexity"] else None,
            created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
        )

    # Progress operations
    def get_progress(self, learner_id: int, item_id: int) -> ProgressRecord | None:
        """Get progress for a learner/item pair, or None if never attempted."""
        with self.connection() as conn:
            row = conn.execute(
                "SELECT * FROM progress WHERE learner_id = ? AND item_id = ?",
                (learner_id, item_id),
            ).fetchone()
            if row:
                return self._row_to_progress(row)
            return None

    def get_all_progress(self, learner_id: int) -> list[ProgressRecord]:
        """Get every progress record for a learner."""
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM progress WHERE learner_id = ? ORDER BY id",
                (learner_id,),
            ).fetchall()
            return [self._row_to_progress(row) for row in rows]

    def save_progress(self, progress: ProgressRecord) -> ProgressRecord:
        """Insert or update a progress record, checking its version.

        Raises:
            ConflictError: If another writer changed the record since it was read.
        """
        with self.connection() as conn:
            return self._upsert_progress(conn, progress)

    def _upsert_progress(self, conn: sqlite3.Connection, progress: ProgressRecord) -> ProgressRecord:
        values = (
            int(progress.mastery_level),
            progress.correct_attempts,
            progress.total_attempts,
            progress.ease_factor,
            progress.repetitions,
            progress.interval_days,
            progress.lapse_count,
            progress.streak_count,
            progress.last_seen.isoformat() if progress.last_seen else None,
            progress.next_review.isoformat() if progress.next_review else None,
        )

        if progress.version == 0:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO progress
                    (mastery_level, correct_attempts, total_attempts, ease_factor, repetitions,
                     interval_days, lapse_count, streak_count, last_seen, next_review,
                     learner_id, item_id, version)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1)
                    """,
                    values + (progress.learner_id, progress.item_id),
                )
            except sqlite3.IntegrityError as e:
                logger.warning(
                    f"Progress for learner {progress.learner_id}, item {progress.item_id} created concurrently"
                )
                raise ConflictError(progress.learner_id, progress.item_id) from e
            return replace(progress, id=cursor.lastrowid, version=1)

        cursor = conn.execute(
            """
            UPDATE progress
            SET mastery_level = ?, correct_attempts = ?, total_attempts = ?, ease_factor = ?,
                repetitions = ?, interval_days = ?, lapse_count = ?, streak_count = ?,
                last_seen = ?, next_review = ?, version = version + 1
            WHERE learner_id = ? AND item_id = ? AND version = ?
            """,
            values + (progress.learner_id, progress.item_id, progress.version),
        )
        if cursor.rowcount == 0:
            logger.warning(
                f"Stale progress for learner {progress.learner_id}, item {progress.item_id} "
                f"(version {progress.version})"
            )
            raise ConflictError(progress.learner_id, progress.item_id)
        return replace(progress, version=progress.version + 1)

    def _row_to_progress(self, row: sqlite3.Row) -> ProgressRecord:
        """Convert a database row to a ProgressRecord."""
        return ProgressRecord(
            id=row["id"],
            learner_id=row["learner_id"],
            item_id=row["item_id"],
            mastery_level=MasteryLevel(row["mastery_level"]),
            correct_attempts=row["correct_attempts"],
            total_attempts=row["total_attempts"],
            ease_factor=row["ease_factor"],
            repetitions=row["repetitions"],
            interval_days=row["interval_days"],
            lapse_count=row["lapse_count"],
            streak_count=row["streak_count"],
            last_seen=datetime.fromisoformat(row["last_seen"]) if row["last_seen"] else None,
            next_review=datetime.fromisoformat(row["next_review"]) if row["next_review"] else None,
            version=row["version"],
        )

    # Attempt operations
    def record_attempt(
        self,
        attempt: AttemptRecord,
        mistakes: list[MistakeRecord],
        progress: ProgressRecord,
    ) -> tuple[int, ProgressRecord]:
        """Append an attempt and its mistakes and save the progress, atomically.

        Returns:
            Tuple of (attempt_id, saved progress with its new version).

        Raises:
            ConflictError: If the progress record was changed concurrently.
                Nothing is written in that case.
        """
        with self.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO attempts
                (learner_id, item_id, session_id, is_correct, response_time_ms, hints_used,
                 exercise_type, attempted_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    attempt.learner_id,
                    attempt.item_id,
                    attempt.session_id,
                    int(attempt.is_correct),
                    attempt.response_time_ms,
                    attempt.hints_used,
                    attempt.exercise_type.value,
                    (attempt.attempted_at or datetime.now()).isoformat(),
                ),
            )
            attempt_id = cursor.lastrowid

            for mistake in mistakes:
                conn.execute(
                    """
                    INSERT INTO mistakes
                    (attempt_id, learner_id, item_id, mistake_type, severity, correct_answer,
                     given_answer, exercise_type, response_time_ms, hints_used, language_code, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        attempt_id,
                        mistake.learner_id,
                        mistake.item_id,
                        mistake.mistake_type.value,
                        mistake.severity,
                        mistake.correct_answer,
                        mistake.given_answer,
                        mistake.exercise_type.value,
                        mistake.response_time_ms,
                        mistake.hints_used,
                        mistake.language_code,
                        (mistake.created_at or datetime.now()).isoformat(),
                    ),
                )

            saved = self._upsert_progress(conn, progress)
            return attempt_id, saved

    def get_recent_attempts(self, learner_id: int, limit: int = 30) -> list[AttemptRecord]:
        """Get a learner's most recent attempts, newest first."""
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM attempts
                WHERE learner_id = ?
                ORDER BY attempted_at DESC, id DESC
                LIMIT ?
                """,
                (learner_id, limit),
            ).fetchall()
            return [self._row_to_attempt(row) for row in rows]

    def _row_to_attempt(self, row: sqlite3.Row) -> AttemptRecord:
        """Convert a database row to an AttemptRecord."""
        return AttemptRecord(
            id=row["id"],
            learner_id=row["learner_id"],
            item_id=row["item_id"],
            session_id=row["session_id"],
            is_correct=bool(row["is_correct"]),
            response_time_ms=row["response_time_ms"],
            hints_used=row["hints_used"],
            exercise_type=ExerciseType(row["exercise_type"]),
            attempted_at=datetime.fromisoformat(row["attempted_at"]) if row["attempted_at"] else None,
        )

    # Mistake operations
    def get_recent_mistakes(self, learner_id: int, limit: int = 50) -> list[MistakeRecord]:
        """Get a learner's most recent mistakes, newest first."""
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM mistakes
                WHERE learner_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (learner_id, limit),
            ).fetchall()
            return [self._row_to_mistake(row) for row in rows]

    def get_mistakes_for_attempt(self, attempt_id: int) -> list[MistakeRecord]:
        """Get the mistakes recorded for one attempt."""
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM mistakes WHERE attempt_id = ? ORDER BY id",
                (attempt_id,),
            ).fetchall()
            return [self._row_to_mistake(row) for row in rows]

    def _row_to_mistake(self, row: sqlite3.Row) -> MistakeRecord:
        """Convert a database row to a MistakeRecord."""
        return MistakeRecord(
            id=row["id"],
            attempt_id=row["attempt_id"],
            learner_id=row["learner_id"],
            item_id=row["item_id"],
            mistake_type=MistakeType(row["mistake_type"]),
            severity=row["severity"],
            correct_answer=row["correct_answer"],
            given_answer=row["given_answer"],
            exercise_type=ExerciseType(row["exercise_type"]),
            response_time_ms=row["response_time_ms"],
            hints_used=row["hints_used"],
            language_code=row["language_code"],
            created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
        )


def _complexity_to_dict(complexity: LanguageComplexity) -> dict[str, float]:
    return {
        "article_complexity": complexity.article_complexity,
        "gender_complexity": complexity.gender_complexity,
        "case_complexity": complexity.case_complexity,
        "phonetic_complexity": complexity.phonetic_complexity,
        "compound_word_complexity": complexity.compound_word_complexity,
    }
