"""Shared pytest fixtures for the Cadence test suite."""

import pytest
from datetime import datetime, timedelta

from cadence.config import Config
from cadence.db.database import Database
from cadence.db.models import (
    AttemptRecord,
    DifficultyLevel,
    ExerciseType,
    LanguageComplexity,
    LearningItem,
    MasteryLevel,
    ProgressRecord,
)


@pytest.fixture
def memory_db(tmp_path):
    """Create a temporary SQLite database for fast tests.

    Note: We use a temp file instead of :memory: because SQLite
    in-memory databases don't persist between connections, and
    each thread gets its own connection.
    """
    db_path = tmp_path / "memory_test.db"
    db = Database(str(db_path))
    db.init_schema()
    return db


@pytest.fixture
def now():
    """Fixed reference time so scheduling results are deterministic."""
    return datetime(2025, 3, 10, 9, 30)


@pytest.fixture
def sample_item():
    """German noun with article, the classic source of article/case mistakes."""
    return LearningItem(
        word="die Katze",
        translation="cat",
        language="de",
        difficulty=DifficultyLevel.BEGINNER,
        category="animals",
    )


@pytest.fixture
def sample_advanced_item():
    """Advanced German compound with its own complexity coefficients."""
    return LearningItem(
        word="der Kühlschrank",
        translation="fridge",
        language="de",
        difficulty=DifficultyLevel.ADVANCED,
        category="objects",
        complexity=LanguageComplexity(
            article_complexity=1.0,
            gender_complexity=0.9,
            case_complexity=0.8,
            phonetic_complexity=0.6,
            compound_word_complexity=0.9,
        ),
    )


@pytest.fixture
def sample_english_item():
    """English vocabulary item."""
    return LearningItem(
        word="the apple",
        translation="der Apfel",
        language="en",
        difficulty=DifficultyLevel.INTERMEDIATE,
        category="food",
    )


@pytest.fixture
def make_progress():
    """Factory for progress records with sensible defaults."""

    def _make(**overrides) -> ProgressRecord:
        values = {"learner_id": 1, "item_id": 1}
        values.update(overrides)
        return ProgressRecord(**values)

    return _make


@pytest.fixture
def make_attempt(now):
    """Factory for attempt records spaced one minute apart."""

    def _make(index: int = 0, is_correct: bool = True, response_time_ms: int = 3000) -> AttemptRecord:
        return AttemptRecord(
            learner_id=1,
            item_id=1,
            session_id="session-1",
            is_correct=is_correct,
            response_time_ms=response_time_ms,
            exercise_type=ExerciseType.RECALL,
            attempted_at=now + timedelta(minutes=index),
        )

    return _make


@pytest.fixture
def populated_db(memory_db, sample_item, sample_english_item):
    """Database with two items and a due progress record for the first."""
    item1_id = memory_db.add_item(sample_item)
    memory_db.add_item(sample_english_item)

    memory_db.save_progress(
        ProgressRecord(
            learner_id=1,
            item_id=item1_id,
            mastery_level=MasteryLevel.LEARNING,
            next_review=datetime.now() - timedelta(hours=1),
        )
    )
    return memory_db


@pytest.fixture
def config():
    """Test configuration."""
    return Config(
        database_path=":memory:",
        minimum_interval=1,
        maximum_interval=180,
        expected_time_ms=4000,
    )
