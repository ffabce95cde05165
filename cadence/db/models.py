"""Database models for Cadence."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum


class MasteryLevel(IntEnum):
    """How well a learner knows an item.

    Ordered so that lower values are less mastered; the review queue relies on
    this ordering as a tie-break.
    """

    NOT_LEARNED = 0
    LEARNING = 1
    FAMILIAR = 2
    MASTERED = 3


class MistakeType(Enum):
    ARTICLE_ERROR = "ARTICLE_ERROR"  # Wrong article (der/die/das, el/la)
    UMLAUT_ERROR = "UMLAUT_ERROR"  # Missing or wrong diacritic / special character
    COMPOUND_ERROR = "COMPOUND_ERROR"  # Compound split or joined incorrectly
    CASE_ERROR = "CASE_ERROR"  # Wrong grammatical case
    PHONETIC_CONFUSION = "PHONETIC_CONFUSION"  # Similar sounding letters confused
    VISUAL_CONFUSION = "VISUAL_CONFUSION"  # Similar looking letters confused
    SPELLING_ERROR = "SPELLING_ERROR"  # Small general misspelling
    CAPITALIZATION_ERROR = "CAPITALIZATION_ERROR"  # Only capitalization differs
    UNCLASSIFIED = "UNCLASSIFIED"  # Wrong, but no check matched


class DifficultyLevel(Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class ExerciseType(Enum):
    RECOGNITION = "RECOGNITION"
    RECALL = "RECALL"
    SPELLING = "SPELLING"
    AUDIO = "AUDIO"


@dataclass(frozen=True)
class LanguageComplexity:
    """Per-mistake-type difficulty coefficients (0-1) for a language or item."""

    article_complexity: float = 0.2
    gender_complexity: float = 0.1
    case_complexity: float = 0.1
    phonetic_complexity: float = 0.4
    compound_word_complexity: float = 0.3

    @property
    def overall_complexity(self) -> float:
        return round(
            (
                self.article_complexity
                + self.gender_complexity
                + self.case_complexity
                + self.phonetic_complexity
                + self.compound_word_complexity
            )
            / 5,
            2,
        )


@dataclass(frozen=True)
class LearningItem:
    """A word/translation pair to be learned.

    complexity overrides the language profile's coefficients for this item;
    when None the classifier uses the language defaults.
    """

    id: int | None = None
    word: str = ""
    translation: str = ""
    language: str = "de"
    difficulty: DifficultyLevel = DifficultyLevel.BEGINNER
    category: str = ""
    complexity: LanguageComplexity | None = None
    created_at: datetime | None = None


@dataclass
class ProgressRecord:
    """SM-2 scheduling state for one (learner, item) pair."""

    id: int | None = None
    learner_id: int = 0
    item_id: int = 0
    mastery_level: MasteryLevel = MasteryLevel.NOT_LEARNED
    correct_attempts: int = 0
    total_attempts: int = 0
    ease_factor: float = 2.5
    repetitions: int = 0
    interval_days: int = 1
    lapse_count: int = 0
    streak_count: int = 0
    last_seen: datetime | None = None
    next_review: datetime | None = None  # None = never scheduled
    version: int = 0  # Optimistic lock; 0 means not yet persisted

    @property
    def accuracy(self) -> float:
        if self.total_attempts == 0:
            return 0.0
        return self.correct_attempts / self.total_attempts


@dataclass(frozen=True)
class AttemptRecord:
    """A single answer to an item. Append-only."""

    id: int | None = None
    learner_id: int = 0
    item_id: int = 0
    session_id: str = ""
    is_correct: bool = False
    response_time_ms: int = 0
    hints_used: int = 0
    exercise_type: ExerciseType = ExerciseType.RECALL
    attempted_at: datetime | None = None


@dataclass(frozen=True)
class MistakeRecord:
    """One classified mistake belonging to an incorrect attempt. Append-only."""

    id: int | None = None
    attempt_id: int | None = None
    learner_id: int = 0
    item_id: int = 0
    mistake_type: MistakeType = MistakeType.UNCLASSIFIED
    severity: float = 0.5
    correct_answer: str = ""
    given_answer: str = ""
    exercise_type: ExerciseType = ExerciseType.RECALL
    response_time_ms: int = 0
    hints_used: int = 0
    language_code: str = "de"
    created_at: datetime | None = None
