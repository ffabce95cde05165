"""Attempt processing and review planning on top of the database.

Implements the per-attempt pipeline:
record -> classify mistakes -> rate quality -> schedule -> update streak -> reward.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime

from cadence.db.database import Database
from cadence.db.models import (
    AttemptRecord,
    DifficultyLevel,
    ExerciseType,
    LearningItem,
    MasteryLevel,
    MistakeRecord,
    ProgressRecord,
)
from cadence.errors import NotFoundError
from cadence.scheduling.mistakes import MistakeAnalysis, classify_mistake
from cadence.scheduling.planner import (
    DEFAULT_REVIEW_LIMIT,
    SESSION_WINDOW,
    is_lapsed,
    optimal_session_size,
    rank_due_items,
)
from cadence.scheduling.quality import DEFAULT_EXPECTED_TIME_MS, rate_quality, time_spent_multiplier
from cadence.scheduling.sm2 import ScheduleAdjustments, SchedulerSettings, calculate_schedule
from cadence.scheduling.streak import streak_bonus, update_streak
from cadence.scheduling.weak_areas import WeakAreas, analyze_weak_areas

logger = logging.getLogger(__name__)

BASE_XP = 10
MISTAKE_TYPE_WEIGHT = 1.2  # Applied when an attempt recorded any mistake

DIFFICULTY_MULTIPLIER = {
    DifficultyLevel.BEGINNER: 1.0,
    DifficultyLevel.INTERMEDIATE: 1.5,
    DifficultyLevel.ADVANCED: 2.0,
}

MASTERY_BONUS = {
    MasteryLevel.FAMILIAR: 1.2,
    MasteryLevel.MASTERED: 1.5,
}


@dataclass
class AttemptInput:
    """One learner answer, as received from the caller."""

    learner_id: int
    item_id: int
    session_id: str
    is_correct: bool
    correct_answer: str
    given_answer: str
    response_time_ms: int
    hints_used: int = 0
    exercise_type: ExerciseType = ExerciseType.RECALL
    expected_time_ms: int | None = None  # None = the service's configured default


@dataclass
class ProgressSnapshot:
    """The scheduling fields returned to the caller after an attempt."""

    mastery_level: MasteryLevel
    next_review: datetime
    interval_days: int
    ease_factor: float
    repetitions: int
    streak_updated: bool


@dataclass
class AttemptOutcome:
    attempt_id: int
    progress: ProgressSnapshot
    mistakes_recorded: int
    xp_earned: int


@dataclass
class ReviewQueueEntry:
    item: LearningItem
    progress: ProgressRecord
    lapsed: bool  # Overdue by more than twice its interval


def calculate_xp(
    is_correct: bool,
    difficulty: DifficultyLevel,
    mastery_level: MasteryLevel,
    streak_count: int,
) -> int:
    """XP for an attempt: 10 x difficulty x mastery x streak bonus, or 0 if wrong."""
    if not is_correct:
        return 0
    multiplier = (
        DIFFICULTY_MULTIPLIER.get(difficulty, 1.0)
        * MASTERY_BONUS.get(mastery_level, 1.0)
        * streak_bonus(streak_count)
    )
    return round(BASE_XP * multiplier)


class ReviewService:
    """Processes attempts and plans review sessions for learners.

    The service itself holds no per-learner state. Concurrent attempts on the
    same (learner, item) pair are serialized by the database's version check,
    which raises ConflictError for the loser; callers retry the whole call.
    """

    def __init__(
        self,
        db: Database,
        settings: SchedulerSettings | None = None,
        expected_time_ms: int = DEFAULT_EXPECTED_TIME_MS,
    ):
        self.db = db
        self.settings = settings or SchedulerSettings()
        self.expected_time_ms = expected_time_ms

    def process_attempt(self, attempt: AttemptInput, now: datetime | None = None) -> AttemptOutcome:
        """Record an attempt and reschedule the item.

        Raises:
            NotFoundError: If the item does not exist. Nothing is written.
            ConflictError: If the progress record was updated concurrently.
                Nothing is written.
        """
        now = now or datetime.now()

        item = self.db.get_item(attempt.item_id)
        if item is None:
            raise NotFoundError("Learning item", attempt.item_id)

        response_time_ms = max(0, attempt.response_time_ms)
        hints_used = max(0, attempt.hints_used)
        expected_time_ms = (
            attempt.expected_time_ms if attempt.expected_time_ms is not None else self.expected_time_ms
        )

        # Classify mistakes for incorrect answers
        analysis = MistakeAnalysis()
        if not attempt.is_correct:
            analysis = classify_mistake(item, attempt.correct_answer, attempt.given_answer, item.language)

        progress = self.db.get_progress(attempt.learner_id, attempt.item_id)
        if progress is None:
            progress = ProgressRecord(learner_id=attempt.learner_id, item_id=attempt.item_id)

        quality = rate_quality(attempt.is_correct, hints_used, response_time_ms, expected_time_ms)

        adjustments = ScheduleAdjustments(
            complexity_weight=analysis.complexity_weight,
            mistake_type_weight=MISTAKE_TYPE_WEIGHT if analysis.has_mistakes else 1.0,
            time_spent_multiplier=time_spent_multiplier(response_time_ms, expected_time_ms),
            minimum_interval=self.settings.minimum_interval,
            maximum_interval=self.settings.maximum_interval,
        )
        schedule = calculate_schedule(progress, quality, adjustments, now=now, settings=self.settings)

        streak = update_streak(progress.streak_count, attempt.is_correct, progress.next_review, now)

        updated = replace(
            progress,
            mastery_level=schedule.mastery_level,
            correct_attempts=progress.correct_attempts + (1 if attempt.is_correct else 0),
            total_attempts=progress.total_attempts + 1,
            ease_factor=schedule.ease_factor,
            repetitions=schedule.repetitions,
            interval_days=schedule.interval_days,
            lapse_count=schedule.lapse_count,
            streak_count=streak.streak_count,
            last_seen=now,
            next_review=schedule.next_review,
        )

        attempt_record = AttemptRecord(
            learner_id=attempt.learner_id,
            item_id=attempt.item_id,
            session_id=attempt.session_id,
            is_correct=attempt.is_correct,
            response_time_ms=response_time_ms,
            hints_used=hints_used,
            exercise_type=attempt.exercise_type,
            attempted_at=now,
        )
        mistakes = [
            MistakeRecord(
                learner_id=attempt.learner_id,
                item_id=attempt.item_id,
                mistake_type=mistake_type,
                severity=analysis.severities[mistake_type],
                correct_answer=attempt.correct_answer,
                given_answer=attempt.given_answer,
                exercise_type=attempt.exercise_type,
                response_time_ms=response_time_ms,
                hints_used=hints_used,
                language_code=item.language,
                created_at=now,
            )
            for mistake_type in analysis.mistake_types
        ]

        attempt_id, saved = self.db.record_attempt(attempt_record, mistakes, updated)

        xp = calculate_xp(attempt.is_correct, item.difficulty, saved.mastery_level, saved.streak_count)

        logger.info(
            f"Learner {attempt.learner_id} item {attempt.item_id}: quality={quality} "
            f"interval={saved.interval_days}d mastery={saved.mastery_level.name} "
            f"mistakes={len(mistakes)} xp={xp}"
        )

        return AttemptOutcome(
            attempt_id=attempt_id,
            progress=ProgressSnapshot(
                mastery_level=saved.mastery_level,
                next_review=saved.next_review,
                interval_days=saved.interval_days,
                ease_factor=saved.ease_factor,
                repetitions=saved.repetitions,
                streak_updated=streak.extended,
            ),
            mistakes_recorded=len(mistakes),
            xp_earned=xp,
        )

    def get_items_for_review(
        self,
        learner_id: int,
        limit: int = DEFAULT_REVIEW_LIMIT,
        now: datetime | None = None,
    ) -> list[ReviewQueueEntry]:
        """Get the learner's due items, most overdue first."""
        now = now or datetime.now()
        ranked = rank_due_items(self.db.get_all_progress(learner_id), now, limit)

        entries = []
        for progress in ranked:
            item = self.db.get_item(progress.item_id)
            if item is None:
                # Item removed by content management after progress was recorded
                logger.warning(f"Skipping progress {progress.id}: item {progress.item_id} no longer exists")
                continue
            entries.append(ReviewQueueEntry(item=item, progress=progress, lapsed=is_lapsed(progress, now)))
        return entries

    def calculate_optimal_session_size(self, learner_id: int, window: int = SESSION_WINDOW) -> int:
        """Recommend how many items the learner's next session should contain."""
        attempts = self.db.get_recent_attempts(learner_id, limit=window)
        return optimal_session_size(attempts, window)

    def get_weak_areas(self, learner_id: int, limit: int = 50, now: datetime | None = None) -> WeakAreas:
        """Summarize the learner's most common recent mistakes."""
        mistakes = self.db.get_recent_mistakes(learner_id, limit=limit)
        attempts = self.db.get_recent_attempts(learner_id, limit=limit)
        return analyze_weak_areas(learner_id, mistakes, attempts, now)
