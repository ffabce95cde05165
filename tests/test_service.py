"""Tests for attempt processing and review planning."""

from dataclasses import replace
from datetime import timedelta
from unittest.mock import patch

import pytest

from cadence.db.models import DifficultyLevel, MasteryLevel, MistakeType, ProgressRecord
from cadence.errors import ConflictError, NotFoundError
from cadence.review.service import AttemptInput, ReviewService, calculate_xp
from cadence.scheduling.sm2 import SchedulerSettings


@pytest.fixture
def service(memory_db):
    return ReviewService(memory_db)


@pytest.fixture
def item_id(memory_db, sample_item):
    return memory_db.add_item(sample_item)


def make_input(item_id, is_correct=True, given="die Katze", **overrides):
    values = dict(
        learner_id=1,
        item_id=item_id,
        session_id="session-1",
        is_correct=is_correct,
        correct_answer="die Katze",
        given_answer=given,
        response_time_ms=3000,
    )
    values.update(overrides)
    return AttemptInput(**values)


class TestProcessAttempt:
    """Tests for the per-attempt pipeline."""

    def test_missing_item_writes_nothing(self, service, memory_db, now):
        with pytest.raises(NotFoundError) as exc_info:
            service.process_attempt(make_input(999), now=now)

        assert exc_info.value.identifier == 999
        assert memory_db.get_recent_attempts(1) == []
        assert memory_db.get_progress(1, 999) is None

    def test_first_correct_attempt(self, service, memory_db, item_id, now):
        """Fresh item answered fast and correctly: one day, LEARNING."""
        outcome = service.process_attempt(make_input(item_id, response_time_ms=2000), now=now)

        assert outcome.progress.repetitions == 1
        assert outcome.progress.interval_days == 1
        assert outcome.progress.mastery_level == MasteryLevel.LEARNING
        assert outcome.progress.next_review == now + timedelta(days=1)
        assert outcome.progress.streak_updated
        assert outcome.mistakes_recorded == 0
        assert outcome.xp_earned == 10

        progress = memory_db.get_progress(1, item_id)
        assert progress.correct_attempts == 1
        assert progress.total_attempts == 1
        assert progress.streak_count == 1
        assert progress.last_seen == now
        assert progress.version == 1

    def test_incorrect_attempt_records_mistakes(self, service, memory_db, item_id, now):
        outcome = service.process_attempt(
            make_input(item_id, is_correct=False, given="Der Katze", correct_answer="Die Katze"), now=now
        )

        assert outcome.xp_earned == 0
        assert outcome.mistakes_recorded == 2
        assert outcome.progress.repetitions == 0
        assert outcome.progress.interval_days == 1
        assert not outcome.progress.streak_updated

        mistakes = memory_db.get_mistakes_for_attempt(outcome.attempt_id)
        assert {m.mistake_type for m in mistakes} == {MistakeType.ARTICLE_ERROR, MistakeType.CASE_ERROR}
        assert all(m.language_code == "de" for m in mistakes)
        assert all(m.given_answer == "Der Katze" for m in mistakes)

        progress = memory_db.get_progress(1, item_id)
        assert progress.lapse_count == 1
        # Article + case mistakes cost ease on top of the lapse penalty
        assert progress.ease_factor == pytest.approx(2.3 - 0.2 * ((1 + 0.35 * (0.72 + 0.6)) * 1.2 - 1))
        assert progress.streak_count == 0

    def test_negative_inputs_clamped(self, service, memory_db, item_id, now):
        service.process_attempt(make_input(item_id, response_time_ms=-50, hints_used=-3), now=now)
        attempt = memory_db.get_recent_attempts(1)[0]
        assert attempt.response_time_ms == 0
        assert attempt.hints_used == 0

    def test_review_on_schedule_extends_streak(self, service, memory_db, item_id, now):
        first = service.process_attempt(make_input(item_id), now=now)
        later = first.progress.next_review + timedelta(hours=2)
        second = service.process_attempt(make_input(item_id), now=later)

        assert second.progress.streak_updated
        assert second.progress.repetitions == 2
        assert second.progress.interval_days == 6
        assert memory_db.get_progress(1, item_id).streak_count == 2

    def test_late_review_restarts_streak(self, service, memory_db, item_id, now):
        first = service.process_attempt(make_input(item_id), now=now)
        later = first.progress.next_review + timedelta(days=4)
        second = service.process_attempt(make_input(item_id), now=later)

        assert not second.progress.streak_updated
        assert memory_db.get_progress(1, item_id).streak_count == 1

    def test_slow_answer_lengthens_interval(self, service, item_id, now):
        service.process_attempt(make_input(item_id), now=now)
        outcome = service.process_attempt(
            make_input(item_id, response_time_ms=9000), now=now + timedelta(days=1)
        )
        # Second pass is 6 days, x1.1 for the slow answer
        assert outcome.progress.interval_days == round(6 * 1.1)

    def test_respects_interval_settings(self, memory_db, item_id, now):
        service = ReviewService(memory_db, SchedulerSettings(minimum_interval=2, maximum_interval=4))
        outcome = service.process_attempt(make_input(item_id), now=now)
        assert outcome.progress.interval_days == 2

        outcome = service.process_attempt(make_input(item_id), now=now + timedelta(days=2))
        assert outcome.progress.interval_days == 4

    def test_severe_mistakes_slow_later_growth(self, service, memory_db, item_id, now):
        """An article/case miss costs more ease than an unrecognisable answer."""

        def run(learner_id, wrong_answer):
            when = now
            for _ in range(4):
                outcome = service.process_attempt(make_input(item_id, learner_id=learner_id), now=when)
                when = outcome.progress.next_review
            service.process_attempt(
                make_input(item_id, learner_id=learner_id, is_correct=False, given=wrong_answer), now=when
            )
            ease_after_miss = memory_db.get_progress(learner_id, item_id).ease_factor
            for _ in range(3):
                when += timedelta(days=1)
                outcome = service.process_attempt(make_input(item_id, learner_id=learner_id), now=when)
                when = outcome.progress.next_review
            return ease_after_miss, outcome.progress.interval_days

        severe_ease, severe_interval = run(1, "der Katze")
        mild_ease, mild_interval = run(2, "xyzzy")

        assert severe_ease < mild_ease
        assert severe_interval < mild_interval

    def test_configured_expected_time(self, memory_db, item_id, now):
        """A 3s answer is slow when only 1s is expected."""
        service = ReviewService(memory_db, expected_time_ms=1000)
        service.process_attempt(make_input(item_id), now=now)
        outcome = service.process_attempt(make_input(item_id), now=now + timedelta(days=1))

        # Quality 4 leaves ease at 2.5; 6 days x1.1 for the slow answer
        assert outcome.progress.interval_days == 7
        assert outcome.progress.ease_factor == pytest.approx(2.5)

    def test_attempt_expected_time_overrides_service(self, memory_db, item_id, now):
        service = ReviewService(memory_db, expected_time_ms=1000)
        outcome = service.process_attempt(make_input(item_id, expected_time_ms=5000), now=now)
        assert outcome.progress.ease_factor == pytest.approx(2.6)

    def test_conflict_writes_nothing(self, service, memory_db, item_id, now):
        """A concurrent update between read and write surfaces as ConflictError."""
        service.process_attempt(make_input(item_id), now=now)
        stale = memory_db.get_progress(1, item_id)
        memory_db.save_progress(replace(stale, streak_count=9))

        with patch.object(memory_db, "get_progress", return_value=stale):
            with pytest.raises(ConflictError):
                service.process_attempt(make_input(item_id), now=now + timedelta(days=1))

        assert len(memory_db.get_recent_attempts(1)) == 1
        assert memory_db.get_progress(1, item_id).streak_count == 9


class TestCalculateXP:
    """Tests for reward calculation."""

    def test_incorrect_earns_nothing(self):
        assert calculate_xp(False, DifficultyLevel.ADVANCED, MasteryLevel.MASTERED, 20) == 0

    def test_base(self):
        assert calculate_xp(True, DifficultyLevel.BEGINNER, MasteryLevel.LEARNING, 1) == 10

    def test_difficulty_and_mastery(self):
        assert calculate_xp(True, DifficultyLevel.INTERMEDIATE, MasteryLevel.FAMILIAR, 0) == 18
        assert calculate_xp(True, DifficultyLevel.ADVANCED, MasteryLevel.MASTERED, 0) == 30

    def test_streak_bonus(self):
        assert calculate_xp(True, DifficultyLevel.BEGINNER, MasteryLevel.LEARNING, 10) == 15
        assert calculate_xp(True, DifficultyLevel.ADVANCED, MasteryLevel.MASTERED, 40) == 60


class TestReviewPlanning:
    """Tests for review queue, session size and weak areas."""

    def test_items_for_review(self, memory_db, sample_item, sample_english_item, now):
        service = ReviewService(memory_db)
        first = memory_db.add_item(sample_item)
        second = memory_db.add_item(sample_english_item)
        memory_db.save_progress(ProgressRecord(learner_id=1, item_id=first, next_review=now - timedelta(days=1)))
        memory_db.save_progress(ProgressRecord(learner_id=1, item_id=second, next_review=None))

        queue = service.get_items_for_review(1, now=now)

        assert [entry.item.id for entry in queue] == [second, first]
        assert queue[1].item.word == "die Katze"
        assert not queue[1].lapsed

    def test_lapsed_flag(self, memory_db, item_id, now):
        service = ReviewService(memory_db)
        memory_db.save_progress(
            ProgressRecord(learner_id=1, item_id=item_id, interval_days=2, next_review=now - timedelta(days=10))
        )
        assert service.get_items_for_review(1, now=now)[0].lapsed

    def test_missing_item_skipped(self, memory_db, item_id, now):
        service = ReviewService(memory_db)
        memory_db.save_progress(ProgressRecord(learner_id=1, item_id=item_id, next_review=now))
        memory_db.save_progress(ProgressRecord(learner_id=1, item_id=404, next_review=None))

        queue = service.get_items_for_review(1, now=now)
        assert [entry.item.id for entry in queue] == [item_id]

    def test_nothing_due(self, service, item_id, now):
        service.process_attempt(make_input(item_id), now=now)
        assert service.get_items_for_review(1, now=now) == []

    def test_session_size_default(self, service):
        assert service.calculate_optimal_session_size(1) == 10

    def test_session_size_from_history(self, service, item_id, now):
        for i in range(10):
            service.process_attempt(make_input(item_id, response_time_ms=1500), now=now + timedelta(days=i))
        assert service.calculate_optimal_session_size(1) == 19

    def test_weak_areas(self, service, item_id, now):
        service.process_attempt(make_input(item_id, is_correct=False, given="der Katze"), now=now)
        service.process_attempt(make_input(item_id, is_correct=False, given="das Katze"), now=now)
        service.process_attempt(make_input(item_id), now=now)

        weak = service.get_weak_areas(1, now=now)

        assert weak.top_mistakes[0].mistake_type == MistakeType.ARTICLE_ERROR
        assert weak.top_mistakes[0].frequency == 2
        assert weak.top_mistakes[0].affected_items == [item_id]
        assert weak.overall_accuracy == pytest.approx(100 / 3)
