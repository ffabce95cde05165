"""Tests for streak tracking and the streak bonus."""

from datetime import timedelta

import pytest

from cadence.scheduling.streak import days_since_expected, streak_bonus, update_streak


class TestUpdateStreak:
    """Tests for streak continuity."""

    def test_incorrect_resets(self, now):
        update = update_streak(7, is_correct=False, next_review=now, now=now)
        assert update.streak_count == 0
        assert not update.extended

    def test_first_review(self, now):
        update = update_streak(0, is_correct=True, next_review=None, now=now)
        assert update.streak_count == 1
        assert update.extended

    def test_on_schedule(self, now):
        update = update_streak(4, True, next_review=now - timedelta(hours=3), now=now)
        assert update.streak_count == 5
        assert update.extended

    def test_one_day_early(self, now):
        update = update_streak(4, True, next_review=now + timedelta(hours=20), now=now)
        assert update.streak_count == 5

    def test_far_too_early_restarts(self, now):
        update = update_streak(4, True, next_review=now + timedelta(days=3), now=now)
        assert update.streak_count == 1
        assert not update.extended

    def test_far_too_late_restarts(self, now):
        update = update_streak(4, True, next_review=now - timedelta(days=5), now=now)
        assert update.streak_count == 1
        assert not update.extended

    def test_exactly_one_day_late(self, now):
        update = update_streak(4, True, next_review=now - timedelta(days=1), now=now)
        assert update.streak_count == 5

    def test_just_over_one_day_late_still_counts(self, now):
        """Whole days are floored, so 1.01 days late is still one day late."""
        update = update_streak(4, True, next_review=now - timedelta(days=1.01), now=now)
        assert update.streak_count == 5

    def test_two_days_late_restarts(self, now):
        update = update_streak(4, True, next_review=now - timedelta(days=2), now=now)
        assert update.streak_count == 1


class TestDaysSinceExpected:
    """Tests for whole-day truncation."""

    @pytest.mark.parametrize(
        "offset,expected",
        [
            (timedelta(0), 0),
            (timedelta(hours=23, minutes=59), 0),
            (timedelta(days=1), 1),
            (timedelta(days=1.01), 1),
            (timedelta(days=1.99), 1),
            (timedelta(hours=-1), -1),
            (timedelta(days=-1), -1),
            (timedelta(days=-1, seconds=-1), -2),
        ],
    )
    def test_floor(self, now, offset, expected):
        assert days_since_expected(now - offset, now) == expected


class TestStreakBonus:
    """Tests for the XP streak multiplier."""

    @pytest.mark.parametrize("streak", [0, 1, 2])
    def test_no_bonus_below_three(self, streak):
        assert streak_bonus(streak) == 1.0

    def test_bonus_grows(self):
        assert streak_bonus(3) == pytest.approx(1.15)
        assert streak_bonus(10) == pytest.approx(1.5)

    def test_bonus_capped(self):
        assert streak_bonus(20) == pytest.approx(2.0)
        assert streak_bonus(500) == 2.0

    def test_monotone(self):
        bonuses = [streak_bonus(streak) for streak in range(40)]
        assert bonuses == sorted(bonuses)
