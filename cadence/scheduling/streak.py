"""Streak continuity tracking and streak-based reward bonus."""

import math
from dataclasses import dataclass
from datetime import datetime

SECONDS_PER_DAY = 60 * 60 * 24

# Reviews within this many whole days of the scheduled date keep the streak alive
STREAK_TOLERANCE_DAYS = 1

STREAK_BONUS_MIN_STREAK = 3
STREAK_BONUS_PER_REVIEW = 0.05
STREAK_BONUS_CAP = 2.0


@dataclass
class StreakUpdate:
    """New streak count and whether the previous streak was continued."""

    streak_count: int
    extended: bool


def days_since_expected(next_review: datetime, now: datetime) -> int:
    """Whole days between the scheduled review and now, floored.

    Negative when reviewing early. Truncation means anything from exactly
    1.0 up to (but excluding) 2.0 days late counts as one day late.
    """
    return math.floor((now - next_review).total_seconds() / SECONDS_PER_DAY)


def update_streak(
    current_streak: int,
    is_correct: bool,
    next_review: datetime | None,
    now: datetime | None = None,
) -> StreakUpdate:
    """
    Compute the streak after an attempt.

    - Incorrect: streak resets to 0.
    - Correct, never scheduled before: first review, streak 1.
    - Correct, reviewed within a day of the scheduled date: streak + 1.
    - Correct otherwise: the streak restarts at 1.
    """
    if not is_correct:
        return StreakUpdate(streak_count=0, extended=False)

    if next_review is None:
        return StreakUpdate(streak_count=1, extended=True)

    now = now or datetime.now()
    days = days_since_expected(next_review, now)
    if -STREAK_TOLERANCE_DAYS <= days <= STREAK_TOLERANCE_DAYS:
        return StreakUpdate(streak_count=max(0, current_streak) + 1, extended=True)

    return StreakUpdate(streak_count=1, extended=False)


def streak_bonus(streak_count: int) -> float:
    """XP multiplier for a streak: none below 3, then +5% per review, capped at 2.0x."""
    if streak_count < STREAK_BONUS_MIN_STREAK:
        return 1.0
    return min(STREAK_BONUS_CAP, 1.0 + streak_count * STREAK_BONUS_PER_REVIEW)
