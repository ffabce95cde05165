"""Session planning: which items to review next and how many.

Both operations are pure functions over persisted records; the caller
fetches the data and decides what to do with the result.
"""

import math
from datetime import datetime

from cadence.db.models import AttemptRecord, ProgressRecord
from cadence.scheduling.streak import days_since_expected

DEFAULT_REVIEW_LIMIT = 10

DEFAULT_SESSION_SIZE = 10
MIN_SESSION_SIZE = 5
MAX_SESSION_SIZE = 20
SESSION_WINDOW = 30


def is_due(progress: ProgressRecord, now: datetime) -> bool:
    """An item is due when its review date has passed or it was never scheduled."""
    return progress.next_review is None or progress.next_review <= now


def rank_due_items(
    progress_records: list[ProgressRecord],
    now: datetime | None = None,
    limit: int = DEFAULT_REVIEW_LIMIT,
) -> list[ProgressRecord]:
    """Build a bounded review queue from a learner's progress records.

    Never-scheduled items come first (maximally overdue), then the oldest
    review dates; less-mastered items win ties. The sort is stable, so an
    unchanged progress set always yields the same order.
    """
    now = now or datetime.now()
    due = [progress for progress in progress_records if is_due(progress, now)]
    due.sort(
        key=lambda p: (
            p.next_review is not None,  # False (never scheduled) sorts first
            p.next_review or datetime.min,
            p.mastery_level,
        )
    )
    return due[: max(0, limit)]


def is_lapsed(progress: ProgressRecord, now: datetime | None = None) -> bool:
    """True if the item is overdue by more than twice its interval."""
    if progress.next_review is None:
        return False
    now = now or datetime.now()
    return days_since_expected(progress.next_review, now) > progress.interval_days * 2


def recommend_session_size(average_accuracy: float, average_time_per_item: float) -> int:
    """
    Recommend how many items the next session should contain.

    Args:
        average_accuracy: Recent accuracy as a percentage (0-100).
        average_time_per_item: Mean response time in seconds.

    Returns:
        Session size between MIN_SESSION_SIZE and MAX_SESSION_SIZE.
    """
    session_size = DEFAULT_SESSION_SIZE

    # Adjust based on accuracy
    if average_accuracy > 80:
        session_size = 15  # High accuracy = more items
    elif average_accuracy < 60:
        session_size = 5  # Low accuracy = fewer items

    # Adjust based on speed
    if average_time_per_item > 10:
        session_size = max(MIN_SESSION_SIZE, math.floor(session_size * 0.7))  # Slow = fewer items
    elif average_time_per_item < 5:
        session_size = min(MAX_SESSION_SIZE, math.floor(session_size * 1.3))  # Fast = more items

    return max(MIN_SESSION_SIZE, min(MAX_SESSION_SIZE, session_size))


def optimal_session_size(attempts: list[AttemptRecord], window: int = SESSION_WINDOW) -> int:
    """Recommend a session size from the most recent attempts.

    attempts is expected newest first (as returned by the database); only
    the first `window` entries are used. Returns DEFAULT_SESSION_SIZE when
    there is no history.
    """
    recent = attempts[: max(0, window)]
    if not recent:
        return DEFAULT_SESSION_SIZE

    correct_count = sum(1 for attempt in recent if attempt.is_correct)
    average_accuracy = correct_count / len(recent) * 100

    total_time_ms = sum(max(0, attempt.response_time_ms) for attempt in recent)
    average_time_per_item = total_time_ms / len(recent) / 1000

    return recommend_session_size(average_accuracy, average_time_per_item)
