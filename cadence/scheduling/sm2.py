"""SM-2 Spaced Repetition Algorithm with language-aware adjustments.

Based on the SuperMemo SM-2 algorithm by Piotr Wozniak.
https://www.supermemo.com/en/blog/application-of-a-computer-to-improve-the-results-obtained-in-working-with-the-supermemo-method

On top of the classic algorithm this module tracks a coarse mastery tier.
Mistake weights (complexity of the mistakes made, mistake-type penalty) lower
the ease factor, so items answered with severe mistakes grow their intervals
more slowly from then on. Answer speed scales the interval of a pass directly.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from cadence.db.models import MasteryLevel, ProgressRecord
from cadence.errors import InvalidConfigurationError
from cadence.scheduling.quality import is_pass

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5


def _check_interval_bounds(minimum_interval: int, maximum_interval: int) -> None:
    if minimum_interval < 1:
        raise InvalidConfigurationError(f"minimum_interval must be at least 1 day, got {minimum_interval}")
    if maximum_interval < minimum_interval:
        raise InvalidConfigurationError(
            f"maximum_interval ({maximum_interval}) is below minimum_interval ({minimum_interval})"
        )


@dataclass(frozen=True)
class SchedulerSettings:
    """Thresholds for the interval scheduler. All values are explicit; nothing is read from globals."""

    minimum_interval: int = 1
    maximum_interval: int = 365
    lapse_ease_penalty: float = 0.2
    mistake_ease_penalty: float = 0.2  # Extra ease lost per unit of mistake weight above 1.0
    max_adjustment: float = 3.0  # Upper bound on the mistake weight and on the speed multiplier

    # LEARNING -> FAMILIAR
    familiar_min_repetitions: int = 2
    familiar_min_accuracy: float = 0.7

    # FAMILIAR -> MASTERED
    mastered_min_repetitions: int = 5
    mastered_min_interval: int = 21
    mastered_min_accuracy: float = 0.85

    def __post_init__(self) -> None:
        _check_interval_bounds(self.minimum_interval, self.maximum_interval)
        if self.max_adjustment <= 0:
            raise InvalidConfigurationError(f"max_adjustment must be positive, got {self.max_adjustment}")
        if self.lapse_ease_penalty < 0:
            raise InvalidConfigurationError(
                f"lapse_ease_penalty must not be negative, got {self.lapse_ease_penalty}"
            )
        if self.mistake_ease_penalty < 0:
            raise InvalidConfigurationError(
                f"mistake_ease_penalty must not be negative, got {self.mistake_ease_penalty}"
            )


@dataclass(frozen=True)
class ScheduleAdjustments:
    """Weights and interval bounds for a single scheduling decision."""

    complexity_weight: float = 1.0
    mistake_type_weight: float = 1.0
    time_spent_multiplier: float = 1.0
    minimum_interval: int = 1
    maximum_interval: int = 365

    def __post_init__(self) -> None:
        _check_interval_bounds(self.minimum_interval, self.maximum_interval)

    @property
    def mistake_weight(self) -> float:
        """Combined weight of the mistakes behind this attempt; 1.0 when there were none."""
        return max(1.0, self.complexity_weight * self.mistake_type_weight)


@dataclass
class ScheduleResult:
    """Result of a scheduling calculation."""

    ease_factor: float
    repetitions: int
    interval_days: int
    mastery_level: MasteryLevel
    next_review: datetime
    lapse_count: int


def calculate_schedule(
    progress: ProgressRecord,
    quality: int,
    adjustments: ScheduleAdjustments | None = None,
    now: datetime | None = None,
    settings: SchedulerSettings | None = None,
) -> ScheduleResult:
    """
    Calculate the next review for an item using SM-2.

    Args:
        progress: Current scheduling state. Not modified.
        quality: Response quality (0-5); values outside the range are clamped.
            Quality >= 3 is a pass, anything lower a lapse.
        adjustments: Mistake weights, speed multiplier and interval bounds for
            this attempt. Mistake weights above 1.0 reduce the ease factor.
        now: Reference time for next_review (defaults to datetime.now()).
        settings: Ease penalties, multiplier cap and mastery thresholds.

    Returns:
        ScheduleResult with the new ease factor, repetitions, interval,
        mastery tier, next review date and lapse count.

    Raises:
        InvalidConfigurationError: If the interval bounds are inconsistent.
    """
    adjustments = adjustments or ScheduleAdjustments()
    settings = settings or SchedulerSettings()
    _check_interval_bounds(adjustments.minimum_interval, adjustments.maximum_interval)
    now = now or datetime.now()

    quality = max(0, min(5, quality))

    # Tolerate records created with missing or out-of-domain values
    ease_factor = max(MIN_EASE_FACTOR, progress.ease_factor or DEFAULT_EASE_FACTOR)
    repetitions = max(0, progress.repetitions or 0)
    interval_days = max(1, progress.interval_days or 1)
    lapse_count = progress.lapse_count or 0

    # Severe mistakes cost ease on top of the SM-2 update
    mistake_weight = min(settings.max_adjustment, adjustments.mistake_weight)
    mistake_penalty = settings.mistake_ease_penalty * (mistake_weight - 1.0)

    if is_pass(quality):
        new_ef = ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)) - mistake_penalty
        new_ef = max(MIN_EASE_FACTOR, new_ef)
        new_repetitions = repetitions + 1

        if new_repetitions == 1:
            base_interval = 1.0
        elif new_repetitions == 2:
            base_interval = 6.0
        else:
            base_interval = interval_days * new_ef

        multiplier = min(settings.max_adjustment, adjustments.time_spent_multiplier)
        new_interval = round(base_interval * multiplier)
        new_interval = max(adjustments.minimum_interval, min(adjustments.maximum_interval, new_interval))
    else:
        # Lapse - restart the item at the shortest allowed interval
        new_ef = max(MIN_EASE_FACTOR, ease_factor - settings.lapse_ease_penalty - mistake_penalty)
        new_repetitions = 0
        new_interval = adjustments.minimum_interval
        lapse_count += 1

    mastery_level = next_mastery_level(
        progress,
        passed=is_pass(quality),
        repetitions=new_repetitions,
        interval_days=new_interval,
        settings=settings,
    )

    return ScheduleResult(
        ease_factor=new_ef,
        repetitions=new_repetitions,
        interval_days=new_interval,
        mastery_level=mastery_level,
        next_review=now + timedelta(days=new_interval),
        lapse_count=lapse_count,
    )


def next_mastery_level(
    progress: ProgressRecord,
    passed: bool,
    repetitions: int,
    interval_days: int,
    settings: SchedulerSettings | None = None,
) -> MasteryLevel:
    """Advance the mastery tier state machine by one attempt.

    Accuracy includes the attempt being scored (a pass counts as correct).
    A lapse always lands on LEARNING: it is the first-attempt tier for new
    items and the demotion target for everything else.
    """
    settings = settings or SchedulerSettings()

    if not passed:
        return MasteryLevel.LEARNING

    correct = progress.correct_attempts + 1
    total = max(progress.total_attempts + 1, correct)
    accuracy = correct / total

    level = progress.mastery_level
    if level == MasteryLevel.NOT_LEARNED:
        level = MasteryLevel.LEARNING

    if (
        level == MasteryLevel.LEARNING
        and repetitions >= settings.familiar_min_repetitions
        and accuracy >= settings.familiar_min_accuracy
    ):
        level = MasteryLevel.FAMILIAR

    if (
        level == MasteryLevel.FAMILIAR
        and repetitions >= settings.mastered_min_repetitions
        and interval_days >= settings.mastered_min_interval
        and accuracy >= settings.mastered_min_accuracy
    ):
        level = MasteryLevel.MASTERED

    return level
