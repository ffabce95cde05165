"""Convert raw attempt outcomes into SM-2 quality scores."""

# Quality scale (SM-2):
#   5 - Perfect response, fast, no hints
#   4 - Correct after hesitation or a hint
#   3 - Correct with serious difficulty
#   2 - Incorrect, no hints taken
#   1 - Incorrect even with a hint
#   0 - Incorrect with many hints (blackout)

PASS_THRESHOLD = 3
SLOW_RATIO = 1.5  # response_time / expected_time above this counts as slow
FAST_RATIO = 0.5
MANY_HINTS = 3

# Expected time to answer a single item
DEFAULT_EXPECTED_TIME_MS = 5000


def rate_quality(
    is_correct: bool,
    hints_used: int = 0,
    response_time_ms: int = 0,
    expected_time_ms: int = DEFAULT_EXPECTED_TIME_MS,
    slow_ratio: float = SLOW_RATIO,
) -> int:
    """
    Rate an attempt on the 0-5 SM-2 quality scale.

    Negative hint counts and response times are treated as zero. A
    non-positive expected time disables the slowness deduction.

    Returns:
        Quality score 0-5. Correct answers never score below 3 and
        incorrect answers never score above 2.
    """
    hints_used = max(0, hints_used or 0)
    response_time_ms = max(0, response_time_ms or 0)

    if not is_correct:
        if hints_used == 0:
            return 2  # Incorrect, but no help taken
        if hints_used < MANY_HINTS:
            return 1  # Incorrect even with a hint
        return 0  # Blackout

    quality = 5
    if hints_used >= MANY_HINTS:
        quality -= 2
    elif hints_used > 0:
        quality -= 1

    if expected_time_ms and expected_time_ms > 0 and response_time_ms > expected_time_ms * slow_ratio:
        quality -= 1

    return max(PASS_THRESHOLD, quality)


def is_pass(quality: int) -> bool:
    """True if the quality counts as a successful repetition."""
    return quality >= PASS_THRESHOLD


def time_spent_multiplier(response_time_ms: int, expected_time_ms: int) -> float:
    """Interval multiplier from answer speed: slow answers stretch, fast ones shorten."""
    if not expected_time_ms or expected_time_ms <= 0:
        return 1.0
    speed_ratio = max(0, response_time_ms or 0) / expected_time_ms
    if speed_ratio > SLOW_RATIO:
        return 1.1
    if speed_ratio < FAST_RATIO:
        return 0.9
    return 1.0
