"""Tests for converting attempt outcomes to quality scores."""

import pytest

from cadence.scheduling.quality import is_pass, rate_quality, time_spent_multiplier


class TestRateQuality:
    """Tests for the quality rater."""

    def test_perfect_response(self):
        """Fast, correct, no hints = 5."""
        assert rate_quality(is_correct=True, hints_used=0, response_time_ms=2000, expected_time_ms=5000) == 5

    def test_correct_with_hint(self):
        assert rate_quality(True, hints_used=1, response_time_ms=2000) == 4

    def test_correct_with_many_hints(self):
        assert rate_quality(True, hints_used=3, response_time_ms=2000) == 3

    def test_correct_but_slow(self):
        """Slower than 1.5x expected costs one point."""
        assert rate_quality(True, response_time_ms=8000, expected_time_ms=5000) == 4
        assert rate_quality(True, response_time_ms=7500, expected_time_ms=5000) == 5

    def test_correct_never_below_pass(self):
        assert rate_quality(True, hints_used=10, response_time_ms=60000) == 3

    @pytest.mark.parametrize("hints,expected", [(0, 2), (1, 1), (2, 1), (3, 0), (7, 0)])
    def test_incorrect(self, hints, expected):
        assert rate_quality(False, hints_used=hints, response_time_ms=2000) == expected

    def test_negative_inputs_clamped(self):
        """Negative hints and times are treated as zero, never raise."""
        assert rate_quality(True, hints_used=-2, response_time_ms=-100) == 5
        assert rate_quality(False, hints_used=-1) == 2

    def test_non_positive_expected_time_disables_speed(self):
        assert rate_quality(True, response_time_ms=90000, expected_time_ms=0) == 5
        assert rate_quality(True, response_time_ms=90000, expected_time_ms=-5) == 5

    @pytest.mark.parametrize("is_correct", [True, False])
    @pytest.mark.parametrize("hints", [0, 1, 2, 3, 5])
    @pytest.mark.parametrize("time_ms", [0, 2000, 9000, 100000])
    def test_correctness_decides_pass(self, is_correct, hints, time_ms):
        quality = rate_quality(is_correct, hints, time_ms)
        assert 0 <= quality <= 5
        assert is_pass(quality) == is_correct


class TestTimeSpentMultiplier:
    """Tests for the answer-speed interval multiplier."""

    def test_slow_answer(self):
        assert time_spent_multiplier(8000, 5000) == 1.1

    def test_fast_answer(self):
        assert time_spent_multiplier(2000, 5000) == 0.9

    def test_normal_answer(self):
        assert time_spent_multiplier(5000, 5000) == 1.0
        assert time_spent_multiplier(2500, 5000) == 1.0

    def test_no_expected_time(self):
        assert time_spent_multiplier(8000, 0) == 1.0
