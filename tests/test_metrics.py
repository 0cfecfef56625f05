"""Tests for speed and accuracy calculations."""

import pytest

from typing_insights.metrics import (
    calculate_accuracy,
    calculate_wpm,
    compare_word,
    compute_metrics,
    count_chars,
    total_chars_typed,
)


class TestCalculateWPM:
    """Test calculate_wpm function."""

    def test_basic_wpm_calculation(self):
        """100 chars in 30 seconds = 20 words / 0.5 minutes = 40 WPM."""
        assert calculate_wpm(100, 30000) == pytest.approx(40.0)

    def test_zero_elapsed(self):
        assert calculate_wpm(100, 0) == 0.0

    def test_negative_elapsed(self):
        assert calculate_wpm(100, -500) == 0.0


class TestCompareWord:
    """Position-by-position comparison of typed and target words."""

    def test_mismatch_in_finalized_word(self):
        """Target 'cat' typed as 'cap' gives 2 correct out of 3."""
        assert compare_word("cap", "cat") == (2, 3)

    def test_missing_chars_count_as_errors(self):
        assert compare_word("ca", "cat") == (2, 3)

    def test_extra_chars_count_as_errors(self):
        assert compare_word("cats", "cat") == (3, 4)

    def test_in_progress_compares_typed_length_only(self):
        assert compare_word("d", "dog", in_progress=True) == (1, 1)

    def test_in_progress_excess_counts(self):
        assert compare_word("dogs", "dog", in_progress=True) == (3, 4)


class TestComputeMetrics:
    """Whole-session metrics."""

    def test_example_scenario(self):
        """'cat' + separator + 'd' at 6 seconds: 10 raw WPM, 100% accuracy, 10 net WPM."""
        metrics = compute_metrics(["cat"], ["cat", "dog"], "d", 6000)

        assert total_chars_typed(["cat"], "d") == 5
        assert metrics.total_chars_typed == 5
        assert metrics.raw_wpm == pytest.approx(10.0)
        assert (metrics.correct_chars, metrics.total_chars) == (4, 4)
        assert metrics.accuracy == 100.0
        assert metrics.net_wpm == pytest.approx(10.0)

    def test_accuracy_defaults_to_100_when_nothing_typed(self):
        metrics = compute_metrics([], ["cat"], "", 0)
        assert metrics.accuracy == 100.0
        assert metrics.raw_wpm == 0.0
        assert metrics.net_wpm == 0.0

    def test_accuracy_is_pure(self):
        """Same inputs always give the same accuracy."""
        args = (["cap", "dgo"], ["cat", "dog", "bird"], "bi")
        assert count_chars(*args) == count_chars(*args)
        assert compute_metrics(*args, 12000) == compute_metrics(*args, 12000)

    @pytest.mark.parametrize(
        "history,current",
        [
            (["cat"], ""),
            (["cap", "dgo"], "bx"),
            (["xxxxxxxx"], "zzzz"),
            ([], "q"),
        ],
    )
    def test_net_wpm_never_exceeds_raw(self, history, current):
        metrics = compute_metrics(history, ["cat", "dog", "bird"], current, 15000)
        assert metrics.net_wpm <= metrics.raw_wpm
        assert 0.0 <= metrics.accuracy <= 100.0

    def test_history_beyond_targets_counts_as_errors(self):
        assert count_chars(["ab"], [], "") == (0, 2)

    def test_error_count(self):
        metrics = compute_metrics(["cap"], ["cat", "dog"], "x", 1000)
        assert metrics.error_count == 2


class TestCalculateAccuracy:
    def test_clamped(self):
        assert calculate_accuracy(5, 4) == 100.0
        assert calculate_accuracy(0, 4) == 0.0
