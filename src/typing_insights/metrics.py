"""Speed and accuracy calculations for a typing test.

Every function here is pure: the result depends only on the arguments.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

CHARS_PER_WORD = 5.0


@dataclass(frozen=True)
class LiveMetrics:
    """Snapshot of the running metrics of a session."""

    elapsed_ms: int = 0
    total_chars_typed: int = 0
    correct_chars: int = 0
    total_chars: int = 0
    raw_wpm: float = 0.0
    net_wpm: float = 0.0
    accuracy: float = 100.0

    @property
    def error_count(self) -> int:
        return self.total_chars - self.correct_chars


def calculate_wpm(char_count: int, elapsed_ms: float) -> float:
    """Calculate words per minute.

    WPM = (char_count / 5) / (elapsed_ms / 60000)

    Returns:
        WPM, or 0.0 if no time has elapsed
    """
    minutes = elapsed_ms / 60000.0
    if minutes <= 0:
        return 0.0
    return (char_count / CHARS_PER_WORD) / minutes


def total_chars_typed(history: Sequence[str], current_input: str) -> int:
    """Count typed characters, one separator per finalized word included."""
    return sum(len(word) + 1 for word in history) + len(current_input)


def compare_word(typed: str, target: str, in_progress: bool = False) -> Tuple[int, int]:
    """Compare a typed word with its target position by position.

    Finalized words are compared up to ``max(len(typed), len(target))`` so
    missing characters count as errors. The word being typed is compared up to
    its typed length only; excess characters always count as errors.

    Returns:
        (correct_chars, total_chars)
    """
    span = len(typed) if in_progress else max(len(typed), len(target))
    correct = sum(
        1 for i in range(min(len(typed), len(target))) if typed[i] == target[i]
    )
    return correct, span


def count_chars(
    history: Sequence[str], target_words: Sequence[str], current_input: str
) -> Tuple[int, int]:
    """Total (correct_chars, total_chars) over finalized words and the current input."""
    correct = 0
    total = 0
    for index, typed in enumerate(history):
        target = target_words[index] if index < len(target_words) else ""
        c, t = compare_word(typed, target)
        correct += c
        total += t

    current_index = len(history)
    current_target = target_words[current_index] if current_index < len(target_words) else ""
    c, t = compare_word(current_input, current_target, in_progress=True)
    return correct + c, total + t


def calculate_accuracy(correct_chars: int, total_chars: int) -> float:
    """Accuracy percentage; 100.0 when nothing has been typed."""
    if total_chars <= 0:
        return 100.0
    return min(100.0, max(0.0, correct_chars / total_chars * 100.0))


def compute_metrics(
    history: Sequence[str],
    target_words: Sequence[str],
    current_input: str,
    elapsed_ms: float,
) -> LiveMetrics:
    """Compute raw WPM, net WPM and accuracy for the given session state."""
    typed = total_chars_typed(history, current_input)
    correct, total = count_chars(history, target_words, current_input)
    accuracy = calculate_accuracy(correct, total)
    raw_wpm = calculate_wpm(typed, elapsed_ms)
    return LiveMetrics(
        elapsed_ms=int(max(0, elapsed_ms)),
        total_chars_typed=typed,
        correct_chars=correct,
        total_chars=total,
        raw_wpm=raw_wpm,
        net_wpm=raw_wpm * accuracy / 100.0,
        accuracy=accuracy,
    )
