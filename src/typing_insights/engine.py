"""Single-session typing test state machine.

The engine is cooperative: every state change happens inside a call to
:meth:`TestEngine.handle_key`, :meth:`TestEngine.tick`,
:meth:`TestEngine.complete` or :meth:`TestEngine.restart` on the caller's
thread. Word refills and telemetry delivery run on a background executor and
never touch session state directly.
"""

from __future__ import annotations

import logging
import random
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple
from uuid import uuid4

from .config import Settings
from .metrics import LiveMetrics, compute_metrics
from .schemas import KeystrokeEvent
from .telemetry import BatchSender, KeystrokeBuffer
from .words import DEFAULT_DIFFICULTY, LocalWordSupply, WordSupply, fallback_words, is_valid_word_list

logger = logging.getLogger(__name__)

SEPARATOR = " "
BACKSPACE = "Backspace"
INITIAL_TIME_MODE_WORDS = 50


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"


class TestMode(str, Enum):
    __test__ = False

    TIME = "time"
    WORDS = "words"


@dataclass(frozen=True)
class MetricsSample:
    """One point of the per-tick time series used for post-session charts."""

    elapsed_seconds: float
    raw_wpm: float
    net_wpm: float
    error_count: int
    error_marker: bool = False


@dataclass
class TestSession:
    """State of one typing test. Invariant: ``current_word_index == len(history)``."""

    __test__ = False

    session_id: str
    words: List[str]
    mode: TestMode
    target: int
    current_word_index: int = 0
    current_input: str = ""
    history: List[str] = field(default_factory=list)
    start_time_ms: Optional[int] = None
    end_time_ms: Optional[int] = None
    metrics: LiveMetrics = field(default_factory=LiveMetrics)
    samples: List[MetricsSample] = field(default_factory=list)
    idle_ms: int = 0

    @property
    def current_word(self) -> str:
        if self.current_word_index < len(self.words):
            return self.words[self.current_word_index]
        return ""


class IdleDetector:
    """Flags inactivity after ``threshold_ms`` without input or pointer activity."""

    def __init__(self, threshold_ms: int = 5000):
        self.threshold_ms = threshold_ms
        self.last_activity_ms: Optional[int] = None
        self.is_idle = False
        self.total_idle_ms = 0

    def activity(self, now_ms: int) -> None:
        if self.is_idle and self.last_activity_ms is not None:
            self.total_idle_ms += max(0, now_ms - self.last_activity_ms)
            self.is_idle = False
        self.last_activity_ms = now_ms

    def check(self, now_ms: int) -> bool:
        if (
            not self.is_idle
            and self.last_activity_ms is not None
            and now_ms - self.last_activity_ms >= self.threshold_ms
        ):
            self.is_idle = True
        return self.is_idle

    def pending_idle_ms(self, now_ms: int) -> int:
        """Idle time accumulated so far, including an ongoing idle stretch."""
        if self.is_idle and self.last_activity_ms is not None:
            return self.total_idle_ms + max(0, now_ms - self.last_activity_ms)
        return self.total_idle_ms


def _epoch_ms() -> int:
    return int(time.time() * 1000)


# PUBLIC_INTERFACE
class TestEngine:
    """Runs typing tests and computes live metrics from keystrokes.

    Args:
        word_supply: Collaborator providing test words; defaults to the local pools.
        mode: Time-boxed (``target`` seconds) or word-count-boxed (``target`` words).
        target: Seconds or words, depending on ``mode``.
        difficulty: Difficulty passed to the word supply.
        settings: Thresholds for refills, idle detection and telemetry flushing.
        sender: Optional telemetry sender; when None no events are buffered.
        user_id: Optional identity attached to telemetry batches.
        clock: Millisecond clock, injectable for tests.
        executor: Executor for refills and telemetry delivery.
    """

    __test__ = False

    def __init__(
        self,
        word_supply: Optional[WordSupply] = None,
        mode: TestMode = TestMode.TIME,
        target: int = 30,
        difficulty: str = DEFAULT_DIFFICULTY,
        settings: Optional[Settings] = None,
        sender: Optional[BatchSender] = None,
        user_id: Optional[str] = None,
        clock: Optional[Callable[[], int]] = None,
        executor: Optional[Executor] = None,
        rng: Optional[random.Random] = None,
    ):
        if target <= 0:
            raise ValueError("target must be positive")
        self.word_supply = word_supply or LocalWordSupply(rng=rng)
        self.mode = TestMode(mode)
        self.target = target
        self.difficulty = difficulty
        self.settings = settings or Settings()
        self.sender = sender
        self.user_id = user_id
        self._clock = clock or _epoch_ms
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="test-engine"
        )
        self._owns_executor = executor is None
        self._rng = rng or random.Random()

        self.state = SessionState.IDLE
        self.session: TestSession
        self.telemetry: Optional[KeystrokeBuffer] = None
        self.idle = IdleDetector(self.settings.idle_threshold_ms)
        self._last_key_ms: Optional[int] = None
        self._refill: Optional[Tuple[str, Future]] = None
        self._new_session()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def _new_session(self) -> None:
        count = self.target if self.mode is TestMode.WORDS else INITIAL_TIME_MODE_WORDS
        session_id = str(uuid4())
        self.session = TestSession(
            session_id=session_id,
            words=self._fetch_words(count),
            mode=self.mode,
            target=self.target,
        )
        self.state = SessionState.IDLE
        self.idle = IdleDetector(self.settings.idle_threshold_ms)
        self._last_key_ms = None
        self._refill = None
        if self.sender is not None:
            self.telemetry = KeystrokeBuffer(
                session_id,
                self.sender,
                user_id=self.user_id,
                max_events=self.settings.flush_max_events,
                flush_interval_ms=self.settings.flush_interval_ms,
                executor=self._executor,
            )
        logger.debug("New %s session %s (%s words)", self.mode.value, session_id, count)

    # PUBLIC_INTERFACE
    def restart(self) -> TestSession:
        """Discard the current session (flushing pending telemetry) and start over in Idle."""
        if self.telemetry is not None:
            self.telemetry.flush(self._clock())
        self._new_session()
        return self.session

    # PUBLIC_INTERFACE
    def complete(self) -> LiveMetrics:
        """Force completion of an active session."""
        if self.state is SessionState.ACTIVE:
            self._complete(self._clock())
        return self.session.metrics

    def _complete(self, now_ms: int) -> None:
        session = self.session
        end_ms = now_ms
        if self.mode is TestMode.TIME and session.start_time_ms is not None:
            end_ms = min(now_ms, session.start_time_ms + self._time_limit_ms)
        session.end_time_ms = end_ms
        session.idle_ms = self.idle.pending_idle_ms(end_ms)
        self.state = SessionState.COMPLETED
        self._refill = None
        self._recompute(end_ms)
        if self.telemetry is not None:
            self.telemetry.flush(now_ms)
        logger.info(
            "Session %s completed: %.1f raw wpm, %.1f net wpm, %.1f%% accuracy",
            session.session_id, session.metrics.raw_wpm, session.metrics.net_wpm,
            session.metrics.accuracy,
        )

    @property
    def _time_limit_ms(self) -> int:
        return self.target * 1000

    def _time_limit_reached(self, now_ms: int) -> bool:
        start = self.session.start_time_ms
        return (
            self.mode is TestMode.TIME
            and start is not None
            and now_ms - start >= self._time_limit_ms
        )

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    # PUBLIC_INTERFACE
    def handle_key(self, key: str) -> LiveMetrics:
        """Process one keystroke and return the recomputed metrics.

        ``key`` is a single character, the separator (space), ``"Backspace"``,
        or another named key, which is only recorded as telemetry.
        """
        now = self._clock()
        self._merge_refill()
        session = self.session

        if self.state is SessionState.COMPLETED:
            return session.metrics
        if self._time_limit_reached(now):
            self._complete(now)
            return session.metrics

        self.idle.activity(now)

        if key == BACKSPACE:
            if self.state is SessionState.IDLE:
                return session.metrics
            self._emit(key, None, None, now)
            if session.current_input:
                session.current_input = session.current_input[:-1]
            elif session.history:
                session.history.pop()
                session.current_word_index -= 1
        elif key == SEPARATOR:
            if not session.current_input:
                return session.metrics
            # Separators are never scored
            self._emit(key, None, None, now)
            self._submit_word(now)
        elif len(key) == 1:
            if self.state is SessionState.IDLE:
                self.state = SessionState.ACTIVE
                session.start_time_ms = now
            position = len(session.current_input)
            target = session.current_word
            expected = target[position] if position < len(target) else None
            self._emit(key, expected, key == expected, now)
            session.current_input += key
        else:
            if self.state is SessionState.ACTIVE:
                self._emit(key, None, None, now)
            return session.metrics

        if self.state is SessionState.ACTIVE:
            self._recompute(now)
        return session.metrics

    # PUBLIC_INTERFACE
    def record_activity(self) -> None:
        """Register pointer activity, which also clears the idle flag."""
        self.idle.activity(self._clock())

    def _submit_word(self, now_ms: int) -> None:
        session = self.session
        session.history.append(session.current_input.strip())
        session.current_word_index += 1
        session.current_input = ""

        if self.mode is TestMode.WORDS:
            if session.current_word_index >= self.target:
                self._complete(now_ms)
        elif len(session.words) - session.current_word_index < self.settings.refill_threshold:
            self._request_refill()

    def _emit(self, key: str, expected: Optional[str], correct: Optional[bool], now_ms: int) -> None:
        if self.telemetry is None:
            self._last_key_ms = now_ms
            return
        start = self.session.start_time_ms
        latency = 0 if self._last_key_ms is None else max(0, now_ms - self._last_key_ms)
        event = KeystrokeEvent(
            key=key,
            timestamp=max(0, now_ms - start) if start is not None else 0,
            expected=expected,
            correct=correct,
            position=len(self.session.current_input),
            latency_from_previous_key=latency,
        )
        self._last_key_ms = now_ms
        self.telemetry.add(event, now_ms)

    def _recompute(self, now_ms: int) -> None:
        session = self.session
        elapsed = 0 if session.start_time_ms is None else now_ms - session.start_time_ms
        session.metrics = compute_metrics(
            session.history, session.words, session.current_input, elapsed
        )

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    # PUBLIC_INTERFACE
    def tick(self) -> Optional[MetricsSample]:
        """Polling-interval callback: flush telemetry, sample metrics, enforce the time box.

        Returns the recorded sample, or None when nothing was sampled (not
        active, idle, or the session just completed).
        """
        now = self._clock()
        self._merge_refill()
        if self.state is not SessionState.ACTIVE:
            return None
        if self.telemetry is not None:
            self.telemetry.poll(now)
        if self._time_limit_reached(now):
            self._complete(now)
            return None
        if self.idle.check(now):
            return None

        self._recompute(now)
        return self._record_sample()

    def _record_sample(self) -> MetricsSample:
        session = self.session
        metrics = session.metrics
        previous = session.samples[-1].error_count if session.samples else 0
        sample = MetricsSample(
            elapsed_seconds=round(metrics.elapsed_ms / 1000.0, 3),
            raw_wpm=metrics.raw_wpm,
            net_wpm=metrics.net_wpm,
            error_count=metrics.error_count,
            error_marker=metrics.error_count > previous,
        )
        session.samples.append(sample)
        return sample

    # ------------------------------------------------------------------
    # Word supply
    # ------------------------------------------------------------------

    def _fetch_words(self, count: int) -> List[str]:
        try:
            words = self.word_supply.request_words(count, self.difficulty)
        except Exception as e:
            logger.warning("Word supply failed (%s); using local pool", e)
            return fallback_words(count, self._rng)
        if not is_valid_word_list(words) or not words:
            logger.warning("Word supply returned malformed words; using local pool")
            return fallback_words(count, self._rng)
        words = list(words)
        if len(words) < count:
            logger.warning(
                "Word supply returned %s of %s words; padding from local pool", len(words), count
            )
            words.extend(fallback_words(count - len(words), self._rng))
        return words

    def _request_refill(self) -> None:
        if self._refill is not None:
            return
        future = self._executor.submit(self._fetch_words, self.settings.refill_batch_size)
        self._refill = (self.session.session_id, future)
        self._merge_refill()

    def _merge_refill(self) -> None:
        if self._refill is None:
            return
        session_id, future = self._refill
        if not future.done():
            return
        self._refill = None
        if session_id != self.session.session_id or self.state is SessionState.COMPLETED:
            return
        self.session.words.extend(future.result())
