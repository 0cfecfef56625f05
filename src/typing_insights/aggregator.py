"""Scheduled aggregation of stored keystroke batches into weakness profiles.

Events are flattened batch by batch in receipt order, keeping each batch's
internal order. Batches are *not* re-sorted by event timestamp, so a bigram
can span the last event of one batch and the first event of the next. Changing
that affects every downstream consumer of the bigram list.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .config import Settings
from .fingers import finger_for
from .schemas import (
    FATIGUE_BUCKETS,
    AggregationResult,
    KeystrokeEvent,
    WeakBigram,
    WeakKey,
    WeaknessProfile,
)
from .storage import InMemoryKeystrokeStore, InMemoryProfileStore, StoredBatch

logger = logging.getLogger(__name__)

BUCKET_SPAN_MS = 15000
# Session-relative timestamps never get near a day; larger values are epoch times
MAX_SESSION_RELATIVE_MS = 24 * 60 * 60 * 1000


@dataclass
class _Tally:
    correct: int = 0
    total: int = 0

    @property
    def error_rate(self) -> float:
        if self.total <= 0:
            return 0.0
        return round((self.total - self.correct) / self.total * 100.0, 2)


def _scored(event: KeystrokeEvent) -> bool:
    return event.expected is not None and event.expected != "" and event.correct is not None


def flatten_events(batches: Iterable[StoredBatch]) -> List[KeystrokeEvent]:
    """Concatenate batch events in batch order, preserving each batch's internal order."""
    events: List[KeystrokeEvent] = []
    for batch in batches:
        events.extend(batch.events)
    return events


def weak_keys(events: Sequence[KeystrokeEvent], cap: int = 20) -> List[WeakKey]:
    """Error rate per lower-cased expected character, worst first."""
    tallies: Dict[str, _Tally] = {}
    for event in events:
        if not _scored(event):
            continue
        tally = tallies.setdefault(event.expected.lower(), _Tally())
        tally.total += 1
        if event.correct:
            tally.correct += 1

    ranked = sorted(tallies.items(), key=lambda item: -item[1].error_rate)
    return [
        WeakKey(key=key, error_rate=tally.error_rate, total_attempts=tally.total)
        for key, tally in ranked[:cap]
    ]


def weak_bigrams(events: Sequence[KeystrokeEvent], cap: int = 20) -> List[WeakBigram]:
    """Error rate per adjacent expected-character pair; a pair is correct only if both keys were."""
    tallies: Dict[str, _Tally] = {}
    for current, following in zip(events, events[1:]):
        if not (_scored(current) and _scored(following)):
            continue
        bigram = (current.expected + following.expected).lower()
        tally = tallies.setdefault(bigram, _Tally())
        tally.total += 1
        if current.correct and following.correct:
            tally.correct += 1

    ranked = sorted(tallies.items(), key=lambda item: -item[1].error_rate)
    return [WeakBigram(bigram=bigram, error_rate=tally.error_rate) for bigram, tally in ranked[:cap]]


def fatigue_buckets(events: Sequence[KeystrokeEvent]) -> Dict[str, float]:
    """Average accuracy per 15-second window since session start (100 when unsampled).

    Timestamps are session-relative milliseconds by contract; epoch values
    still land in the last bucket and are reported as a contract violation.
    """
    samples: Dict[str, List[int]] = {bucket: [] for bucket in FATIGUE_BUCKETS}
    violations = 0
    for event in events:
        if event.correct is None:
            continue
        if event.timestamp > MAX_SESSION_RELATIVE_MS:
            violations += 1
        index = min(len(FATIGUE_BUCKETS) - 1, int(event.timestamp // BUCKET_SPAN_MS))
        samples[FATIGUE_BUCKETS[index]].append(1 if event.correct else 0)

    if violations:
        logger.warning(
            "%s keystroke events carry absolute timestamps; fatigue buckets expect "
            "session-relative milliseconds",
            violations,
        )

    return {
        bucket: round(sum(values) / len(values) * 100.0, 2) if values else 100.0
        for bucket, values in samples.items()
    }


def finger_latency(events: Sequence[KeystrokeEvent]) -> Dict[str, int]:
    """Average positive inter-key latency (ms, rounded) per finger group of the expected key."""
    totals: Dict[str, List[float]] = {}
    for event in events:
        if not event.expected or event.latency_from_previous_key <= 0:
            continue
        bucket = totals.setdefault(finger_for(event.expected), [0.0, 0])
        bucket[0] += event.latency_from_previous_key
        bucket[1] += 1
    return {finger: round(total / count) for finger, (total, count) in totals.items()}


# PUBLIC_INTERFACE
def compute_profile(events: Sequence[KeystrokeEvent], cap: int = 20) -> WeaknessProfile:
    """Build a weakness profile from flattened events. Pure and deterministic."""
    return WeaknessProfile(
        weak_keys=weak_keys(events, cap),
        weak_bigrams=weak_bigrams(events, cap),
        accuracy_by_duration_bucket=fatigue_buckets(events),
        avg_latency_by_finger_group=finger_latency(events),
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
class WeaknessAggregator:
    """Recomputes the weakness profile of every recently active user.

    Users are independent: a failure is logged and the run moves on, and each
    user gets exactly one replace-write. There is no transaction across users.
    """

    def __init__(
        self,
        keystroke_store: InMemoryKeystrokeStore,
        profile_store: InMemoryProfileStore,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.keystroke_store = keystroke_store
        self.profile_store = profile_store
        self.settings = settings or Settings()
        self._clock = clock or _utc_now

    def window_start(self, now: Optional[datetime] = None) -> datetime:
        now = now or self._clock()
        return now - timedelta(days=self.settings.aggregation_window_days)

    # PUBLIC_INTERFACE
    def aggregate_user(self, user_id: str, since: datetime) -> WeaknessProfile:
        """Compute and store the profile for one user from their in-window batches."""
        batches = self.keystroke_store.recent_batches_for_user(
            user_id, since, self.settings.max_batches_per_user
        )
        events = flatten_events(batches)
        profile = compute_profile(events, self.settings.weakness_list_cap)
        self.profile_store.replace(user_id, profile)
        logger.debug(
            "Profile for %s from %s batches / %s events", user_id, len(batches), len(events)
        )
        return profile

    def _process(self, user_id: str, since: datetime) -> bool:
        try:
            self.aggregate_user(user_id, since)
        except Exception:
            logger.exception("Error calculating weakness profile for user %s", user_id)
            return False
        return True

    # PUBLIC_INTERFACE
    def run(self, now: Optional[datetime] = None) -> AggregationResult:
        """Process every user with at least one batch in the trailing window."""
        since = self.window_start(now)
        user_ids = self.keystroke_store.users_with_batches_since(since)
        logger.info("Aggregating weakness profiles for %s users since %s", len(user_ids), since)

        if self.settings.aggregator_workers > 1 and len(user_ids) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.aggregator_workers) as pool:
                outcomes = list(pool.map(lambda uid: self._process(uid, since), user_ids))
        else:
            outcomes = [self._process(uid, since) for uid in user_ids]

        processed = sum(1 for ok in outcomes if ok)
        failed = len(outcomes) - processed
        if failed:
            logger.warning("%s of %s users failed aggregation", failed, len(user_ids))
        return AggregationResult(
            users_found=len(user_ids),
            processed_users=processed,
            failed_users=failed,
            message=f"Processed weakness profiles for {processed} users",
        )
