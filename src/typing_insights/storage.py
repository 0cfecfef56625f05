from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from .schemas import KeystrokeEvent, StoredProfile, WeaknessProfile


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class StoredBatch:
    """Internal structure for one received keystroke batch. Never mutated after creation."""

    __slots__ = ("batch_id", "session_id", "user_id", "received_at", "events")

    def __init__(
        self,
        session_id: str,
        user_id: Optional[str],
        events: Sequence[KeystrokeEvent],
        received_at: datetime,
    ):
        self.batch_id = str(uuid4())
        self.session_id = session_id
        self.user_id = user_id
        self.received_at = received_at
        self.events: Tuple[KeystrokeEvent, ...] = tuple(events)


class InMemoryKeystrokeStore:
    """Thread-safe append-only store for keystroke batches.

    Batches are keyed by session id and receipt time. Nothing is deduplicated:
    a retried flush is stored as a second batch.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._batches: List[StoredBatch] = []

    # PUBLIC_INTERFACE
    def append_batch(
        self,
        session_id: str,
        user_id: Optional[str],
        events: Sequence[KeystrokeEvent],
        received_at: Optional[datetime] = None,
    ) -> StoredBatch:
        """Append a batch and return the stored record.

        Args:
            session_id: Session the events belong to.
            user_id: Owner of the events, or None for anonymous telemetry.
            events: Ordered keystroke events.
            received_at: Receipt time; defaults to now (UTC).
        """
        batch = StoredBatch(session_id, user_id, events, received_at or _now_utc())
        with self._lock:
            self._batches.append(batch)
        return batch

    # PUBLIC_INTERFACE
    def users_with_batches_since(self, since: datetime) -> List[str]:
        """List distinct non-anonymous user ids with at least one batch received at or after ``since``.

        Users are returned in order of their first in-window batch.
        """
        with self._lock:
            batches = list(self._batches)
        seen: Dict[str, None] = {}
        for batch in batches:
            if batch.user_id is not None and batch.received_at >= since:
                seen.setdefault(batch.user_id, None)
        return list(seen)

    # PUBLIC_INTERFACE
    def recent_batches_for_user(
        self, user_id: str, since: datetime, limit: int
    ) -> List[StoredBatch]:
        """Return up to ``limit`` most recent in-window batches for a user, oldest first."""
        with self._lock:
            batches = [
                b for b in self._batches if b.user_id == user_id and b.received_at >= since
            ]
        # sorted() is stable, so batches with equal receipt times keep append order
        batches = sorted(batches, key=lambda b: b.received_at)
        return batches[-limit:] if limit > 0 else []

    # PUBLIC_INTERFACE
    def batches_for_session(self, session_id: str) -> List[StoredBatch]:
        """Return every batch stored for a session in append order."""
        with self._lock:
            return [b for b in self._batches if b.session_id == session_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._batches)


class InMemoryProfileStore:
    """Thread-safe store holding one weakness profile per user."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._profiles: Dict[str, StoredProfile] = {}

    # PUBLIC_INTERFACE
    def get(self, user_id: str) -> Optional[WeaknessProfile]:
        """Return the user's profile, or None when none has been computed yet."""
        with self._lock:
            record = self._profiles.get(user_id)
        return record.profile if record else None

    # PUBLIC_INTERFACE
    def get_record(self, user_id: str) -> Optional[StoredProfile]:
        """Return the stored record including its calculation time."""
        with self._lock:
            return self._profiles.get(user_id)

    # PUBLIC_INTERFACE
    def replace(self, user_id: str, profile: WeaknessProfile) -> StoredProfile:
        """Replace the whole record for ``user_id``; nothing is merged."""
        record = StoredProfile(
            user_id=user_id, profile=profile, last_calculated_at=_now_utc()
        )
        with self._lock:
            self._profiles[user_id] = record
        return record

    def __len__(self) -> int:
        with self._lock:
            return len(self._profiles)


# Singleton store instances for app-wide usage
keystroke_store = InMemoryKeystrokeStore()
profile_store = InMemoryProfileStore()
