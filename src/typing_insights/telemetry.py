"""Client-side keystroke buffering and fire-and-forget delivery."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

import requests

from .schemas import KeystrokeBatchRequest, KeystrokeEvent

logger = logging.getLogger(__name__)

BatchSender = Callable[[Dict[str, Any]], Any]


# PUBLIC_INTERFACE
class KeystrokeBuffer:
    """Buffers keystroke events for one session and flushes them in batches.

    A flush happens when the buffer holds ``max_events`` events, when
    ``flush_interval_ms`` has passed since the last flush (see :meth:`poll`),
    or when the owner calls :meth:`flush` (session completion). Delivery runs
    on ``executor``; its outcome never feeds back into the caller.
    """

    def __init__(
        self,
        session_id: str,
        sender: BatchSender,
        user_id: Optional[str] = None,
        max_events: int = 50,
        flush_interval_ms: int = 2000,
        executor: Optional[Executor] = None,
    ):
        self.session_id = session_id
        self.user_id = user_id
        self.sender = sender
        self.max_events = max_events
        self.flush_interval_ms = flush_interval_ms
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="telemetry"
        )
        self._owns_executor = executor is None
        self._events: List[KeystrokeEvent] = []
        self._last_flush_ms: Optional[int] = None
        self._lock = threading.Lock()
        self.batches_sent = 0
        self.batches_failed = 0

    def __len__(self) -> int:
        return len(self._events)

    def add(self, event: KeystrokeEvent, now_ms: int) -> Optional[Future]:
        """Buffer an event; flushes immediately once the size threshold is hit."""
        if self._last_flush_ms is None:
            self._last_flush_ms = now_ms
        self._events.append(event)
        if len(self._events) >= self.max_events:
            return self.flush(now_ms)
        return None

    def poll(self, now_ms: int) -> Optional[Future]:
        """Flush if the interval timer has elapsed and events are pending."""
        if not self._events or self._last_flush_ms is None:
            return None
        if now_ms - self._last_flush_ms >= self.flush_interval_ms:
            return self.flush(now_ms)
        return None

    def flush(self, now_ms: Optional[int] = None) -> Optional[Future]:
        """Hand pending events to the sender. Returns the delivery future, if any."""
        if now_ms is not None:
            self._last_flush_ms = now_ms
        if not self._events:
            return None
        events, self._events = self._events, []
        payload = KeystrokeBatchRequest(
            session_id=self.session_id, user_id=self.user_id, events=events
        ).model_dump(by_alias=True)
        return self._executor.submit(self._deliver, payload)

    def _deliver(self, payload: Dict[str, Any]) -> bool:
        try:
            self.sender(payload)
        except Exception as e:
            with self._lock:
                self.batches_failed += 1
            logger.warning(
                "Keystroke batch for session %s not delivered (%s events): %s",
                self.session_id, len(payload["events"]), e,
            )
            return False
        with self._lock:
            self.batches_sent += 1
        return True

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)


# PUBLIC_INTERFACE
class HttpBatchSender:
    """Posts keystroke batches to ``POST /api/keystrokes/batch``."""

    def __init__(
        self,
        base_url: str,
        session_token: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = base_url.rstrip("/") + "/api/keystrokes/batch"
        self.timeout = timeout
        self._session = session or requests.Session()
        if session_token:
            self._session.headers.update({"Authorization": f"Bearer {session_token}"})

    def __call__(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self._session.post(self.url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        return response.json()
