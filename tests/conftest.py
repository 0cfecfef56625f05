"""Shared test fixtures for Typing Insights tests."""

from concurrent.futures import Executor, Future

import pytest
from fastapi.testclient import TestClient

from typing_insights.auth import SessionTokenRegistry
from typing_insights.cache import TTLCache
from typing_insights.config import Settings, get_settings
from typing_insights.dependencies import (
    get_cache,
    get_identity_verifier,
    get_keystroke_store,
    get_profile_store,
)
from typing_insights.main import app
from typing_insights.schemas import KeystrokeEvent
from typing_insights.storage import InMemoryKeystrokeStore, InMemoryProfileStore


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start_ms: int = 1_000_000):
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class InlineExecutor(Executor):
    """Runs submitted callables immediately on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class ListWordSupply:
    """Word supply returning a fixed cycle of words and recording requests."""

    def __init__(self, words):
        self.words = list(words)
        self.requests = []

    def request_words(self, count, difficulty="medium"):
        self.requests.append((count, difficulty))
        return [self.words[i % len(self.words)] for i in range(count)]


def make_event(expected, correct, timestamp=0, latency=100, key=None, position=0):
    """Build a KeystrokeEvent with sensible defaults."""
    if key is None:
        key = expected if (correct or expected is None) else "#"
    return KeystrokeEvent(
        key=key or "Shift",
        timestamp=timestamp,
        expected=expected,
        correct=correct,
        position=position,
        latency_from_previous_key=latency,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def inline_executor():
    return InlineExecutor()


@pytest.fixture
def keystroke_store():
    return InMemoryKeystrokeStore()


@pytest.fixture
def profile_store():
    return InMemoryProfileStore()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def token_registry():
    return SessionTokenRegistry()


@pytest.fixture
def client(keystroke_store, profile_store, settings, token_registry):
    """TestClient wired to fresh stores, cache and settings."""
    app.dependency_overrides[get_keystroke_store] = lambda: keystroke_store
    app.dependency_overrides[get_profile_store] = lambda: profile_store
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_identity_verifier] = lambda: token_registry
    fresh_cache = TTLCache()
    app.dependency_overrides[get_cache] = lambda: fresh_cache
    yield TestClient(app)
    app.dependency_overrides.clear()
