"""FastAPI dependency providers; tests swap them via ``app.dependency_overrides``."""

from __future__ import annotations

from fastapi import Depends

from .aggregator import WeaknessAggregator
from .auth import IdentityVerifier, session_registry
from .cache import TTLCache, cache
from .config import Settings, get_settings
from .content import ContentGenerator
from .storage import InMemoryKeystrokeStore, InMemoryProfileStore, keystroke_store, profile_store
from .words import LocalWordSupply

_word_supply = LocalWordSupply()


def get_keystroke_store() -> InMemoryKeystrokeStore:
    return keystroke_store


def get_profile_store() -> InMemoryProfileStore:
    return profile_store


def get_identity_verifier() -> IdentityVerifier:
    return session_registry


def get_cache() -> TTLCache:
    return cache


def get_word_supply() -> LocalWordSupply:
    return _word_supply


def get_content_generator(settings: Settings = Depends(get_settings)) -> ContentGenerator:
    return ContentGenerator(
        focus_probability=settings.focus_probability,
        focus_key_count=settings.focus_key_count,
        focus_bigram_count=settings.focus_bigram_count,
    )


def get_aggregator(
    settings: Settings = Depends(get_settings),
    keystrokes: InMemoryKeystrokeStore = Depends(get_keystroke_store),
    profiles: InMemoryProfileStore = Depends(get_profile_store),
) -> WeaknessAggregator:
    return WeaknessAggregator(keystrokes, profiles, settings)
