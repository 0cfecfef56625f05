"""Word-supply collaborators for the test engine."""

from __future__ import annotations

import logging
import random
from collections import deque
from typing import Deque, List, Optional, Protocol, Sequence

import requests

from .wordlists import COMMON_WORDS, DIFFICULTY_POOLS

logger = logging.getLogger(__name__)

DIFFICULTIES = tuple(DIFFICULTY_POOLS)
DEFAULT_DIFFICULTY = "medium"
NUMBER_WORDS = ("123", "2024", "50", "100", "10", "5", "0", "1999", "20", "365")


class WordSupply(Protocol):
    """Anything that can hand the engine a batch of words."""

    def request_words(self, count: int, difficulty: str = DEFAULT_DIFFICULTY) -> Sequence[str]:
        ...


def fallback_words(count: int, rng: Optional[random.Random] = None) -> List[str]:
    """Uniformly sample ``count`` words from the generic local pool."""
    rng = rng or random.Random()
    return [rng.choice(COMMON_WORDS) for _ in range(max(0, count))]


def is_valid_word_list(words) -> bool:
    """True when ``words`` is a list/tuple of non-empty strings without whitespace."""
    if not isinstance(words, (list, tuple)):
        return False
    return all(isinstance(w, str) and w and not any(c.isspace() for c in w) for w in words)


# PUBLIC_INTERFACE
class LocalWordSupply:
    """Draws test words from the built-in difficulty pools.

    Recently used words are avoided (last 40 words) so consecutive batches do
    not repeat the same handful of short words.
    """

    def __init__(
        self,
        use_punctuation: bool = False,
        use_numbers: bool = False,
        recent_window: int = 40,
        rng: Optional[random.Random] = None,
    ):
        self.use_punctuation = use_punctuation
        self.use_numbers = use_numbers
        self.rng = rng or random.Random()
        self._recent: Deque[str] = deque(maxlen=recent_window)

    def request_words(self, count: int, difficulty: str = DEFAULT_DIFFICULTY) -> List[str]:
        pool = list(DIFFICULTY_POOLS.get(difficulty, DIFFICULTY_POOLS[DEFAULT_DIFFICULTY]))
        if self.use_numbers:
            pool.extend(NUMBER_WORDS)

        batch = []
        for _ in range(max(0, count)):
            word = self.rng.choice(pool)
            attempts = 1
            while word in self._recent and attempts < 50:
                word = self.rng.choice(pool)
                attempts += 1
            self._recent.append(word)

            if self.use_punctuation:
                roll = self.rng.random()
                if roll > 0.9:
                    word += "."
                elif roll > 0.8:
                    word += ","
            batch.append(word)
        return batch


# PUBLIC_INTERFACE
class HttpWordSupply:
    """Fetches words from a remote ``GET /api/words`` endpoint."""

    def __init__(self, base_url: str, timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def request_words(self, count: int, difficulty: str = DEFAULT_DIFFICULTY) -> List[str]:
        """Return the words from the remote service.

        Raises:
            requests.RequestException: on transport or HTTP errors; the engine
                catches these and falls back to its local pool.
        """
        response = self._session.get(
            f"{self.base_url}/api/words",
            params={"count": count, "difficulty": difficulty},
            timeout=self.timeout,
        )
        response.raise_for_status()
        words = response.json().get("words")
        logger.debug("Fetched %s words (%s) from %s", len(words or []), difficulty, self.base_url)
        return words
