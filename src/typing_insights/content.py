"""Adaptive practice content built from a weakness profile."""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Sequence, Tuple

from .schemas import WeaknessProfile
from .wordlists import (
    COMMON_WORDS,
    NEUTRAL_WORDS,
    has_whitespace,
    words_for_bigram,
    words_for_key,
)

logger = logging.getLogger(__name__)

FocusPool = Tuple[str, Sequence[str]]


# PUBLIC_INTERFACE
class ContentGenerator:
    """Synthesizes practice word sequences.

    Without a profile, words are drawn uniformly from the generic pool. With
    one, every position targets the next weakness in round-robin order with
    probability ``focus_probability`` and falls back to the neutral pool
    otherwise.
    """

    def __init__(
        self,
        focus_probability: float = 0.6,
        focus_key_count: int = 5,
        focus_bigram_count: int = 3,
        rng: Optional[random.Random] = None,
    ):
        if not 0.0 <= focus_probability <= 1.0:
            raise ValueError("focus_probability must be within [0, 1]")
        self.focus_probability = focus_probability
        self.focus_key_count = focus_key_count
        self.focus_bigram_count = focus_bigram_count
        self.rng = rng or random.Random()

    def focus_pools(self, profile: Optional[WeaknessProfile]) -> List[FocusPool]:
        """Word pools for the profile's top weak keys, then its top weak bigrams."""
        if profile is None:
            return []
        pools: List[FocusPool] = []
        candidates = [
            (weak_key.key, words_for_key)
            for weak_key in profile.weak_keys[: self.focus_key_count]
        ] + [
            (weak_bigram.bigram, words_for_bigram)
            for weak_bigram in profile.weak_bigrams[: self.focus_bigram_count]
        ]
        for name, lookup in candidates:
            # Separators and other whitespace cannot be drilled inside a word
            if not name or has_whitespace(name):
                continue
            pool = lookup(name)
            if pool:
                pools.append((name, pool))
        return pools

    # PUBLIC_INTERFACE
    def generate(self, count: int, profile: Optional[WeaknessProfile] = None) -> List[str]:
        """Return exactly ``count`` words (an empty list for ``count <= 0``)."""
        if count <= 0:
            return []

        pools = self.focus_pools(profile)
        if not pools:
            return [self.rng.choice(COMMON_WORDS) for _ in range(count)]

        words = []
        turn = 0
        for _ in range(count):
            if self.rng.random() < self.focus_probability:
                _, pool = pools[turn % len(pools)]
                turn += 1
                words.append(self.rng.choice(pool))
            else:
                words.append(self.rng.choice(NEUTRAL_WORDS))
        self.rng.shuffle(words)

        logger.debug("Generated %s words, %s targeting %s weaknesses", count, turn, len(pools))
        return self._fit(words, count)

    def _fit(self, words: List[str], count: int) -> List[str]:
        if len(words) < count:
            words = words + [self.rng.choice(COMMON_WORDS) for _ in range(count - len(words))]
        return words[:count]
