from __future__ import annotations

import json
import logging
import random
from pathlib import Path

logger = logging.getLogger(__name__)


DEFAULT_WORD_PAIRS: dict[str, str] = {
    "Pizza": "Burger",
    "Guitar": "Violin",
    "Elephant": "Rhinoceros",
    "Coffee": "Tea",
    "Ocean": "Lake",
    "Rocket": "Airplane",
    "Castle": "Palace",
    "Penguin": "Seal",
}


def _validate_pairs(data: object) -> dict[str, str]:
    if not isinstance(data, dict) or not data:
        raise ValueError("word catalog must be a non-empty JSON object")
    pairs: dict[str, str] = {}
    for word, opposite in data.items():
        if not isinstance(opposite, str):
            raise ValueError(f"opposite of {word!r} is not a string")
        w, o = word.strip(), opposite.strip()
        if not w or not o:
            raise ValueError(f"empty word in pair {word!r} -> {opposite!r}")
        pairs[w] = o
    return pairs


class WordCatalog:
    """Hands out word pairs, avoiding repeats until every word has been used."""

    def __init__(self, pairs: dict[str, str] | None = None, rng: random.Random | None = None) -> None:
        self._pairs = dict(pairs or DEFAULT_WORD_PAIRS)
        self._rng = rng or random.Random()
        self._used: set[str] = set()

    @classmethod
    def load(cls, path: str | Path | None, rng: random.Random | None = None) -> WordCatalog:
        if not path:
            return cls(DEFAULT_WORD_PAIRS, rng=rng)
        try:
            with open(path, encoding="utf-8") as fh:
                pairs = _validate_pairs(json.load(fh))
        except (OSError, ValueError) as exc:
            logger.warning("[words-fallback] path=%s error=%s", path, exc)
            return cls(DEFAULT_WORD_PAIRS, rng=rng)

        logger.info("[words-load] path=%s pairs=%d", path, len(pairs))
        return cls(pairs, rng=rng)

    def __len__(self) -> int:
        return len(self._pairs)

    def next_word(self) -> tuple[str, str]:
        available = [w for w in self._pairs if w not in self._used]
        if not available:
            self._used.clear()
            available = list(self._pairs)

        word = self._rng.choice(available)
        self._used.add(word)
        return word, self._pairs[word]
