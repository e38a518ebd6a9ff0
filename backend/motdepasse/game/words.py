from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .errors import InvalidSettings, UnknownCategory, WordBankExhausted
from .text import normalize_answer

logger = logging.getLogger(__name__)


CATEGORY_LABELS = {
    "animaux": "Animaux",
    "nourriture": "Nourriture",
    "objets": "Objets",
    "lieux": "Lieux",
    "metiers": "Métiers",
    "sports": "Sports",
    "nature": "Nature",
}

DEFAULT_WORDS: dict[str, list[str]] = {
    "animaux": [
        "chat", "chien", "éléphant", "girafe", "pingouin", "dauphin", "hibou",
        "tortue", "kangourou", "écureuil", "crocodile", "papillon",
    ],
    "nourriture": [
        "pizza", "croissant", "fromage", "chocolat", "baguette", "crêpe",
        "fraise", "ananas", "soupe", "gâteau", "café", "omelette",
    ],
    "objets": [
        "parapluie", "ciseaux", "lunettes", "téléphone", "bougie", "miroir",
        "valise", "horloge", "marteau", "guitare", "oreiller", "clé",
    ],
    "lieux": [
        "plage", "montagne", "bibliothèque", "hôpital", "aéroport", "château",
        "cinéma", "désert", "forêt", "musée", "piscine", "boulangerie",
    ],
    "metiers": [
        "pompier", "médecin", "boulanger", "pilote", "jardinier", "facteur",
        "cuisinier", "astronaute", "plombier", "magicien", "dentiste", "juge",
    ],
    "sports": [
        "football", "tennis", "natation", "escalade", "boxe", "rugby",
        "judo", "ski", "surf", "cyclisme", "escrime", "golf",
    ],
    "nature": [
        "volcan", "arc-en-ciel", "orage", "cascade", "nuage", "étoile",
        "rivière", "glacier", "tornade", "lune", "caillou", "fleur",
    ],
}


class ExhaustionPolicy(str, Enum):
    REUSE = "reuse"
    CYCLE = "cycle"
    FAIL = "fail"


@dataclass(frozen=True)
class WordEntry:
    word: str
    category: str
    display: str
    reused: bool = False


class WordBank:
    """Categorised word source.

    ``draw`` never repeats a word from ``excluded`` unless the requested
    categories are drained, in which case the exhaustion policy decides:

    - ``reuse``: draw again from the requested categories, ignoring the
      exclusions; entries are flagged ``reused`` and a warning is logged.
    - ``cycle``: first try unused words from every other category, then
      behave like ``reuse``.
    - ``fail``: raise ``WordBankExhausted``.
    """

    def __init__(
        self,
        words: dict[str, list[str]] | None = None,
        policy: ExhaustionPolicy | str = ExhaustionPolicy.REUSE,
        labels: dict[str, str] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._words = {k: list(v) for k, v in (words or DEFAULT_WORDS).items()}
        self._labels = dict(labels if labels is not None else CATEGORY_LABELS)
        try:
            self.policy = ExhaustionPolicy(policy)
        except ValueError:
            raise InvalidSettings(f"Politique de mots inconnue: {policy}")
        self._rng = rng or random.Random()

    def categories(self) -> list[dict]:
        return [
            {"id": cat, "label": self._labels.get(cat, cat), "size": len(words)}
            for cat, words in self._words.items()
        ]

    def has_category(self, category: str) -> bool:
        return category in self._words

    def draw(
        self,
        categories: Iterable[str] | None,
        excluded_words: Iterable[str],
        count: int = 1,
    ) -> list[WordEntry]:
        requested = list(categories or []) or list(self._words.keys())
        for cat in requested:
            if cat not in self._words:
                raise UnknownCategory(f"Catégorie inconnue: {cat}")

        excluded = {normalize_answer(w) for w in excluded_words}
        picked = self._pick(requested, excluded, count)
        if len(picked) >= count:
            return picked

        if self.policy == ExhaustionPolicy.FAIL:
            if picked:
                return picked
            raise WordBankExhausted()

        if self.policy == ExhaustionPolicy.CYCLE:
            others = [c for c in self._words if c not in requested]
            taken = excluded | {normalize_answer(e.word) for e in picked}
            extra = self._pick(others, taken, count - len(picked))
            if extra:
                logger.info("word bank: requested categories drained, cycling to %s",
                            sorted({e.category for e in extra}))
            picked.extend(extra)
            if len(picked) >= count:
                return picked

        taken = {normalize_answer(e.word) for e in picked}
        pool = [
            (cat, w)
            for cat in requested
            for w in self._words[cat]
            if normalize_answer(w) not in taken
        ]
        self._rng.shuffle(pool)
        reused = [
            WordEntry(word=w, category=cat, display=self._labels.get(cat, cat), reused=True)
            for cat, w in pool[: count - len(picked)]
        ]
        if reused:
            logger.warning(
                "word bank: categories %s exhausted, reusing %d word(s)", requested, len(reused)
            )
        picked.extend(reused)
        return picked

    def _pick(self, categories: list[str], excluded: set[str], count: int) -> list[WordEntry]:
        if count <= 0:
            return []
        pool = [
            (cat, w)
            for cat in categories
            for w in self._words[cat]
            if normalize_answer(w) not in excluded
        ]
        self._rng.shuffle(pool)
        out: list[WordEntry] = []
        seen: set[str] = set()
        for cat, w in pool:
            key = normalize_answer(w)
            if key in seen:
                continue
            seen.add(key)
            out.append(WordEntry(word=w, category=cat, display=self._labels.get(cat, cat)))
            if len(out) >= count:
                break
        return out
