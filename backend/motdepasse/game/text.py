from __future__ import annotations

import unicodedata

MAX_CLUE_LENGTH = 30
ROOT_LENGTH = 4


def normalize_answer(text: str) -> str:
    t = text.strip().lower()
    t = unicodedata.normalize("NFD", t)
    return "".join(ch for ch in t if not unicodedata.combining(ch))


def check_answer(answer, secret: str) -> bool:
    if not isinstance(answer, str) or not answer.strip():
        return False
    return normalize_answer(answer) == normalize_answer(secret)


def clue_rejection(clue, secret: str) -> str | None:
    """Returns the reason code a clue is refused for, or None if it is valid.

    The derivative check only compares the first four lowercase letters of
    both words, in both directions, and only when both are longer than three
    characters.
    """
    if not isinstance(clue, str) or not clue.strip():
        return "clue_empty"

    clean = clue.strip().lower()
    clean_secret = secret.strip().lower()

    if any(ch.isspace() for ch in clean):
        return "clue_multiple_words"

    if normalize_answer(clean) == normalize_answer(clean_secret):
        return "clue_is_secret"

    if len(clean) > MAX_CLUE_LENGTH:
        return "clue_too_long"

    if len(clean) > 3 and len(clean_secret) > 3:
        root = clean_secret[:ROOT_LENGTH]
        if clean.startswith(root) or clean_secret.startswith(clean[:ROOT_LENGTH]):
            return "clue_too_close"

    return None


CLUE_MESSAGES = {
    "clue_empty": "Indice invalide",
    "clue_multiple_words": "Un seul mot autorisé !",
    "clue_is_secret": "Tu ne peux pas donner le mot lui-même !",
    "clue_too_long": "Indice trop long !",
    "clue_too_close": "Mot trop proche du mot secret !",
}
