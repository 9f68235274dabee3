# utils/sanitization.py
from typing import Optional
import re

CONTROL_CHARS = r"[\x00-\x08\x0b-\x0c\x0e-\x1f\x7f-\x9f]"


def clean_text(value: Optional[str]) -> str:
    if value is None:
        return ""

    text = re.sub(CONTROL_CHARS, "", value)
    text = text.strip()

    # Collapse internal runs ("Machine   Learning" -> "Machine Learning")
    text = re.sub(r"\s+", " ", text)

    return text


def capitalize_words(text: str) -> str:
    """
    Capitalizes the first letter of each space-separated word and lowercases the rest.
    Falls back to the input when case mapping is not reversible (e.g. 'ß' -> 'SS'),
    so that the lowercase key of the result always equals the key of the input.
    """
    capitalized = " ".join(w[:1].upper() + w[1:].lower() for w in text.split(" "))
    if capitalized.lower() != text.lower():
        return text
    return capitalized


def contains_phrase(text: str, phrase: str) -> bool:
    """Whole-word phrase containment, case-insensitive."""
    if not phrase:
        return False
    pattern = r"(?<!\w)" + re.escape(phrase.lower()) + r"(?!\w)"
    return re.search(pattern, text.lower()) is not None
