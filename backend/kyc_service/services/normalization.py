"""Text normalization for identity field comparison."""

import re
import unicodedata

_COMBINING_MARKS = re.compile(r"[\u0300-\u036f]")
_NON_LETTERS = re.compile(r"[^A-Za-z\s]")
_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def normalize_name(name: str) -> str:
    """
    Normalize a personal name for comparison.

    Accents are decomposed and dropped, anything that is not a Latin letter
    becomes a space, whitespace is collapsed and the result is uppercased.
    The function is idempotent.

    Examples:
        "José Pérez" -> "JOSE PEREZ"
        "  anna  marie " -> "ANNA MARIE"
    """
    if not name:
        return ""
    text = unicodedata.normalize("NFD", name)
    text = _COMBINING_MARKS.sub("", text)
    text = _NON_LETTERS.sub(" ", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip().upper()


def normalize_document_id(value: str) -> str:
    """Strip separators from a document or register number and uppercase it."""
    if not value:
        return ""
    return _NON_ALNUM.sub("", value).upper()
