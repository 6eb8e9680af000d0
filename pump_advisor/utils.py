"""Shared utilities used across the pump advisor."""

import re
from typing import Iterable, Optional

_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_WHITESPACE = re.compile(r"\s+")


def normalize_message(value: str) -> str:
    """Lowercase a message and collapse runs of whitespace.

    Examples:
        >>> normalize_message("  Dairy   COWS ")
        'dairy cows'
    """
    return _WHITESPACE.sub(" ", value.strip()).lower()


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring membership against a keyword set."""
    lower = text.lower()
    return any(keyword in lower for keyword in keywords)


def first_number(text: str) -> Optional[float]:
    """Return the first decimal number in ``text``, or None.

    Examples:
        >>> first_number("about 120.5 feet")
        120.5
        >>> first_number("not sure") is None
        True
    """
    match = _NUMBER.search(text)
    return float(match.group(0)) if match else None


def first_integer(text: str) -> Optional[int]:
    """Return the first run of digits in ``text`` as an int, or None."""
    match = re.search(r"\d+", text)
    return int(match.group(0)) if match else None
