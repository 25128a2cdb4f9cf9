"""
Name normalization and membership checks.

Front, coverage and blitz names arrive as free text typed by coaches
("3-4 Split +", "Cover 3", "cover3"). Matching is done on normalized
tokens parsed from comma-joined lists, never by substring, so "3-4"
does not match "3-4 Over".
"""

import re
from typing import Iterable, Union

_WHITESPACE = re.compile(r"\s+")
_WORD_SPLIT = re.compile(r"[^0-9a-zA-Z]+")

NameList = Union[str, Iterable[str], None]


def normalize_name(name: str) -> str:
    """
    Normalize a front/coverage/concept name for comparison.

    Lower-cases and removes all whitespace, keeping symbols like + and -.

    Example:
        normalize_name("3-4 Split +") -> "3-4split+"
    """
    if not name:
        return ""
    return _WHITESPACE.sub("", str(name)).lower()


def parse_name_list(value: NameList) -> tuple[str, ...]:
    """
    Parse a comma-joined name list (or an iterable of names).

    Entries are trimmed and empty entries dropped; original casing is kept.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        parts = value.split(",")
    else:
        parts = []
        for item in value:
            parts.extend(str(item).split(","))
    return tuple(part.strip() for part in parts if part and part.strip())


def join_name_list(names: Iterable[str]) -> str:
    """Join names back into the comma-joined wire form."""
    return ", ".join(names)


def contains_name(names: Iterable[str], target: str) -> bool:
    """Check whether target is one of names (normalized exact match)."""
    wanted = normalize_name(target)
    if not wanted:
        return False
    return any(normalize_name(name) == wanted for name in names)


def word_tokens(value: str) -> frozenset[str]:
    """Split free text into lower-cased alphanumeric words."""
    if not value:
        return frozenset()
    return frozenset(token.lower() for token in _WORD_SPLIT.split(value) if token)


def slugify(name: str) -> str:
    """Build a stable lower-case key fragment from a display name."""
    text = str(name).lower().strip().replace("+", " plus ")
    # Trailing "-" is a strength marker ("3-4 Split -"), not a separator
    if text.endswith("-"):
        text = text[:-1] + " minus"
    slug = re.sub(r"[^0-9a-z]+", "_", text).strip("_")
    return slug or "unnamed"
