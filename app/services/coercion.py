"""Field coercion helpers - normalize raw form values into storage-ready types.

Every helper is total: bad input becomes ``None`` (or the given default),
never an exception and never an empty string in a typed column.
"""

import re
from typing import Any

from app.config import PLACEHOLDER_TEXT

_INT_LITERAL = re.compile(r"^[+-]?\d+$")


def safe_int(value: Any) -> int | None:
    """Return ``value`` as an int when it is a clean integer, else None.

    "3" -> 3, " 12 " -> 12, "" -> None, "60 oz" -> None, "3.5" -> None.
    Leading numeric prefixes are rejected rather than truncated.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not _INT_LITERAL.match(text):
        return None
    return int(text)


def yes_no_to_bool(value: Any) -> bool | None:
    """Map the canonical "yes"/"no" tokens to True/False; anything else is None."""
    if value == "yes":
        return True
    if value == "no":
        return False
    return None


def strict_true(value: Any) -> bool | None:
    """Checkbox flags: only a real ``True`` is recorded, unchecked stays NULL."""
    return True if value is True else None


def tri_state(value: Any) -> bool | None:
    """Pass explicit booleans through, collapse everything else to None."""
    if value is True or value is False:
        return value
    return None


def text_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def text_or_default(value: Any, default: str = PLACEHOLDER_TEXT) -> str:
    """Required text columns fall back to a placeholder instead of failing."""
    return text_or_none(value) or default


def has_signal(value: Any) -> bool:
    """True when a form value carries something other than None / blank."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, dict)):
        return bool(value)
    return True
