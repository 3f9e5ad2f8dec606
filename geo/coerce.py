"""
Property coercion helpers.

Feature services return loosely typed property bags: numbers as strings,
"null" as a string, empty strings for missing values. These helpers map all
of those onto None or a real Python value.
"""

import math
from typing import Any, Mapping, Optional

_ABSENT_MARKERS = ("", "null", "NULL", "None")


def is_absent(value: Any) -> bool:
    """True for None, empty strings and the literal string "null"."""
    if value is None:
        return True
    if isinstance(value, str) and value.strip() in _ABSENT_MARKERS:
        return True
    return False


def to_optional_str(value: Any) -> Optional[str]:
    if is_absent(value):
        return None
    return str(value)


def to_optional_float(value: Any) -> Optional[float]:
    """Coerce to float. Unparseable or non-finite values become None."""
    if is_absent(value) or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_optional_int(value: Any) -> Optional[int]:
    number = to_optional_float(value)
    if number is None:
        return None
    return int(number)


def prop(properties: Mapping[str, Any], *keys: str) -> Optional[str]:
    """First present (non-absent) string value among keys."""
    for key in keys:
        value = to_optional_str(properties.get(key))
        if value is not None:
            return value
    return None


def prop_float(properties: Mapping[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = to_optional_float(properties.get(key))
        if value is not None:
            return value
    return None
