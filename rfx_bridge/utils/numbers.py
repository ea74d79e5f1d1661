"""
Numeric coercion for codes that may arrive as text.
"""

from typing import Any, Optional


def parse_int(value: Any) -> Optional[int]:
    """
    Coerce a subtype or command code to ``int``.

    Accepts ints, integral floats and decimal or prefixed ("0x0a") text.
    Returns None when the value has no integer reading.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        for base in (0, 10):
            try:
                return int(text, base)
            except ValueError:
                continue
    return None
