from __future__ import annotations

from typing import Any, Optional


def parse_qty(v: Any) -> Optional[int]:
    """
    Quantity from user input: int, integral float or a numeric string.
    Returns None when the value is not a whole number.
    """
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        return int(v) if v.is_integer() else None
    text = str(v).strip().replace(",", ".")
    if not text:
        return None
    try:
        f = float(text)
    except ValueError:
        return None
    if f != f or not f.is_integer():
        return None
    return int(f)
