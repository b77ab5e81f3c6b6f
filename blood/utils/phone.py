from __future__ import annotations

import re
from typing import Optional


def phone_digits(raw) -> Optional[int]:
    """Reduce a phone number to its numeric value.

    Accepts inputs like:
    - "01711-223344"
    - "+880 1711 223344"
    - 1711223344

    Separators and a leading "+" are dropped and leading zeros vanish in the
    integer, so "01711223344" and "1711223344" compare equal.

    Returns None if the number is missing or has no digits.
    """

    if raw is None:
        return None

    cleaned = re.sub(r"[\s\-()]+", "", str(raw).strip())
    digits_only = re.sub(r"[^0-9]", "", cleaned)
    if not digits_only:
        return None

    return int(digits_only)
