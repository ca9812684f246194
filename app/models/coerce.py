# app/models/coerce.py
"""
Lenient coercion used by the request models: strings are trimmed and
numbers that are missing or not numeric become 0, instead of failing.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

CENTS = Decimal("0.01")


def clean_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def clean_optional(value: Any) -> Optional[str]:
    return clean_str(value) or None


def to_money(value: Any) -> Decimal:
    if isinstance(value, bool):
        return Decimal("0")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    try:
        return amount.quantize(CENTS)
    except InvalidOperation:
        return Decimal("0")


def to_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0
