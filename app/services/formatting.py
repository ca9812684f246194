# app/services/formatting.py

"""Formatting helpers for money, quantities and payment dates."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from dateutil import parser as dateutil_parser


def fmt_money(amount: Any, symbol: str) -> str:
    return f"{symbol}{amount:,.2f}"


def fmt_qty(qty: Any) -> str:
    try:
        quantity = float(qty)
        if quantity.is_integer():
            return str(int(quantity))
        return str(quantity)
    except (TypeError, ValueError):
        return str(qty)


def parse_when(raw: Optional[str], tz_name: str) -> Optional[datetime]:
    """
    Parse a client-supplied timestamp leniently.

    ISO 8601 is read as such; anything else is day-first (05/03/2026 is
    5 March). Aware values are converted into tz_name; naive ones are taken
    as already local. Returns None when the text is not a usable date.
    """
    if not raw or not raw.strip():
        return None
    raw = raw.strip()
    try:
        dt = dateutil_parser.isoparse(raw)
    except (ValueError, OverflowError):
        try:
            dt = dateutil_parser.parse(raw, dayfirst=True)
        except (ValueError, OverflowError):
            return None
    if dt.tzinfo is not None:
        try:
            dt = dt.astimezone(ZoneInfo(tz_name))
        except (ValueError, OverflowError):
            return None
    return dt


def fmt_paid_date(raw: Optional[str], tz_name: str) -> str:
    """Return the date as en-GB long form, e.g. '14 March 2025'."""
    dt = parse_when(raw, tz_name)
    if dt is None:
        return (raw or "").strip()
    return f"{dt.day} {dt.strftime('%B %Y')}"


def local_today(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()
