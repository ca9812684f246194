# app/services/receipts.py

"""
Receipt rendering.

Pure functions: an invoice row, its customer row and the settings go in, a
subject line plus HTML and plain-text bodies come out. The HTML template is
autoescaped; the text template is not.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import Settings
from app.models.coerce import to_money
from app.models.invoices import LineItem, load_items
from app.services.formatting import fmt_money, fmt_paid_date, fmt_qty

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TEMPLATES_DIR = os.path.join(BASE_DIR, "templates")

_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(enabled_extensions=("html",), default=False),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


@dataclass(frozen=True)
class Receipt:
    subject: str
    html: str
    text: str


def describe_item(item: LineItem) -> str:
    when = " ".join(part for part in (item.date, item.time) if part)
    if when:
        return f"{item.desc} ({when})"
    return item.desc


def build_receipt_context(
    invoice: Mapping[str, Any],
    customer: Optional[Mapping[str, Any]],
    settings: Settings,
) -> Dict[str, Any]:
    symbol = settings.currency_symbol
    customer = customer or {}

    items: List[Dict[str, str]] = []
    for item in load_items(invoice.get("items_json")):
        items.append(
            {
                "description": describe_item(item),
                "qty": fmt_qty(item.qty),
                "unit": fmt_money(item.unit, symbol),
                "amount": fmt_money(item.amount, symbol),
            }
        )

    travel_fee = to_money(invoice.get("travel_fee"))
    total = to_money(invoice.get("total"))
    deposit = to_money(invoice.get("deposit_amount"))
    balance = max(total - deposit, Decimal("0"))

    address = customer.get("address") or ""

    return {
        "business_name": settings.business_name,
        "business_email": settings.business_email,
        "customer_name": customer.get("name") or "",
        "customer_email": customer.get("email") or "",
        "customer_address_lines": [line.strip() for line in address.splitlines() if line.strip()],
        "receipt_no": invoice.get("receipt_no") or invoice.get("invoice_no"),
        "invoice_no": invoice.get("invoice_no"),
        "programme": invoice.get("programme") or "",
        "paid_date": fmt_paid_date(invoice.get("paid_at"), settings.timezone) or "Not recorded",
        "paid_method": invoice.get("paid_method") or "",
        "paid_ref": invoice.get("paid_ref") or "",
        "items": items,
        "travel_fee": fmt_money(travel_fee, symbol) if travel_fee > 0 else None,
        "has_deposit": deposit > 0,
        "deposit": fmt_money(deposit, symbol),
        "balance": fmt_money(balance, symbol),
        "total": fmt_money(total, symbol),
    }


def render_receipt(
    invoice: Mapping[str, Any],
    customer: Optional[Mapping[str, Any]],
    settings: Settings,
) -> Receipt:
    context = build_receipt_context(invoice, customer, settings)
    subject = f"Receipt {context['receipt_no']} from {settings.business_name}"
    return Receipt(
        subject=subject,
        html=_env.get_template("receipt.html").render(context),
        text=_env.get_template("receipt.txt").render(context),
    )
