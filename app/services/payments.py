# app/services/payments.py

"""
Mark-paid / mark-unpaid and the receipt email that goes with them.

The payment update is committed before any email is attempted; the email
result is only ever reported back as (emailed, emailError).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.engine import Engine

from app.core.config import Settings
from app.core.errors import NotFoundError
from app.db.queries import fetch_customer, fetch_invoice
from app.db.schema import invoices
from app.models.invoices import PaymentIn, PaymentResult, ReceiptEmailResult
from app.services.email import EmailClient
from app.services.formatting import local_today, parse_when
from app.services.receipts import render_receipt

logger = logging.getLogger(__name__)

EMAIL_NOT_CONFIGURED = "Email not configured (set EMAIL_API_KEY and EMAIL_FROM)"
NO_CUSTOMER_EMAIL = "Customer has no email address"


@dataclass(frozen=True)
class EmailOutcome:
    emailed: bool
    error: Optional[str] = None


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def make_receipt_no(invoice_no: str, paid_at: Optional[str], settings: Settings) -> str:
    """
    <prefix>-<invoice_no>-<YYYYMMDD>, dated by the payment (today if paid_at
    can't be read as a date).
    """
    paid = parse_when(paid_at, settings.timezone)
    day = paid.date() if paid is not None else local_today(settings.timezone)
    return f"{settings.receipt_prefix}-{invoice_no}-{day:%Y%m%d}"


def send_receipt(
    engine: Engine,
    invoice_id: int,
    settings: Settings,
    email_client: EmailClient,
) -> EmailOutcome:
    with engine.connect() as conn:
        invoice = fetch_invoice(conn, invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found")
        customer = fetch_customer(conn, invoice["customer_id"])

    if not email_client.configured:
        logger.info("Receipt for invoice %s not sent: email not configured", invoice_id)
        return EmailOutcome(False, EMAIL_NOT_CONFIGURED)

    to = customer["email"] if customer is not None else None
    if not to:
        logger.info("Receipt for invoice %s not sent: no customer email", invoice_id)
        return EmailOutcome(False, NO_CUSTOMER_EMAIL)

    receipt = render_receipt(invoice, customer, settings)
    email_client.send(to, receipt.subject, receipt.html, receipt.text)

    with engine.begin() as conn:
        conn.execute(
            update(invoices)
            .where(invoices.c.id == invoice_id)
            .values(emailed_receipt_at=utc_now_iso())
        )
    return EmailOutcome(True)


def try_send_receipt(
    engine: Engine,
    invoice_id: int,
    settings: Settings,
    email_client: EmailClient,
) -> EmailOutcome:
    """send_receipt, with every failure turned into an EmailOutcome."""
    try:
        return send_receipt(engine, invoice_id, settings, email_client)
    except NotFoundError:
        raise
    except Exception as exc:
        logger.warning("Receipt email for invoice %s failed: %s", invoice_id, exc)
        return EmailOutcome(False, str(exc) or exc.__class__.__name__)


def mark_paid(
    engine: Engine,
    invoice_id: int,
    payment: PaymentIn,
    settings: Settings,
    email_client: EmailClient,
) -> PaymentResult:
    paid_at = payment.paid_at or utc_now_iso()

    with engine.begin() as conn:
        invoice = fetch_invoice(conn, invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found")

        candidate = make_receipt_no(invoice["invoice_no"], paid_at, settings)
        # an existing receipt number always wins
        receipt_no = conn.execute(
            update(invoices)
            .where(invoices.c.id == invoice_id)
            .values(
                paid_at=paid_at,
                paid_method=payment.paid_method,
                paid_ref=payment.paid_ref,
                receipt_no=func.coalesce(invoices.c.receipt_no, candidate),
            )
            .returning(invoices.c.receipt_no)
        ).scalar_one()

    logger.info("Invoice %s marked paid (receipt %s)", invoice_id, receipt_no)

    outcome = try_send_receipt(engine, invoice_id, settings, email_client)

    return PaymentResult(
        id=invoice_id,
        receipt_no=receipt_no,
        paid_at=paid_at,
        paid_method=payment.paid_method,
        paid_ref=payment.paid_ref,
        emailed=outcome.emailed,
        emailError=outcome.error,
    )


def mark_unpaid(engine: Engine, invoice_id: int) -> None:
    # receipt_no and emailed_receipt_at stay as they are
    with engine.begin() as conn:
        conn.execute(
            update(invoices)
            .where(invoices.c.id == invoice_id)
            .values(paid_at=None, paid_method=None, paid_ref=None)
        )
    logger.info("Invoice %s marked unpaid", invoice_id)


def email_receipt(
    engine: Engine,
    invoice_id: int,
    settings: Settings,
    email_client: EmailClient,
) -> ReceiptEmailResult:
    with engine.connect() as conn:
        invoice = fetch_invoice(conn, invoice_id)
    if invoice is None:
        raise NotFoundError("Invoice not found")

    outcome = try_send_receipt(engine, invoice_id, settings, email_client)
    return ReceiptEmailResult(
        id=invoice_id,
        receipt_no=invoice["receipt_no"] or invoice["invoice_no"],
        emailed=outcome.emailed,
        emailError=outcome.error,
    )
