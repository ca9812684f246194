# app/api/invoices.py

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.engine import Engine, RowMapping

from app.api.deps import parse_limit, parse_payload, read_json
from app.core.config import Settings, get_settings
from app.core.errors import NotFoundError, ValidationError
from app.db.engine import get_engine
from app.db.queries import fetch_customer, fetch_invoice, upsert_customer, upsert_invoice
from app.db.schema import customers, invoices
from app.models.customers import CustomerOut
from app.models.invoices import (
    InvoiceDetailResponse,
    InvoiceIn,
    InvoiceListResponse,
    InvoiceOut,
    InvoiceSaved,
    InvoiceSummaryOut,
    PaymentIn,
    PaymentResult,
    ReceiptEmailResult,
    UnpaidResult,
    dump_items,
    invoice_status,
    load_items,
)
from app.services import payments
from app.services.email import EmailClient, get_email_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["invoices"])

DEFAULT_LIMIT = 30


def _row_to_invoice(row: RowMapping, customer: Optional[RowMapping]) -> InvoiceOut:
    return InvoiceOut(
        id=row["id"],
        invoice_no=row["invoice_no"],
        customer_id=row["customer_id"],
        customer=CustomerOut.model_validate(dict(customer)) if customer is not None else None,
        programme=row["programme"],
        status=invoice_status(row),
        subtotal=row["subtotal"],
        travel_fee=row["travel_fee"],
        total=row["total"],
        deposit_amount=row["deposit_amount"],
        items=load_items(row["items_json"]),
        notes=row["notes"],
        due_date=row["due_date"],
        issued_at=row["issued_at"],
        paid_at=row["paid_at"],
        paid_method=row["paid_method"],
        paid_ref=row["paid_ref"],
        receipt_no=row["receipt_no"],
        emailed_receipt_at=row["emailed_receipt_at"],
    )


@router.get("", response_model=InvoiceListResponse)
def list_invoices(
    status: Optional[str] = Query(None, description="paid | unpaid"),
    programme: Optional[str] = Query(None),
    customer_id: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    engine: Engine = Depends(get_engine),
) -> InvoiceListResponse:
    """
    Newest invoices first, with the customer's name and email.
    """
    stmt = (
        select(
            invoices.c.id,
            invoices.c.invoice_no,
            invoices.c.customer_id,
            customers.c.name.label("customer_name"),
            customers.c.email.label("customer_email"),
            invoices.c.programme,
            invoices.c.total,
            invoices.c.deposit_amount,
            invoices.c.issued_at,
            invoices.c.due_date,
            invoices.c.paid_at,
            invoices.c.paid_method,
            invoices.c.receipt_no,
            invoices.c.emailed_receipt_at,
        )
        .select_from(invoices.outerjoin(customers, customers.c.id == invoices.c.customer_id))
        .order_by(invoices.c.issued_at.desc(), invoices.c.id.desc())
        .limit(parse_limit(limit, DEFAULT_LIMIT))
    )

    status = (status or "").strip().lower()
    if status == "paid":
        stmt = stmt.where(invoices.c.paid_at.is_not(None))
    elif status == "unpaid":
        stmt = stmt.where(invoices.c.paid_at.is_(None))

    programme = (programme or "").strip()
    if programme:
        stmt = stmt.where(func.lower(invoices.c.programme) == programme.lower())

    customer_id = (customer_id or "").strip()
    if customer_id.isdigit():
        stmt = stmt.where(invoices.c.customer_id == int(customer_id))

    with engine.connect() as conn:
        rows = conn.execute(stmt).mappings().all()

    items: List[InvoiceSummaryOut] = [
        InvoiceSummaryOut(**dict(row), status=invoice_status(row)) for row in rows
    ]
    return InvoiceListResponse(invoices=items)


@router.get("/{invoice_id:int}", response_model=InvoiceDetailResponse)
def get_invoice(invoice_id: int, engine: Engine = Depends(get_engine)) -> InvoiceDetailResponse:
    with engine.connect() as conn:
        row = fetch_invoice(conn, invoice_id)
        if row is None:
            raise NotFoundError("Invoice not found")
        customer = fetch_customer(conn, row["customer_id"])

    return InvoiceDetailResponse(invoice=_row_to_invoice(row, customer))


@router.post("", response_model=InvoiceSaved)
def save_invoice(
    body: Optional[Dict[str, Any]] = Depends(read_json),
    engine: Engine = Depends(get_engine),
) -> InvoiceSaved:
    """
    Upsert the customer (by email) and the invoice (by invoice_no) together.
    """
    if body is None:
        raise ValidationError("Invalid JSON")

    payload = parse_payload(InvoiceIn, body)
    if not payload.invoice_no:
        raise ValidationError("invoice_no is required")
    if not payload.customer.name:
        raise ValidationError("Customer name is required")

    with engine.begin() as conn:
        customer_id = upsert_customer(conn, payload.customer.model_dump())
        invoice_id = upsert_invoice(
            conn,
            {
                "invoice_no": payload.invoice_no,
                "customer_id": customer_id,
                "programme": payload.programme,
                "subtotal": payload.subtotal,
                "travel_fee": payload.travel_fee,
                "total": payload.total,
                "deposit_amount": payload.deposit_amount,
                "items_json": dump_items(payload.items),
                "notes": payload.notes,
                "due_date": payload.due_date,
            },
        )

    logger.info("Saved invoice %s (id %s) for customer %s", payload.invoice_no, invoice_id, customer_id)
    return InvoiceSaved(id=invoice_id, customer_id=customer_id, invoice_no=payload.invoice_no)


@router.post("/{invoice_id:int}/mark-paid", response_model=PaymentResult)
def mark_paid(
    invoice_id: int,
    body: Optional[Dict[str, Any]] = Depends(read_json),
    engine: Engine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
    email_client: EmailClient = Depends(get_email_client),
) -> PaymentResult:
    payment = parse_payload(PaymentIn, body or {})
    return payments.mark_paid(engine, invoice_id, payment, settings, email_client)


@router.post("/{invoice_id:int}/mark-unpaid", response_model=UnpaidResult)
def mark_unpaid(invoice_id: int, engine: Engine = Depends(get_engine)) -> UnpaidResult:
    payments.mark_unpaid(engine, invoice_id)
    return UnpaidResult(id=invoice_id)


@router.post("/{invoice_id:int}/email-receipt", response_model=ReceiptEmailResult)
def email_receipt(
    invoice_id: int,
    engine: Engine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
    email_client: EmailClient = Depends(get_email_client),
) -> ReceiptEmailResult:
    """
    Send (or re-send) the receipt, whatever the paid state. Never changes payment fields.
    """
    return payments.email_receipt(engine, invoice_id, settings, email_client)
