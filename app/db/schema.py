# app/db/schema.py

from datetime import datetime, timezone

from sqlalchemy import (
    MetaData, Table, Column, Integer, String,
    Numeric, DateTime, ForeignKey, Text
)

metadata = MetaData()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


customers = Table(
    "customers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    # NULLs don't collide, so customers without an email are never merged
    Column("email", String, nullable=True, unique=True),
    Column("address", Text, nullable=True),
    Column("phone", String, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

invoices = Table(
    "invoices",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("invoice_no", Text, unique=True, nullable=False),
    Column("customer_id", Integer, ForeignKey("customers.id"), nullable=True),
    Column("programme", Text, nullable=False, default="lessons"),
    Column("subtotal", Numeric(12, 2), nullable=False, default=0),
    Column("travel_fee", Numeric(12, 2), nullable=False, default=0),
    Column("total", Numeric(12, 2), nullable=False, default=0),
    Column("deposit_amount", Numeric(12, 2), nullable=False, default=0),
    Column("items_json", Text, nullable=False, default="[]"),
    Column("notes", Text),
    Column("due_date", Text),
    Column("issued_at", DateTime(timezone=True), nullable=False, default=utcnow),
    # paid_at IS NULL <=> unpaid
    Column("paid_at", Text),
    Column("paid_method", Text),
    Column("paid_ref", Text),
    Column("receipt_no", Text),
    Column("emailed_receipt_at", Text),
)
