# app/db/queries.py

from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection, RowMapping

from app.db.schema import customers, invoices


def dialect_insert(conn: Connection, table):
    """
    Return the dialect-specific INSERT construct (it has on_conflict_do_update).
    """
    if conn.dialect.name == "postgresql":
        return postgresql.insert(table)
    return sqlite.insert(table)


def upsert_customer(conn: Connection, customer_row: Dict[str, Any]) -> int:
    """
    Insert a customer, or update the existing one that has the same email.

    customer_row: {"name": ..., "email": ... or None, "address": ..., "phone": ...}
    Without an email there is nothing to dedupe on, so a new row is inserted.
    """
    if not customer_row.get("email"):
        stmt = customers.insert().values(**customer_row).returning(customers.c.id)
        return conn.execute(stmt).scalar_one()

    stmt = dialect_insert(conn, customers).values(**customer_row)

    # On conflict by email, last write wins on the contact fields
    stmt = stmt.on_conflict_do_update(
        index_elements=[customers.c.email],
        set_={
            "name": stmt.excluded.name,
            "address": stmt.excluded.address,
            "phone": stmt.excluded.phone,
        },
    ).returning(customers.c.id)

    return conn.execute(stmt).scalar_one()


def upsert_invoice(conn: Connection, invoice_row: Dict[str, Any]) -> int:
    """
    Insert or update an invoice by invoice_no. Returns the (stable) invoice id.

    Payment and receipt columns are never part of invoice_row, so re-saving an
    invoice leaves its paid state alone.
    """
    stmt = dialect_insert(conn, invoices).values(**invoice_row)

    update_cols = {
        "customer_id": stmt.excluded.customer_id,
        "programme": stmt.excluded.programme,
        "subtotal": stmt.excluded.subtotal,
        "travel_fee": stmt.excluded.travel_fee,
        "total": stmt.excluded.total,
        "deposit_amount": stmt.excluded.deposit_amount,
        "items_json": stmt.excluded.items_json,
        "notes": stmt.excluded.notes,
        "due_date": stmt.excluded.due_date,
    }

    stmt = stmt.on_conflict_do_update(
        index_elements=[invoices.c.invoice_no],
        set_=update_cols,
    ).returning(invoices.c.id)

    return conn.execute(stmt).scalar_one()


def fetch_invoice(conn: Connection, invoice_id: int) -> Optional[RowMapping]:
    stmt = select(invoices).where(invoices.c.id == invoice_id)
    return conn.execute(stmt).mappings().first()


def fetch_customer(conn: Connection, customer_id: Optional[int]) -> Optional[RowMapping]:
    if customer_id is None:
        return None
    stmt = select(customers).where(customers.c.id == customer_id)
    return conn.execute(stmt).mappings().first()
