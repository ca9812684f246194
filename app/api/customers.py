# app/api/customers.py

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.engine import Engine

from app.api.deps import parse_limit, parse_payload, read_json
from app.core.errors import ValidationError
from app.db.engine import get_engine
from app.db.queries import upsert_customer
from app.db.schema import customers
from app.models.customers import (
    CustomerCreated,
    CustomerIn,
    CustomerListResponse,
    CustomerOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/customers", tags=["customers"])

DEFAULT_LIMIT = 25


@router.get("", response_model=CustomerListResponse)
def list_customers(
    q: Optional[str] = Query(None, description="Case-insensitive match on name or email"),
    limit: Optional[str] = Query(None),
    engine: Engine = Depends(get_engine),
) -> CustomerListResponse:
    """
    Return customers, newest first, optionally filtered by a search term.
    """
    stmt = (
        select(
            customers.c.id,
            customers.c.name,
            customers.c.email,
            customers.c.address,
            customers.c.phone,
            customers.c.created_at,
        )
        .order_by(customers.c.created_at.desc(), customers.c.id.desc())
        .limit(parse_limit(limit, DEFAULT_LIMIT))
    )

    term = (q or "").strip().lower()
    if term:
        stmt = stmt.where(
            or_(
                customers.c.name.icontains(term, autoescape=True),
                customers.c.email.icontains(term, autoescape=True),
            )
        )

    with engine.connect() as conn:
        rows = conn.execute(stmt).mappings().all()

    return CustomerListResponse(
        customers=[CustomerOut.model_validate(dict(row)) for row in rows]
    )


@router.post("", response_model=CustomerCreated)
def create_customer(
    body: Optional[Dict[str, Any]] = Depends(read_json),
    engine: Engine = Depends(get_engine),
) -> CustomerCreated:
    """
    Create a customer; with an email, update the customer that already has it.
    """
    if body is None:
        raise ValidationError(
            "Invalid JSON",
            extra={"hint": "Send JSON with {name,email,address,phone}"},
        )

    payload = parse_payload(CustomerIn, body)
    if not payload.name:
        raise ValidationError("Name is required")

    with engine.begin() as conn:
        customer_id = upsert_customer(conn, payload.model_dump())

    logger.info("Saved customer %s", customer_id)
    return CustomerCreated(id=customer_id)
