# app/models/invoices.py

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from app.models.coerce import clean_optional, clean_str, to_float, to_money
from app.models.customers import CustomerIn, CustomerOut

DEFAULT_PROGRAMME = "lessons"
DEFAULT_PAID_METHOD = "Bank Transfer"


class LineItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    desc: str = ""
    qty: float = 0
    unit: float = 0
    amount: float = 0
    date: Optional[str] = None
    time: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _default_amount(cls, data: Any) -> Any:
        if isinstance(data, dict) and clean_str(data.get("amount")) == "":
            data = dict(data)
            data["amount"] = round(to_float(data.get("qty")) * to_float(data.get("unit")), 2)
        return data

    @field_validator("desc", mode="before")
    @classmethod
    def _trim_desc(cls, value):
        return clean_str(value)

    @field_validator("qty", "unit", "amount", mode="before")
    @classmethod
    def _number(cls, value):
        return to_float(value)

    @field_validator("date", "time", mode="before")
    @classmethod
    def _trim_optional(cls, value):
        return clean_optional(value)


def parse_items(raw: Any) -> List[LineItem]:
    if not isinstance(raw, list):
        return []
    return [LineItem.model_validate(item) for item in raw if isinstance(item, dict)]


def load_items(items_json: Optional[str]) -> List[LineItem]:
    """
    Deserialize a stored items_json column. Anything unreadable is an empty list.
    """
    try:
        raw = json.loads(items_json or "[]")
    except (TypeError, ValueError):
        return []
    return parse_items(raw)


def dump_items(items: List[LineItem]) -> str:
    return json.dumps([item.model_dump(exclude_none=True) for item in items])


class InvoiceIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    invoice_no: str = ""
    customer: CustomerIn
    programme: str = DEFAULT_PROGRAMME
    subtotal: Decimal = Decimal("0")
    travel_fee: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    deposit_amount: Decimal = Decimal("0")
    items: List[LineItem] = []
    notes: Optional[str] = None
    due_date: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _flat_customer(cls, data: Any) -> Any:
        # older clients send customer_name / customer_email / ... at the top level
        if isinstance(data, dict) and not isinstance(data.get("customer"), dict):
            data = dict(data)
            data["customer"] = {
                "name": data.get("customer_name"),
                "email": data.get("customer_email"),
                "address": data.get("customer_address"),
                "phone": data.get("customer_phone"),
            }
        return data

    @field_validator("invoice_no", mode="before")
    @classmethod
    def _trim_invoice_no(cls, value):
        return clean_str(value)

    @field_validator("programme", mode="before")
    @classmethod
    def _programme(cls, value):
        return clean_str(value) or DEFAULT_PROGRAMME

    @field_validator("subtotal", "travel_fee", "total", "deposit_amount", mode="before")
    @classmethod
    def _money(cls, value):
        return to_money(value)

    @field_validator("items", mode="before")
    @classmethod
    def _items(cls, value):
        return parse_items(value)

    @field_validator("notes", "due_date", mode="before")
    @classmethod
    def _trim_optional(cls, value):
        return clean_optional(value)


class PaymentIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    paid_at: Optional[str] = None
    paid_method: str = DEFAULT_PAID_METHOD
    paid_ref: str = ""

    @field_validator("paid_at", mode="before")
    @classmethod
    def _paid_at(cls, value):
        return clean_optional(value)

    @field_validator("paid_method", mode="before")
    @classmethod
    def _paid_method(cls, value):
        return clean_str(value) or DEFAULT_PAID_METHOD

    @field_validator("paid_ref", mode="before")
    @classmethod
    def _paid_ref(cls, value):
        return clean_str(value)


class InvoiceSummaryOut(BaseModel):
    id: int
    invoice_no: str
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    programme: str
    status: str
    total: float
    deposit_amount: float
    issued_at: Optional[datetime] = None
    due_date: Optional[str] = None
    paid_at: Optional[str] = None
    paid_method: Optional[str] = None
    receipt_no: Optional[str] = None
    emailed_receipt_at: Optional[str] = None

    @field_validator("total", "deposit_amount", mode="before")
    @classmethod
    def _money(cls, value):
        return to_float(value)


class InvoiceListResponse(BaseModel):
    ok: bool = True
    invoices: List[InvoiceSummaryOut]


class InvoiceOut(BaseModel):
    id: int
    invoice_no: str
    customer_id: Optional[int] = None
    customer: Optional[CustomerOut] = None
    programme: str
    status: str
    subtotal: float
    travel_fee: float
    total: float
    deposit_amount: float
    items: List[LineItem]
    notes: Optional[str] = None
    due_date: Optional[str] = None
    issued_at: Optional[datetime] = None
    paid_at: Optional[str] = None
    paid_method: Optional[str] = None
    paid_ref: Optional[str] = None
    receipt_no: Optional[str] = None
    emailed_receipt_at: Optional[str] = None

    @field_validator("subtotal", "travel_fee", "total", "deposit_amount", mode="before")
    @classmethod
    def _money(cls, value):
        return to_float(value)


class InvoiceDetailResponse(BaseModel):
    ok: bool = True
    invoice: InvoiceOut


class InvoiceSaved(BaseModel):
    ok: bool = True
    id: int
    customer_id: int
    invoice_no: str


class PaymentResult(BaseModel):
    ok: bool = True
    id: int
    receipt_no: str
    paid_at: str
    paid_method: str
    paid_ref: str
    emailed: bool
    emailError: Optional[str] = None


class UnpaidResult(BaseModel):
    ok: bool = True
    id: int


class ReceiptEmailResult(BaseModel):
    ok: bool = True
    id: int
    receipt_no: str
    emailed: bool
    emailError: Optional[str] = None


def invoice_status(row: Mapping[str, Any]) -> str:
    return "paid" if row.get("paid_at") else "unpaid"
