# app/models/customers.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from app.models.coerce import clean_optional, clean_str


class CustomerIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    email: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _trim_name(cls, value):
        return clean_str(value)

    @field_validator("email", "address", "phone", mode="before")
    @classmethod
    def _trim_optional(cls, value):
        return clean_optional(value)


class CustomerOut(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CustomerListResponse(BaseModel):
    ok: bool = True
    customers: List[CustomerOut]


class CustomerCreated(BaseModel):
    ok: bool = True
    id: int
