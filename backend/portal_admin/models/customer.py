"""
Customer document model — one row of the `customers` collection.

Customers are keyed by an internal document id but logically identified
by `uid` (the auth account). Projects reference customers by that uid.
"""

from __future__ import annotations

import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal_admin.core.firebase import Document

NOT_AVAILABLE = "N/A"


class Customer(BaseModel):
    """A customer account as stored in Firestore."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    doc_id: str
    uid: str = ""
    customer_number: str = Field(default=NOT_AVAILABLE, alias="customerNumber")
    email: str = NOT_AVAILABLE
    name: str = ""
    mobile_number: str = Field(default="", alias="mobileNumber")
    enabled: bool = True
    can_view_all_projects: bool = Field(default=False, alias="canViewAllProjects")
    created_at: datetime.datetime | None = Field(default=None, alias="createdAt")

    @field_validator("customer_number", "email", mode="before")
    @classmethod
    def _default_not_available(cls, value: Any) -> Any:
        return value or NOT_AVAILABLE

    @field_validator("name", "mobile_number", mode="before")
    @classmethod
    def _default_empty(cls, value: Any) -> Any:
        return value or ""

    @field_validator("enabled", mode="before")
    @classmethod
    def _enabled_unless_false(cls, value: Any) -> bool:
        # Older documents have no flag; only an explicit false disables
        return value is not False

    @classmethod
    def from_document(cls, doc: Document) -> Customer:
        return cls.model_validate({**doc.data, "doc_id": doc.id})

    def __repr__(self) -> str:
        return f"<Customer uid={self.uid!s:.8} number={self.customer_number!r}>"
