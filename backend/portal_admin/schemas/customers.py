"""
Pydantic v2 request schemas for customer writes.

extra="forbid" rejects unknown fields with 422 instead of silently
storing them on the customer document.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CustomerCreate(BaseModel):
    """Payload accepted by POST /customers."""

    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., min_length=3, max_length=255, examples=["kunde@example.com"])
    password: str = Field(..., min_length=6, max_length=128)
    customer_number: str = Field(..., min_length=1, max_length=64, examples=["K-1042"])
    name: str = Field(default="", max_length=255)
    mobile_number: str = Field(default="", max_length=64)
    enabled: bool = True


class CustomerUpdate(BaseModel):
    """Partial update for PATCH /customers/{uid}; omitted fields stay."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    mobile_number: str | None = Field(default=None, max_length=64)
    enabled: bool | None = None
    can_view_all_projects: bool | None = None


class CustomerCreated(BaseModel):
    """Response after the auth account and customer document exist."""

    uid: str
    doc_id: str
