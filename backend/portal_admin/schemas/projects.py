"""
Pydantic v2 request schemas for project writes.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ProjectCreate(BaseModel):
    """Payload accepted by POST /projects."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    customer_id: str = Field(..., min_length=1, description="Customer.uid of the owner.")
    project_number: str = Field(..., min_length=1, max_length=64)
    year: int | None = Field(default=None, ge=1900, le=2200)
    notification_email: str = Field(default="", max_length=255)


class ProjectUpdate(BaseModel):
    """Partial update for PATCH /projects/{id}.

    Omitted fields are left unchanged. year and thumbnail_url may be sent
    as null to clear them.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    year: int | None = Field(default=None, ge=1900, le=2200)
    project_number: str | None = Field(default=None, min_length=1, max_length=64)
    notification_email: str | None = Field(default=None, max_length=255)
    enabled: bool | None = None
    thumbnail_url: str | None = None


class ProjectCreated(BaseModel):
    id: str
    folders_initialised: int = Field(
        ...,
        description="Blob-store folders created; failures are logged, not fatal.",
    )
