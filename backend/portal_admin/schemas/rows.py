"""
Pydantic v2 row view-models served by the table screens.

Rows are flat: every foreign-key join (project → customer, file → status)
has already been resolved by the aggregation pass, so the client renders
them without further lookups.
"""

from __future__ import annotations

import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

RowT = TypeVar("RowT")


class FileRow(BaseModel):
    """One file decorated with its project, customer, and status."""

    file_id: str
    file_name: str
    file_path: str = Field(..., description="Storage public id; key of status records.")
    folder_path: str
    folder_name: str
    project_id: str
    project_name: str
    customer_id: str
    customer_number: str
    customer_email: str
    url: str = ""
    uploaded_at: datetime.datetime | None = None
    file_size: int | None = None
    file_type: str | None = None
    status: str | None = Field(
        default=None,
        description="read/unread or pending/approved/auto-approved; null when untracked.",
    )
    status_at: datetime.datetime | None = None
    auto_approve_at: datetime.datetime | None = Field(
        default=None,
        description="When a pending report is approved automatically.",
    )


class CustomerRow(BaseModel):
    """Customer with the number of projects that reference it."""

    uid: str
    doc_id: str
    name: str
    email: str
    customer_number: str
    mobile_number: str = ""
    enabled: bool = True
    can_view_all_projects: bool = False
    project_count: int = 0


class ProjectRow(BaseModel):
    """Project joined with its customer's display fields."""

    id: str
    name: str
    year: int | None = None
    project_number: str = ""
    customer_id: str
    customer_number: str | None = None
    customer_email: str | None = None
    customer_name: str | None = None
    notification_email: str = ""
    enabled: bool = True
    thumbnail_url: str | None = None


class Page(BaseModel, Generic[RowT]):
    """One page of a filtered table."""

    items: list[RowT]
    total: int = Field(..., description="Rows matching the filters (all pages).")
    page: int
    page_size: int
    total_pages: int
