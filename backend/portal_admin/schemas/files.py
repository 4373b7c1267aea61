"""
Pydantic v2 schemas for file metadata and status writes.
"""

from __future__ import annotations

import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from portal_admin.schemas.folders import FolderOut
from portal_admin.schemas.rows import FileRow, Page


class FileRegister(BaseModel):
    """
    Metadata for a file the client already uploaded to blob storage.

    Registering is a separate write from the upload itself; a failed
    registration leaves an orphaned blob, never a dangling record.
    """

    model_config = ConfigDict(extra="forbid")

    folder_path: str = Field(..., examples=["03_Reports/Daily_Reports"])
    file_name: str = Field(..., min_length=1, max_length=255)
    public_id: str = Field(..., min_length=1, description="Cloudinary public id.")
    url: str = Field(..., min_length=1)
    file_size: int | None = Field(default=None, ge=0)
    file_type: str | None = None


class FileRegistered(BaseModel):
    id: str
    approval_pending: bool = False


class FolderFiles(BaseModel):
    """One folder of the file browser with the top-level folder it belongs to."""

    folder_path: str
    scope: FolderOut | None = Field(
        default=None,
        description="Visible top-level folder containing folder_path; its children are the tabs.",
    )
    files: list[FileRow]


class MarkRead(BaseModel):
    """Payload accepted by POST /tracking/read."""

    model_config = ConfigDict(extra="forbid")

    project_id: str = Field(..., min_length=1)
    file_path: str = Field(..., min_length=1)
    customer_id: str | None = Field(
        default=None,
        description="Defaults to the project's customer.",
    )


class ApprovalDecision(BaseModel):
    """Payload accepted by POST /approvals."""

    model_config = ConfigDict(extra="forbid")

    project_id: str = Field(..., min_length=1)
    file_path: str = Field(..., min_length=1)
    status: Literal["pending", "approved", "auto-approved"] = "approved"
    customer_id: str | None = None


class StatusWritten(BaseModel):
    document_id: str
    status: str


class ApprovalCounts(BaseModel):
    total: int
    pending: int
    approved: int


class ApprovalsPage(BaseModel):
    """Approval rows for one page plus counts over every filtered row."""

    counts: ApprovalCounts
    page: Page[FileRow]


class AuditLogRow(BaseModel):
    """Flattened audit trail entry with display-ready read time."""

    file_name: str
    file_path: str
    project_name: str
    project_id: str
    folder_path: str
    customer_number: str
    customer_email: str
    customer_id: str
    read_at: str
    read_at_raw: datetime.datetime | None = None
    is_read: bool

