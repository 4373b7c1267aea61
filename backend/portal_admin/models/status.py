"""
Status record model — read receipts (`fileReadStatus`) and report
approvals (`reportApprovals`).

Both collections are keyed by the encoded file path, so a file has at most
one record per status type. Absence of a record is the default state.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field

from portal_admin.core.firebase import Document

APPROVAL_PENDING = "pending"
APPROVAL_APPROVED = "approved"
APPROVAL_AUTO_APPROVED = "auto-approved"
APPROVED_STATES = frozenset({APPROVAL_APPROVED, APPROVAL_AUTO_APPROVED})


class StatusRecord(BaseModel):
    """A read receipt or an approval decision for one file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    project_id: str = Field(default="", alias="projectId")
    customer_id: str = Field(default="", alias="customerId")
    file_path: str = Field(default="", alias="filePath")
    status: str | None = None
    read_at: datetime.datetime | None = Field(default=None, alias="readAt")
    approved_at: datetime.datetime | None = Field(default=None, alias="approvedAt")
    uploaded_at: datetime.datetime | None = Field(default=None, alias="uploadedAt")
    auto_approve_date: datetime.datetime | None = Field(default=None, alias="autoApproveDate")

    @classmethod
    def from_document(cls, doc: Document) -> StatusRecord:
        return cls.model_validate({**doc.data, "id": doc.id})

    @property
    def latest_at(self) -> datetime.datetime | None:
        """Most meaningful timestamp: read time, else approval, else upload."""
        return self.read_at or self.approved_at or self.uploaded_at
