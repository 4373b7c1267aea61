"""
File metadata model — one document under
files/projects/{projectId}/{folderPathId}/files.

The blob itself lives in Cloudinary; `public_id` is its storage path and
doubles as the key for read/approval status records.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field

from portal_admin.core.firebase import Document


class FileRecord(BaseModel):
    """Metadata for one uploaded file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    file_name: str = Field(default="", alias="fileName")
    public_id: str = Field(default="", alias="cloudinaryPublicId")
    url: str = Field(default="", alias="cloudinaryUrl")
    uploaded_at: datetime.datetime | None = Field(default=None, alias="uploadedAt")
    file_size: int | None = Field(default=None, alias="fileSize")
    file_type: str | None = Field(default=None, alias="fileType")

    @classmethod
    def from_document(cls, doc: Document) -> FileRecord:
        return cls.model_validate({**doc.data, "id": doc.id})

    @staticmethod
    def public_id_of(doc: Document) -> str:
        """Storage public id read from the raw fields, valid or not."""
        return str(doc.data.get("cloudinaryPublicId") or "")
