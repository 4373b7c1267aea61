"""
Project document model — one row of the `projects` collection.

A project belongs to one customer (customerId → Customer.uid) and owns the
fixed folder tree of uploaded files. The reference is not enforced.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal_admin.core.firebase import Document


class Project(BaseModel):
    """One customer project as stored in Firestore."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    customer_id: str = Field(default="", alias="customerId")
    year: int | None = None
    project_number: str = Field(default="", alias="projectNumber")
    notification_email: str = Field(default="", alias="notificationEmail")
    enabled: bool = True
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")

    @field_validator("name", "customer_id", "project_number", "notification_email", mode="before")
    @classmethod
    def _default_empty(cls, value: Any) -> Any:
        return value or ""

    @field_validator("enabled", mode="before")
    @classmethod
    def _enabled_unless_false(cls, value: Any) -> bool:
        return value is not False

    @classmethod
    def from_document(cls, doc: Document) -> Project:
        return cls.model_validate({**doc.data, "id": doc.id})

    def __repr__(self) -> str:
        return f"<Project id={self.id!s:.8} name={self.name!r}>"
