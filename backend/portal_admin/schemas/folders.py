"""
Pydantic v2 response schema for the fixed folder tree.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class FolderOut(BaseModel):
    """One folder of the project tree with its flags."""

    name: str
    path: str
    display_name: str
    admin_only: bool = False
    visible_in_editor: bool = Field(
        default=True,
        description="False for the inbox and customer-uploads trees.",
    )
    children: list[FolderOut] = Field(default_factory=list)
