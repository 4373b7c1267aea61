"""
Pydantic v2 response schema for the dashboard overview.
"""

from __future__ import annotations

from pydantic import BaseModel

from portal_admin.schemas.rows import CustomerRow, FileRow, ProjectRow


class DashboardStats(BaseModel):
    total_projects: int
    total_customers: int
    total_unread_files: int
    approved_reports: int


class DashboardOut(BaseModel):
    """Headline counts plus the five most recent entries of each list."""

    stats: DashboardStats
    recent_customers: list[CustomerRow]
    recent_projects: list[ProjectRow]
    unread_files: list[FileRow]
