"""
Screen definitions and the derived views built from them.

A file screen is just configuration for the aggregator: which folders to
scan, which status collection to join, and how to sort. The customer,
project, and dashboard views are joins over the base collections only.

Screens:
  • tracking          — every folder except 01_Customer_Uploads, read status,
                        unread first then newest read
  • customer_uploads  — 01_Customer_Uploads tree, newest upload first
  • approvals         — 03_Reports tree, approval status, approved first
                        then newest, one row per report
  • unread_overview   — every folder except 00_New_Not_Viewed_Yet_, read
                        status (feeds the dashboard)
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

from portal_admin.core.firebase import DocumentStore, decode_documents
from portal_admin.core.folders import (
    CUSTOMER_UPLOADS_FOLDER,
    NEW_NOT_VIEWED_FOLDER,
    REPORTS_FOLDER,
    all_folder_paths,
    in_tree,
)
from portal_admin.models.customer import NOT_AVAILABLE, Customer
from portal_admin.models.project import Project
from portal_admin.models.status import APPROVED_STATES, StatusRecord
from portal_admin.schemas.dashboard import DashboardOut, DashboardStats
from portal_admin.schemas.files import AuditLogRow
from portal_admin.schemas.rows import CustomerRow, FileRow, ProjectRow
from portal_admin.services.aggregator import (
    FolderAggregator,
    SortKey,
    customer_index,
    project_index,
    timestamp_of,
)
from portal_admin.services.status_tracking import (
    READ_TRACKING,
    REPORT_APPROVAL,
    StatusKind,
    dedupe_approvals,
    load_status_map,
)

logger = logging.getLogger(__name__)

PROJECTS_COLLECTION = "projects"
CUSTOMERS_COLLECTION = "customers"

FILE_SEARCH_FIELDS = ("customer_number", "customer_email", "project_name", "file_name")
CUSTOMER_SEARCH_FIELDS = ("name", "customer_number", "email")
PROJECT_SEARCH_FIELDS = ("name", "customer_number", "customer_email", "customer_name", "year")

_RECENT_LIMIT = 5
NOT_READ_YET = "Not read yet"
READ_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


# ── Sort keys ───────────────────────────────────────────────
def unread_first_then_recent(row: FileRow) -> tuple[bool, float]:
    return row.status != READ_TRACKING.negative, -timestamp_of(row.status_at)


def approved_first_then_recent(row: FileRow) -> tuple[bool, float]:
    return row.status not in APPROVED_STATES, -timestamp_of(row.status_at or row.uploaded_at)


def newest_upload_first(row: FileRow) -> float:
    return -timestamp_of(row.uploaded_at)


# ── File screens ────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class FileScreen:
    """Aggregation settings for one file table."""

    name: str
    folder_paths: tuple[str, ...]
    status_kind: StatusKind | None = None
    sort_key: SortKey | None = None
    search_fields: tuple[str, ...] = field(default=FILE_SEARCH_FIELDS)
    dedupe: bool = False


TRACKING = FileScreen(
    name="tracking",
    folder_paths=tuple(p for p in all_folder_paths() if not in_tree(p, CUSTOMER_UPLOADS_FOLDER)),
    status_kind=READ_TRACKING,
    sort_key=unread_first_then_recent,
)

CUSTOMER_UPLOADS = FileScreen(
    name="customer_uploads",
    folder_paths=tuple(p for p in all_folder_paths() if in_tree(p, CUSTOMER_UPLOADS_FOLDER)),
    sort_key=newest_upload_first,
)

APPROVALS = FileScreen(
    name="approvals",
    folder_paths=tuple(p for p in all_folder_paths() if in_tree(p, REPORTS_FOLDER)),
    status_kind=REPORT_APPROVAL,
    sort_key=approved_first_then_recent,
    dedupe=True,
)

UNREAD_OVERVIEW = FileScreen(
    name="unread_overview",
    folder_paths=tuple(p for p in all_folder_paths() if p != NEW_NOT_VIEWED_FOLDER),
    status_kind=READ_TRACKING,
)

FILE_SCREENS: tuple[FileScreen, ...] = (TRACKING, CUSTOMER_UPLOADS, APPROVALS, UNREAD_OVERVIEW)


# ── Base collections ────────────────────────────────────────
async def load_projects(store: DocumentStore) -> list[Project]:
    """All projects ordered by name; on failure, log and return []."""
    try:
        docs = await asyncio.to_thread(store.list_documents, PROJECTS_COLLECTION)
    except Exception:
        logger.exception("Failed to load projects")
        return []
    return sorted(
        decode_documents(docs, Project.from_document, PROJECTS_COLLECTION), key=lambda p: p.name
    )


async def load_customers(store: DocumentStore) -> list[Customer]:
    """All customers ordered by customer number; on failure, []."""
    try:
        docs = await asyncio.to_thread(store.list_documents, CUSTOMERS_COLLECTION)
    except Exception:
        logger.exception("Failed to load customers")
        return []
    return sorted(
        decode_documents(docs, Customer.from_document, CUSTOMERS_COLLECTION),
        key=lambda c: c.customer_number,
    )


async def run_file_screen(
    store: DocumentStore,
    screen: FileScreen,
    projects: Sequence[Project],
    customers: Sequence[Customer],
    statuses: dict[str, StatusRecord],
    project_id: str | None = None,
) -> list[FileRow]:
    """One aggregation pass for a screen over already-loaded collections."""
    rows = await FolderAggregator(store).aggregate(
        screen.folder_paths,
        project_index(projects),
        customer_index(customers),
        statuses=statuses,
        status_kind=screen.status_kind,
        sort_key=screen.sort_key,
        project_id=project_id,
    )
    if screen.dedupe:
        rows = dedupe_approvals(rows)
    return rows


async def load_file_rows(
    store: DocumentStore,
    screen: FileScreen,
    project_id: str | None = None,
) -> list[FileRow]:
    """One-shot pass: load the base collections, then aggregate."""
    projects, customers, statuses = await asyncio.gather(
        load_projects(store),
        load_customers(store),
        _load_statuses(store, screen.status_kind),
    )
    return await run_file_screen(store, screen, projects, customers, statuses, project_id)


async def _load_statuses(
    store: DocumentStore,
    kind: StatusKind | None,
) -> dict[str, StatusRecord]:
    if kind is None:
        return {}
    return await load_status_map(store, kind)


# ── Derived views ───────────────────────────────────────────
def customer_rows(customers: Sequence[Customer], projects: Sequence[Project]) -> list[CustomerRow]:
    """Customers (in given order) with their project counts."""
    counts = Counter(p.customer_id for p in projects if p.customer_id)
    return [
        CustomerRow(
            uid=c.uid,
            doc_id=c.doc_id,
            name=c.name,
            email=c.email,
            customer_number=c.customer_number,
            mobile_number=c.mobile_number,
            enabled=c.enabled,
            can_view_all_projects=c.can_view_all_projects,
            project_count=counts.get(c.uid, 0),
        )
        for c in customers
    ]


def project_rows(projects: Sequence[Project], customers: Sequence[Customer]) -> list[ProjectRow]:
    """Projects (in given order) joined with customer display fields."""
    by_uid = {c.uid: c for c in customers if c.uid}
    rows: list[ProjectRow] = []
    for p in projects:
        customer = by_uid.get(p.customer_id)
        rows.append(
            ProjectRow(
                id=p.id,
                name=p.name,
                year=p.year,
                project_number=p.project_number,
                customer_id=p.customer_id,
                customer_number=customer.customer_number if customer else None,
                customer_email=customer.email if customer else None,
                customer_name=customer.name if customer else None,
                notification_email=p.notification_email,
                enabled=p.enabled,
                thumbnail_url=p.thumbnail_url,
            )
        )
    return rows


def build_dashboard(
    customers: Sequence[Customer],
    projects: Sequence[Project],
    unread_overview: Sequence[FileRow],
    approvals: dict[str, StatusRecord],
) -> DashboardOut:
    """Headline counts plus the first entries of each list."""
    unread = [r for r in unread_overview if r.status == READ_TRACKING.negative]
    return DashboardOut(
        stats=DashboardStats(
            total_projects=len(projects),
            total_customers=len(customers),
            total_unread_files=len(unread),
            approved_reports=len(approvals),
        ),
        recent_customers=customer_rows(customers, projects)[:_RECENT_LIMIT],
        recent_projects=project_rows(projects, customers)[:_RECENT_LIMIT],
        unread_files=unread[:_RECENT_LIMIT],
    )


def audit_log_rows(tracking_rows: Sequence[FileRow]) -> list[AuditLogRow]:
    """Tracking rows flattened for the audit trail, display-ready."""
    return [
        AuditLogRow(
            file_name=row.file_name or NOT_AVAILABLE,
            file_path=row.file_path,
            project_name=row.project_name or NOT_AVAILABLE,
            project_id=row.project_id,
            folder_path=row.folder_path,
            customer_number=row.customer_number or NOT_AVAILABLE,
            customer_email=row.customer_email or NOT_AVAILABLE,
            customer_id=row.customer_id or NOT_AVAILABLE,
            read_at=row.status_at.strftime(READ_AT_FORMAT) if row.status_at else NOT_READ_YET,
            read_at_raw=row.status_at,
            is_read=row.status == READ_TRACKING.positive,
        )
        for row in tracking_rows
    ]
