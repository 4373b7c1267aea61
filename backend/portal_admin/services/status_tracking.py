"""
Read-receipt and report-approval status records.

One document per file per status type, keyed by the encoded file path:
    fileReadStatus/{status_document_id(filePath)}
    reportApprovals/{status_document_id(filePath)}

Writes are plain merge-sets with a server timestamp. Last write wins,
and writing the same status twice still leaves exactly one record.

Classification rule shared by every screen:
  • no record  → negative state (unread / pending)
  • a record   → positive state (read / the record's approval status),
                 carrying the record's timestamp
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from dataclasses import dataclass

from portal_admin.core.firebase import SERVER_TIMESTAMP, DocumentStore, decode_documents
from portal_admin.core.folders import status_document_id
from portal_admin.models.status import (
    APPROVAL_APPROVED,
    APPROVAL_PENDING,
    APPROVED_STATES,
    StatusRecord,
)
from portal_admin.schemas.rows import FileRow

logger = logging.getLogger(__name__)

READ_STATUS_COLLECTION = "fileReadStatus"
REPORT_APPROVALS_COLLECTION = "reportApprovals"


@dataclass(frozen=True, slots=True)
class StatusKind:
    """Which status collection a screen reads and how it names the states."""

    collection: str
    positive: str
    negative: str


READ_TRACKING = StatusKind(READ_STATUS_COLLECTION, positive="read", negative="unread")
REPORT_APPROVAL = StatusKind(
    REPORT_APPROVALS_COLLECTION,
    positive=APPROVAL_APPROVED,
    negative=APPROVAL_PENDING,
)


# ── Classification ──────────────────────────────────────────
def classify(
    kind: StatusKind,
    record: StatusRecord | None,
) -> tuple[str, datetime.datetime | None]:
    """Return (status, timestamp) for a file given its record, if any."""
    if record is None:
        return kind.negative, None
    if kind.collection == REPORT_APPROVALS_COLLECTION:
        return record.status or kind.positive, record.latest_at
    return kind.positive, record.latest_at


def build_status_map(records: list[StatusRecord]) -> dict[str, StatusRecord]:
    """
    Index records by file path.

    Records without a filePath cannot be matched to a file and are
    skipped. When legacy data holds several records for one path, the
    first one wins.
    """
    status_map: dict[str, StatusRecord] = {}
    for record in records:
        if not record.file_path:
            continue
        status_map.setdefault(record.file_path, record)
    return status_map


async def load_status_map(
    store: DocumentStore,
    kind: StatusKind,
) -> dict[str, StatusRecord]:
    """Read a whole status collection; on failure, log and return {}."""
    try:
        docs = await asyncio.to_thread(store.list_documents, kind.collection)
    except Exception:
        logger.exception("Failed to load %s", kind.collection)
        return {}
    return build_status_map(decode_documents(docs, StatusRecord.from_document, kind.collection))


# ── Mutations ───────────────────────────────────────────────
async def mark_file_read(
    store: DocumentStore,
    project_id: str,
    customer_id: str,
    file_path: str,
) -> str:
    """
    Record that a file has been read. Returns the status document id.

    Idempotent in record count: calling twice only refreshes readAt.
    """
    doc_id = status_document_id(file_path)
    await asyncio.to_thread(
        store.set_document,
        f"{READ_STATUS_COLLECTION}/{doc_id}",
        {
            "projectId": project_id,
            "customerId": customer_id,
            "filePath": file_path,
            "readAt": SERVER_TIMESTAMP,
        },
        True,
    )
    logger.info("Marked %s as read (project=%s)", file_path, project_id)
    return doc_id


async def set_report_approval(
    store: DocumentStore,
    project_id: str,
    customer_id: str,
    file_path: str,
    status: str = APPROVAL_APPROVED,
) -> str:
    """Write an approval decision for a report. Returns the document id."""
    doc_id = status_document_id(file_path)
    data = {
        "projectId": project_id,
        "customerId": customer_id,
        "filePath": file_path,
        "status": status,
    }
    if status in APPROVED_STATES:
        data["approvedAt"] = SERVER_TIMESTAMP
    await asyncio.to_thread(
        store.set_document,
        f"{REPORT_APPROVALS_COLLECTION}/{doc_id}",
        data,
        True,
    )
    logger.info("Report %s set to %s (project=%s)", file_path, status, project_id)
    return doc_id


async def register_report_upload(
    store: DocumentStore,
    project_id: str,
    customer_id: str,
    file_path: str,
    uploaded_at: datetime.datetime,
    working_days: int,
) -> str:
    """Open a pending approval for a freshly uploaded report."""
    doc_id = status_document_id(file_path)
    await asyncio.to_thread(
        store.set_document,
        f"{REPORT_APPROVALS_COLLECTION}/{doc_id}",
        {
            "projectId": project_id,
            "customerId": customer_id,
            "filePath": file_path,
            "status": APPROVAL_PENDING,
            "uploadedAt": uploaded_at,
            "autoApproveDate": add_working_days(uploaded_at, working_days),
        },
        True,
    )
    return doc_id


# ── Helpers ─────────────────────────────────────────────────
def add_working_days(start: datetime.datetime, days: int) -> datetime.datetime:
    """Advance by `days` weekdays, skipping Saturdays and Sundays."""
    result = start
    added = 0
    while added < days:
        result += datetime.timedelta(days=1)
        if result.weekday() < 5:
            added += 1
    return result


def _approval_priority(row: FileRow) -> int:
    return 2 if row.status in APPROVED_STATES else 1


def _row_time(row: FileRow) -> float:
    moment = row.status_at or row.uploaded_at
    return moment.timestamp() if moment else 0.0


def dedupe_approvals(rows: list[FileRow]) -> list[FileRow]:
    """
    Keep one approval row per (project, customer, file name).

    Approved/auto-approved beats pending; on equal priority the newer
    timestamp wins. First-seen order of the surviving keys is preserved.
    """
    best: dict[tuple[str, str, str], FileRow] = {}
    for row in rows:
        key = (row.project_id, row.customer_id, row.file_path.rsplit("/", 1)[-1])
        current = best.get(key)
        if current is None:
            best[key] = row
            continue
        if _approval_priority(row) > _approval_priority(current):
            best[key] = row
        elif (
            _approval_priority(row) == _approval_priority(current)
            and _row_time(row) > _row_time(current)
        ):
            best[key] = row
    return list(best.values())
