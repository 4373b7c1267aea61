"""
Folder-scoped file aggregation.

One aggregation pass:
  1. Build a collection path for every (project, folder) pair.
  2. Fetch all of them concurrently.
  3. Flatten, skipping folder placeholders.
  4. Decorate each file with project/customer display fields and its
     status, matched by storage public id.
  5. Sort by the screen's key.

FAILURE ISOLATION:
  A folder whose fetch fails is logged and treated as empty. A file
  document whose fields do not validate is logged and skipped. One broken
  folder or file never empties the whole screen.

No retries. Sibling fetches are never cancelled.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from portal_admin.core.firebase import DocumentStore, decode_documents
from portal_admin.core.folders import (
    PLACEHOLDER_FILE_NAME,
    files_collection_path,
    folder_display_name,
    storage_folder,
)
from portal_admin.models.customer import NOT_AVAILABLE, Customer
from portal_admin.models.file_record import FileRecord
from portal_admin.models.project import Project
from portal_admin.models.status import APPROVAL_PENDING, StatusRecord
from portal_admin.schemas.rows import FileRow
from portal_admin.services.status_tracking import StatusKind, classify

logger = logging.getLogger(__name__)

SortKey = Callable[[FileRow], Any]


@dataclass(frozen=True, slots=True)
class ProjectInfo:
    """Display fields of a project needed to decorate its files."""

    name: str
    customer_id: str


@dataclass(frozen=True, slots=True)
class CustomerInfo:
    """Display fields of a customer, keyed elsewhere by uid."""

    customer_number: str
    email: str
    name: str = ""


def project_index(projects: Iterable[Project]) -> dict[str, ProjectInfo]:
    """project id → ProjectInfo, in iteration order."""
    return {p.id: ProjectInfo(name=p.name, customer_id=p.customer_id) for p in projects}


def customer_index(customers: Iterable[Customer]) -> dict[str, CustomerInfo]:
    """customer uid → CustomerInfo. Customers without a uid are unreachable."""
    return {
        c.uid: CustomerInfo(customer_number=c.customer_number, email=c.email, name=c.name)
        for c in customers
        if c.uid
    }


def timestamp_of(moment: datetime.datetime | None) -> float:
    """Sort helper: None sorts as the epoch."""
    return moment.timestamp() if moment else 0.0


class FolderAggregator:
    """Runs aggregation passes against one document store."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def aggregate(
        self,
        folder_paths: Sequence[str],
        projects: Mapping[str, ProjectInfo],
        customers: Mapping[str, CustomerInfo],
        statuses: Mapping[str, StatusRecord] | None = None,
        status_kind: StatusKind | None = None,
        sort_key: SortKey | None = None,
        project_id: str | None = None,
    ) -> list[FileRow]:
        """
        Fetch and decorate every file under folder_paths for every project.

        Args:
            folder_paths: Logical folder paths to scan in each project.
            projects:     project id → ProjectInfo.
            customers:    customer uid → CustomerInfo.
            statuses:     file path → status record (ignored without status_kind).
            status_kind:  How to classify files; None leaves status unset.
            sort_key:     Row sort key; None keeps fetch order.
            project_id:   Restrict the pass to a single project.

        Returns:
            One row per file document found, no duplicates.
        """
        pairs = [
            (pid, folder)
            for pid in projects
            if project_id is None or pid == project_id
            for folder in folder_paths
        ]

        results = await asyncio.gather(
            *(self._fetch_folder(pid, folder) for pid, folder in pairs)
        )

        rows: list[FileRow] = []
        for (pid, folder), records in zip(pairs, results):
            project = projects[pid]
            customer = customers.get(project.customer_id)
            for record in records:
                if record.file_name == PLACEHOLDER_FILE_NAME:
                    continue
                rows.append(
                    _decorate(pid, folder, record, project, customer, statuses, status_kind)
                )

        if sort_key is not None:
            rows.sort(key=sort_key)

        logger.debug(
            "Aggregated %d files from %d folders across %d projects",
            len(rows), len(pairs), len({pid for pid, _ in pairs}),
        )
        return rows

    async def _fetch_folder(self, project_id: str, folder_path: str) -> list[FileRecord]:
        path = files_collection_path(project_id, folder_path)
        try:
            docs = await asyncio.to_thread(self._store.list_documents, path)
        except Exception:
            logger.warning("Could not load folder %s; treating it as empty", path, exc_info=True)
            return []
        return decode_documents(docs, FileRecord.from_document, path)


def _decorate(
    project_id: str,
    folder_path: str,
    record: FileRecord,
    project: ProjectInfo,
    customer: CustomerInfo | None,
    statuses: Mapping[str, StatusRecord] | None,
    status_kind: StatusKind | None,
) -> FileRow:
    file_path = record.public_id or f"{storage_folder(project_id, folder_path)}/{record.file_name}"

    status: str | None = None
    status_at: datetime.datetime | None = None
    auto_approve_at: datetime.datetime | None = None
    if status_kind is not None:
        status_record = (statuses or {}).get(file_path)
        status, status_at = classify(status_kind, status_record)
        if status == APPROVAL_PENDING and status_record is not None:
            auto_approve_at = status_record.auto_approve_date

    return FileRow(
        file_id=record.id,
        file_name=record.file_name or file_path.rsplit("/", 1)[-1],
        file_path=file_path,
        folder_path=folder_path,
        folder_name=folder_display_name(folder_path),
        project_id=project_id,
        project_name=project.name,
        customer_id=project.customer_id,
        customer_number=customer.customer_number if customer else NOT_AVAILABLE,
        customer_email=customer.email if customer else NOT_AVAILABLE,
        url=record.url,
        uploaded_at=record.uploaded_at,
        file_size=record.file_size,
        file_type=record.file_type,
        status=status,
        status_at=status_at,
        auto_approve_at=auto_approve_at,
    )
