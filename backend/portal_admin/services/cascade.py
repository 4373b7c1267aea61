"""
Cascading deletes for files, projects, and customers.

Order matters: children are removed before their parent so a failure
part-way leaves an orphaned child at worst, never a parent whose
children point at nothing. Blob-store failures are logged and skipped;
the metadata delete still goes ahead.
"""

from __future__ import annotations

import asyncio
import logging

from portal_admin.core.firebase import AuthDirectory, DocumentStore
from portal_admin.core.folders import all_folder_paths, file_document_path, files_collection_path
from portal_admin.models.file_record import FileRecord
from portal_admin.services.blob_storage import BlobStorage, BlobStorageError
from portal_admin.services.status_tracking import (
    READ_STATUS_COLLECTION,
    REPORT_APPROVALS_COLLECTION,
)

logger = logging.getLogger(__name__)

_STATUS_COLLECTIONS = (READ_STATUS_COLLECTION, REPORT_APPROVALS_COLLECTION)


async def _destroy_blob(blobs: BlobStorage, public_id: str) -> None:
    try:
        await blobs.destroy(public_id)
    except BlobStorageError:
        logger.warning("Could not delete blob %s; continuing", public_id, exc_info=True)


async def _delete_matching(
    store: DocumentStore,
    collection: str,
    filters: tuple[tuple[str, str, str], ...],
) -> int:
    docs = await asyncio.to_thread(store.query, collection, filters)
    await asyncio.gather(
        *(asyncio.to_thread(store.delete_document, f"{collection}/{d.id}") for d in docs)
    )
    return len(docs)


async def _sweep_project_assets(blobs: BlobStorage, project_id: str) -> None:
    """Remove assets left under the project prefix (placeholders, orphans)."""
    prefix = f"projects/{project_id}/"
    try:
        if await blobs.list_by_prefix(prefix):
            await blobs.delete_folder_assets(prefix)
    except BlobStorageError:
        logger.warning("Could not sweep assets under %s; continuing", prefix, exc_info=True)


# ── Files ───────────────────────────────────────────────────
async def delete_file_related_data(store: DocumentStore, project_id: str, file_path: str) -> int:
    """Remove read statuses and approvals of one file. Returns the count."""
    filters = (("projectId", "==", project_id), ("filePath", "==", file_path))
    counts = await asyncio.gather(
        *(_delete_matching(store, c, filters) for c in _STATUS_COLLECTIONS)
    )
    return sum(counts)


async def delete_file(
    store: DocumentStore,
    blobs: BlobStorage,
    project_id: str,
    folder_path: str,
    file_id: str,
) -> bool:
    """
    Delete one file: blob asset, metadata document, then status records.

    Returns False when the metadata document does not exist.
    """
    path = file_document_path(project_id, folder_path, file_id)
    doc = await asyncio.to_thread(store.get_document, path)
    if doc is None:
        return False

    public_id = FileRecord.public_id_of(doc)
    if public_id:
        await _destroy_blob(blobs, public_id)
    await asyncio.to_thread(store.delete_document, path)
    if public_id:
        await delete_file_related_data(store, project_id, public_id)

    logger.info("Deleted file %s from project %s (%s)", file_id, project_id, folder_path)
    return True


# ── Projects ────────────────────────────────────────────────
async def delete_project_cascade(
    store: DocumentStore,
    blobs: BlobStorage,
    project_id: str,
) -> int:
    """
    Delete every file of a project, its status records, then the project.

    Returns the number of file documents removed.
    """
    removed = 0
    for folder_path in all_folder_paths():
        collection = files_collection_path(project_id, folder_path)
        docs = await asyncio.to_thread(store.list_documents, collection)
        for doc in docs:
            public_id = FileRecord.public_id_of(doc)
            if public_id:
                await _destroy_blob(blobs, public_id)
            await asyncio.to_thread(store.delete_document, f"{collection}/{doc.id}")
            removed += 1

    for collection in _STATUS_COLLECTIONS:
        await _delete_matching(store, collection, (("projectId", "==", project_id),))

    await _sweep_project_assets(blobs, project_id)

    await asyncio.to_thread(store.delete_document, f"projects/{project_id}")
    logger.info("Deleted project %s with %d files", project_id, removed)
    return removed


# ── Customers ───────────────────────────────────────────────
async def delete_customer_cascade(
    store: DocumentStore,
    blobs: BlobStorage,
    auth_directory: AuthDirectory,
    uid: str,
    doc_id: str,
) -> int:
    """
    Delete a customer's projects, the customer document, then the account.

    A failure to delete the auth account is logged, not raised; the
    customer data is already gone at that point. Returns projects removed.
    """
    projects = await asyncio.to_thread(store.query, "projects", (("customerId", "==", uid),))
    for project in projects:
        await delete_project_cascade(store, blobs, project.id)

    await asyncio.to_thread(store.delete_document, f"customers/{doc_id}")

    try:
        await asyncio.to_thread(auth_directory.delete_user, uid)
    except Exception:
        logger.exception("Customer %s removed but the auth account could not be deleted", uid)

    logger.info("Deleted customer %s with %d projects", uid, len(projects))
    return len(projects)
