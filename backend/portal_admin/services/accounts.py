"""
Customer, project, and file-metadata writes.

Customers are two records: the auth account (uid) and a `customers`
document pointing at it. The account is created first; if the document
write then fails the account is removed again so no login exists without
a customer record.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from typing import Any

from portal_admin.core.config import settings
from portal_admin.core.firebase import AuthDirectory, DocumentStore
from portal_admin.core.folders import (
    all_folder_paths,
    files_collection_path,
    is_report_folder,
    storage_folder,
)
from portal_admin.models.customer import Customer
from portal_admin.models.project import Project
from portal_admin.schemas.customers import CustomerCreate, CustomerUpdate
from portal_admin.schemas.files import FileRegister
from portal_admin.schemas.projects import ProjectCreate, ProjectUpdate
from portal_admin.services.blob_storage import BlobStorage
from portal_admin.services.status_tracking import register_report_upload

logger = logging.getLogger(__name__)

# Project fields a PATCH may set back to null
_CLEARABLE_PROJECT_FIELDS = frozenset({"year", "thumbnail_url"})


def capitalise_name(name: str) -> str:
    """'aNNA meier ' → 'Anna meier'."""
    name = name.strip()
    return name[:1].upper() + name[1:].lower()


# ── Lookups ─────────────────────────────────────────────────
async def find_customer(store: DocumentStore, uid: str) -> Customer | None:
    docs = await asyncio.to_thread(store.query, "customers", (("uid", "==", uid),))
    return Customer.from_document(docs[0]) if docs else None


async def find_project(store: DocumentStore, project_id: str) -> Project | None:
    doc = await asyncio.to_thread(store.get_document, f"projects/{project_id}")
    return Project.from_document(doc) if doc else None


# ── Customers ───────────────────────────────────────────────
async def create_customer(
    store: DocumentStore,
    auth_directory: AuthDirectory,
    payload: CustomerCreate,
) -> tuple[str, str]:
    """
    Create the auth account and the customer document.

    Returns:
        (uid, customer document id)

    Raises:
        EmailAlreadyRegistered: If the email already has an account.
    """
    email = payload.email.strip()
    uid = await asyncio.to_thread(auth_directory.create_user, email, payload.password)

    data = {
        "uid": uid,
        "name": capitalise_name(payload.name),
        "mobileNumber": payload.mobile_number.strip(),
        "email": email,
        "customerNumber": payload.customer_number.strip(),
        "enabled": payload.enabled,
        "createdAt": datetime.datetime.now(datetime.timezone.utc),
    }
    try:
        doc_id = await asyncio.to_thread(store.add_document, "customers", data)
    except Exception:
        logger.exception("Customer document write failed; removing account %s", uid)
        await asyncio.to_thread(auth_directory.delete_user, uid)
        raise

    logger.info("Created customer %s (%s)", data["customerNumber"], uid)
    return uid, doc_id


async def update_customer(store: DocumentStore, customer: Customer, payload: CustomerUpdate) -> None:
    changes: dict[str, Any] = {}
    if payload.name is not None:
        changes["name"] = capitalise_name(payload.name)
    if payload.mobile_number is not None:
        changes["mobileNumber"] = payload.mobile_number.strip()
    if payload.enabled is not None:
        changes["enabled"] = payload.enabled
    if payload.can_view_all_projects is not None:
        changes["canViewAllProjects"] = payload.can_view_all_projects
    if not changes:
        return
    await asyncio.to_thread(store.update_document, f"customers/{customer.doc_id}", changes)
    logger.info("Updated customer %s: %s", customer.uid, sorted(changes))


# ── Projects ────────────────────────────────────────────────
async def create_project(
    store: DocumentStore,
    blobs: BlobStorage,
    payload: ProjectCreate,
) -> tuple[str, int]:
    """
    Add the project document and prepare its blob folders.

    Returns:
        (project id, number of folders created)
    """
    data: dict[str, Any] = {
        "name": payload.name.strip(),
        "customerId": payload.customer_id.strip(),
        "projectNumber": payload.project_number.strip(),
        "enabled": True,
    }
    if payload.year is not None:
        data["year"] = payload.year
    if payload.notification_email.strip():
        data["notificationEmail"] = payload.notification_email.strip()

    project_id = await asyncio.to_thread(store.add_document, "projects", data)
    created = await initialise_folders(blobs, project_id)
    logger.info("Created project %s (%s), %d folders ready", project_id, data["name"], created)
    return project_id, created


async def initialise_folders(blobs: BlobStorage, project_id: str) -> int:
    """Create every project folder in blob storage; failures are logged."""
    folders = [storage_folder(project_id, p) for p in all_folder_paths()]
    results = await asyncio.gather(
        *(blobs.create_folder(f) for f in folders),
        return_exceptions=True,
    )
    created = 0
    for folder, result in zip(folders, results):
        if isinstance(result, BaseException):
            logger.warning("Could not create folder %s: %s", folder, result)
        else:
            created += 1
    return created


async def update_project(store: DocumentStore, project_id: str, payload: ProjectUpdate) -> None:
    fields = {
        "name": "name",
        "year": "year",
        "project_number": "projectNumber",
        "notification_email": "notificationEmail",
        "enabled": "enabled",
        "thumbnail_url": "thumbnailUrl",
    }
    changes: dict[str, Any] = {}
    for attr, stored in fields.items():
        value = getattr(payload, attr)
        if value is not None:
            changes[stored] = value
        elif attr in _CLEARABLE_PROJECT_FIELDS and attr in payload.model_fields_set:
            # An explicit null clears the stored value
            changes[stored] = None
    for key in ("name", "projectNumber", "notificationEmail"):
        if key in changes:
            changes[key] = changes[key].strip()
    if not changes:
        return
    await asyncio.to_thread(store.update_document, f"projects/{project_id}", changes)
    logger.info("Updated project %s: %s", project_id, sorted(changes))


# ── Files ───────────────────────────────────────────────────
async def register_file(
    store: DocumentStore,
    project: Project,
    payload: FileRegister,
) -> tuple[str, bool]:
    """
    Store metadata for an uploaded blob. Reports also open an approval.

    Returns:
        (file document id, whether a pending approval was opened)
    """
    uploaded_at = datetime.datetime.now(datetime.timezone.utc)
    data: dict[str, Any] = {
        "fileName": payload.file_name,
        "cloudinaryPublicId": payload.public_id,
        "cloudinaryUrl": payload.url,
        "uploadedAt": uploaded_at,
    }
    if payload.file_size is not None:
        data["fileSize"] = payload.file_size
    if payload.file_type:
        data["fileType"] = payload.file_type

    file_id = await asyncio.to_thread(
        store.add_document,
        files_collection_path(project.id, payload.folder_path),
        data,
    )

    approval_pending = False
    if is_report_folder(payload.folder_path) and project.customer_id:
        await register_report_upload(
            store,
            project.id,
            project.customer_id,
            payload.public_id,
            uploaded_at,
            settings.AUTO_APPROVE_WORKING_DAYS,
        )
        approval_pending = True

    logger.info("Registered %s in %s/%s", payload.file_name, project.id, payload.folder_path)
    return file_id, approval_pending
