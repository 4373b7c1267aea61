"""
Projects router — project CRUD.

Endpoints:
  GET    /projects       — project rows joined with customer fields
  POST   /projects       — create project + blob folders
  GET    /projects/{id}  — one project row
  PATCH  /projects/{id}  — partial update
  DELETE /projects/{id}  — delete files, blobs, status records, project
"""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from portal_admin.auth.dependencies import Admin
from portal_admin.core.config import settings
from portal_admin.core.firebase import DocumentStore, get_store
from portal_admin.models.project import Project
from portal_admin.schemas.projects import ProjectCreate, ProjectCreated, ProjectUpdate
from portal_admin.schemas.rows import Page, ProjectRow
from portal_admin.services import accounts, cascade
from portal_admin.services.blob_storage import BlobStorage, get_blob_storage
from portal_admin.services.screens import (
    PROJECT_SEARCH_FIELDS,
    load_customers,
    load_projects,
    project_rows,
)
from portal_admin.services.table_view import RowFilter, filter_rows, paginate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Projects"])

Store = Annotated[DocumentStore, Depends(get_store)]
Blobs = Annotated[BlobStorage, Depends(get_blob_storage)]


async def require_project(store: DocumentStore, project_id: str) -> Project:
    project = await accounts.find_project(store, project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found.")
    return project


async def project_page(
    store: DocumentStore,
    search: str,
    customer_id: str | None,
    page: int,
    page_size: int,
) -> Page[ProjectRow]:
    """Shared by /projects and the /files project index."""
    projects, customers = await asyncio.gather(load_projects(store), load_customers(store))
    rows = filter_rows(
        project_rows(projects, customers),
        RowFilter(project_id=customer_id, search=search),
        PROJECT_SEARCH_FIELDS,
        project_field="customer_id",
    )
    return paginate(rows, page, page_size)


# ── List / create ───────────────────────────────────────────
@router.get(
    "",
    response_model=Page[ProjectRow],
    summary="List projects",
    description=(
        "Projects ordered by name with their customer's number, email and "
        "name. Optional customer filter; search matches project name, "
        "customer fields and year."
    ),
)
async def list_projects(
    _admin: Admin,
    store: Store,
    search: str = "",
    customer_id: str | None = None,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> Page[ProjectRow]:
    return await project_page(store, search, customer_id, page, page_size)


@router.post(
    "",
    response_model=ProjectCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
    description=(
        "Adds the project document and creates its fixed folder tree in "
        "blob storage. Folder failures are logged and do not fail the call."
    ),
)
async def create_project(
    payload: ProjectCreate,
    _admin: Admin,
    store: Store,
    blobs: Blobs,
) -> ProjectCreated:
    if await accounts.find_customer(store, payload.customer_id.strip()) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Customer not found.")
    try:
        project_id, created = await accounts.create_project(store, blobs, payload)
    except Exception:
        logger.exception("Failed to create project %s", payload.name)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create project. Please try again.",
        ) from None
    return ProjectCreated(id=project_id, folders_initialised=created)


# ── Detail / update / delete ────────────────────────────────
@router.get(
    "/{project_id}",
    response_model=ProjectRow,
    summary="Get one project",
)
async def get_project(project_id: str, _admin: Admin, store: Store) -> ProjectRow:
    project = await require_project(store, project_id)
    customer = await accounts.find_customer(store, project.customer_id) if project.customer_id else None
    return project_rows([project], [customer] if customer else [])[0]


@router.patch(
    "/{project_id}",
    response_model=ProjectRow,
    summary="Update a project",
)
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    _admin: Admin,
    store: Store,
) -> ProjectRow:
    await require_project(store, project_id)
    try:
        await accounts.update_project(store, project_id, payload)
    except Exception:
        logger.exception("Failed to update project %s", project_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update project. Please try again.",
        ) from None
    return await get_project(project_id, _admin, store)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a project and all its files",
)
async def delete_project(
    project_id: str,
    _admin: Admin,
    store: Store,
    blobs: Blobs,
) -> Response:
    await require_project(store, project_id)
    try:
        await cascade.delete_project_cascade(store, blobs, project_id)
    except Exception:
        logger.exception("Failed to delete project %s", project_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete project. Please try again.",
        ) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)
