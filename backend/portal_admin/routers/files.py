"""
Files router — per-project file browser.

Endpoints:
  GET    /files               — project index (search, page)
  GET    /files/{project_id}  — files in one folder of a project
  POST   /files/{project_id}  — register metadata for an uploaded blob
  DELETE /files/{project_id}  — delete one file and its status records
"""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from portal_admin.auth.dependencies import Admin
from portal_admin.core.config import settings
from portal_admin.core.firebase import DocumentStore, get_store
from portal_admin.core.folders import default_files_folder_path, is_valid_folder_path, scope_folder
from portal_admin.schemas.files import FileRegister, FileRegistered, FolderFiles
from portal_admin.schemas.rows import Page, ProjectRow
from portal_admin.services import accounts, cascade
from portal_admin.services.aggregator import FolderAggregator, customer_index, project_index
from portal_admin.services.blob_storage import BlobStorage, get_blob_storage
from portal_admin.services.screens import load_customers, newest_upload_first
from portal_admin.routers.folders import folder_out
from portal_admin.routers.projects import project_page, require_project

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Files"])

Store = Annotated[DocumentStore, Depends(get_store)]
Blobs = Annotated[BlobStorage, Depends(get_blob_storage)]


def _require_folder(folder_path: str) -> str:
    if not is_valid_folder_path(folder_path):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown folder path: {folder_path}",
        )
    return folder_path


@router.get(
    "",
    response_model=Page[ProjectRow],
    summary="Project index for the file browser",
)
async def list_file_projects(
    _admin: Admin,
    store: Store,
    search: str = "",
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> Page[ProjectRow]:
    return await project_page(store, search, None, page, page_size)


@router.get(
    "/{project_id}",
    response_model=FolderFiles,
    summary="Files in one project folder",
    description=(
        "Newest upload first. Without folder_path the first visible "
        "folder is shown. Placeholder files are never listed. scope is the "
        "top-level folder the selection belongs to."
    ),
)
async def list_folder_files(
    project_id: str,
    _admin: Admin,
    store: Store,
    folder_path: str | None = None,
) -> FolderFiles:
    folder = _require_folder(folder_path or default_files_folder_path())
    project, customers = await asyncio.gather(
        require_project(store, project_id),
        load_customers(store),
    )
    files = await FolderAggregator(store).aggregate(
        [folder],
        project_index([project]),
        customer_index(customers),
        sort_key=newest_upload_first,
    )
    scope = scope_folder(folder)
    return FolderFiles(
        folder_path=folder,
        scope=folder_out(scope) if scope else None,
        files=files,
    )


@router.post(
    "/{project_id}",
    response_model=FileRegistered,
    status_code=status.HTTP_201_CREATED,
    summary="Register an uploaded file",
    description=(
        "Stores metadata for a blob the client already uploaded. Files in "
        "the reports tree also get a pending approval record."
    ),
)
async def register_file(
    project_id: str,
    payload: FileRegister,
    _admin: Admin,
    store: Store,
) -> FileRegistered:
    _require_folder(payload.folder_path)
    project = await require_project(store, project_id)
    try:
        file_id, pending = await accounts.register_file(store, project, payload)
    except Exception:
        logger.exception("Failed to register %s in project %s", payload.file_name, project_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save file. Please try again.",
        ) from None
    return FileRegistered(id=file_id, approval_pending=pending)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete one file",
    description="Deletes the blob, the metadata document, and the file's status records.",
)
async def delete_file(
    project_id: str,
    _admin: Admin,
    store: Store,
    blobs: Blobs,
    folder_path: str = Query(...),
    file_id: str = Query(..., min_length=1),
) -> Response:
    _require_folder(folder_path)
    try:
        deleted = await cascade.delete_file(store, blobs, project_id, folder_path, file_id)
    except Exception:
        logger.exception("Failed to delete file %s in project %s", file_id, project_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete file. Please try again.",
        ) from None
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
