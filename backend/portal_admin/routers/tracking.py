"""
Tracking router — read receipts, audit trail, and customer uploads.

Endpoints:
  GET  /tracking          — read-tracking rows (project, status, search, page)
  POST /tracking/read     — mark one file as read
  GET  /audit-logs        — tracking rows flattened for the audit trail
  GET  /customer-uploads  — files customers uploaded, newest first

All three tables are served from the live screens when they are synced;
otherwise one aggregation pass runs per request.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from portal_admin.auth.dependencies import Admin
from portal_admin.core.config import settings
from portal_admin.core.firebase import DocumentStore, get_store
from portal_admin.schemas.files import AuditLogRow, MarkRead, StatusWritten
from portal_admin.schemas.rows import FileRow, Page
from portal_admin.services import accounts
from portal_admin.services.live_sync import ScreenRegistry, get_screen_registry
from portal_admin.services.screens import CUSTOMER_UPLOADS, TRACKING, audit_log_rows
from portal_admin.services.status_tracking import READ_TRACKING, mark_file_read
from portal_admin.services.table_view import TableView

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Tracking"])

Store = Annotated[DocumentStore, Depends(get_store)]
Screens = Annotated[ScreenRegistry, Depends(get_screen_registry)]
PageNumber = Annotated[int, Query(ge=1)]
PageSize = Annotated[int, Query(ge=1, le=settings.MAX_PAGE_SIZE)]


@router.get(
    "/tracking",
    response_model=Page[FileRow],
    summary="Read tracking",
    description=(
        "Every file outside the customer-uploads tree with its read status. "
        "Unread first, then most recently read. status is 'read' or 'unread'."
    ),
)
async def get_tracking(
    _admin: Admin,
    screens: Screens,
    project_id: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    search: str = "",
    page: PageNumber = 1,
    page_size: PageSize = settings.DEFAULT_PAGE_SIZE,
) -> Page[FileRow]:
    view = TableView(await screens.rows(TRACKING), TRACKING.search_fields, page_size)
    view.set_filter(project_id=project_id, status=status_filter, search=search)
    view.set_page(page)
    return view.current_page()


@router.post(
    "/tracking/read",
    response_model=StatusWritten,
    summary="Mark a file as read",
    description="Idempotent: marking twice keeps one record and refreshes readAt.",
)
async def mark_read(payload: MarkRead, _admin: Admin, store: Store) -> StatusWritten:
    customer_id = payload.customer_id
    if not customer_id:
        project = await accounts.find_project(store, payload.project_id)
        if project is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found.")
        customer_id = project.customer_id
    try:
        doc_id = await mark_file_read(store, payload.project_id, customer_id, payload.file_path)
    except Exception:
        logger.exception("Failed to mark %s as read", payload.file_path)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark file as read. Please try again.",
        ) from None
    return StatusWritten(document_id=doc_id, status=READ_TRACKING.positive)


@router.get(
    "/audit-logs",
    response_model=Page[AuditLogRow],
    summary="Audit trail",
    description=(
        "Same rows and order as /tracking, with display-ready read times. "
        "status is 'read' or 'unread'."
    ),
)
async def get_audit_logs(
    _admin: Admin,
    screens: Screens,
    project_id: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    search: str = "",
    page: PageNumber = 1,
    page_size: PageSize = settings.DEFAULT_PAGE_SIZE,
) -> Page[AuditLogRow]:
    view = TableView(await screens.rows(TRACKING), TRACKING.search_fields, page_size)
    view.set_filter(project_id=project_id, status=status_filter, search=search)
    view.set_page(page)
    current = view.current_page()
    return Page(
        items=audit_log_rows(current.items),
        total=current.total,
        page=current.page,
        page_size=current.page_size,
        total_pages=current.total_pages,
    )


@router.get(
    "/customer-uploads",
    response_model=Page[FileRow],
    summary="Customer uploads",
    description="Files in the customer-uploads tree of every project, newest first.",
)
async def get_customer_uploads(
    _admin: Admin,
    screens: Screens,
    project_id: str | None = None,
    search: str = "",
    page: PageNumber = 1,
    page_size: PageSize = settings.DEFAULT_PAGE_SIZE,
) -> Page[FileRow]:
    view = TableView(await screens.rows(CUSTOMER_UPLOADS), CUSTOMER_UPLOADS.search_fields, page_size)
    view.set_filter(project_id=project_id, search=search)
    view.set_page(page)
    return view.current_page()
