"""
Approvals router — report approval overview and decisions.

Endpoints:
  GET  /approvals  — one row per report with its approval status + counts
  POST /approvals  — approve (or reset) a report
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from portal_admin.auth.dependencies import Admin
from portal_admin.core.config import settings
from portal_admin.core.firebase import DocumentStore, get_store
from portal_admin.models.status import APPROVAL_PENDING, APPROVED_STATES
from portal_admin.schemas.files import ApprovalCounts, ApprovalDecision, ApprovalsPage, StatusWritten
from portal_admin.services import accounts
from portal_admin.services.live_sync import ScreenRegistry, get_screen_registry
from portal_admin.services.screens import APPROVALS
from portal_admin.services.status_tracking import set_report_approval
from portal_admin.services.table_view import TableView

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Approvals"])

Store = Annotated[DocumentStore, Depends(get_store)]
Screens = Annotated[ScreenRegistry, Depends(get_screen_registry)]


@router.get(
    "",
    response_model=ApprovalsPage,
    summary="Report approvals",
    description=(
        "Reports from every project, approved first then newest. Counts "
        "cover all rows matching the project and search filters."
    ),
)
async def list_approvals(
    _admin: Admin,
    screens: Screens,
    project_id: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    search: str = "",
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> ApprovalsPage:
    view = TableView(await screens.rows(APPROVALS), APPROVALS.search_fields, page_size)
    view.set_filter(project_id=project_id, search=search)
    unfiltered_by_status = view.filtered()

    view.set_filter(status=status_filter)
    view.set_page(page)

    return ApprovalsPage(
        counts=ApprovalCounts(
            total=len(unfiltered_by_status),
            pending=sum(1 for r in unfiltered_by_status if r.status == APPROVAL_PENDING),
            approved=sum(1 for r in unfiltered_by_status if r.status in APPROVED_STATES),
        ),
        page=view.current_page().model_dump(),
    )


@router.post(
    "",
    response_model=StatusWritten,
    summary="Record an approval decision",
)
async def decide_approval(payload: ApprovalDecision, _admin: Admin, store: Store) -> StatusWritten:
    customer_id = payload.customer_id
    if not customer_id:
        project = await accounts.find_project(store, payload.project_id)
        if project is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found.")
        customer_id = project.customer_id
    try:
        doc_id = await set_report_approval(
            store, payload.project_id, customer_id, payload.file_path, payload.status
        )
    except Exception:
        logger.exception("Failed to set approval for %s", payload.file_path)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update approval. Please try again.",
        ) from None
    return StatusWritten(document_id=doc_id, status=payload.status)
