"""
Dashboard router — headline counts and the first entries of each list.

GET /dashboard
  • total projects and customers
  • unread files outside the inbox folder
  • report approval records
  • first five customers (by number), projects (by name), unread files
"""

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends

from portal_admin.auth.dependencies import Admin
from portal_admin.core.firebase import DocumentStore, get_store
from portal_admin.schemas.dashboard import DashboardOut
from portal_admin.services.live_sync import ScreenRegistry, get_screen_registry
from portal_admin.services.screens import (
    UNREAD_OVERVIEW,
    build_dashboard,
    load_customers,
    load_projects,
)
from portal_admin.services.status_tracking import REPORT_APPROVAL, load_status_map

router = APIRouter(tags=["Dashboard"])

Store = Annotated[DocumentStore, Depends(get_store)]
Screens = Annotated[ScreenRegistry, Depends(get_screen_registry)]


@router.get(
    "",
    response_model=DashboardOut,
    summary="Dashboard overview",
    description="Every section degrades to empty on read failure; the call itself never fails.",
)
async def get_dashboard(_admin: Admin, store: Store, screens: Screens) -> DashboardOut:
    customers, projects, unread_overview, approvals = await asyncio.gather(
        load_customers(store),
        load_projects(store),
        screens.rows(UNREAD_OVERVIEW),
        load_status_map(store, REPORT_APPROVAL),
    )
    return build_dashboard(customers, projects, unread_overview, approvals)
