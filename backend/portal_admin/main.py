"""
FastAPI application entrypoint.

Lifespan:
  • On startup: verify Firestore connectivity, start live screen sync.
  • On shutdown: stop every listener cleanly.

Routers:
  • /dashboard — headline counts
  • /customers, /projects — account management with cascade deletes
  • /files — per-project file browser
  • /tracking, /audit-logs, /customer-uploads — read tracking screens
  • /approvals — report approvals
  • /folders — fixed project folder structure
  • /health — shallow liveness probe
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from portal_admin.core.config import settings
from portal_admin.core.firebase import get_store
from portal_admin.routers.approvals import router as approvals_router
from portal_admin.routers.customers import router as customers_router
from portal_admin.routers.dashboard import router as dashboard_router
from portal_admin.routers.files import router as files_router
from portal_admin.routers.folders import router as folders_router
from portal_admin.routers.projects import router as projects_router
from portal_admin.routers.tracking import router as tracking_router
from portal_admin.services.live_sync import ScreenRegistry

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""

    # Startup — verify Firestore is reachable
    registry: ScreenRegistry | None = None
    try:
        store = get_store()
        await asyncio.to_thread(store.ping)
        logger.info("Firestore connection verified ✓")
    except Exception:
        logger.warning(
            "Could not reach Firestore on startup. "
            "The app will start, but requests will fail until it is available."
        )
    else:
        # Startup — attach listeners for the live screens
        registry = ScreenRegistry(store)
        await registry.start()
        app.state.screens = registry

    yield  # ← application runs here

    # Shutdown — detach listeners
    if registry is not None:
        await registry.stop()
        logger.info("Live sync stopped ✓")


# ── App ─────────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=(
        "Admin backend for the customer project portal — "
        "customers, projects, files, read tracking and report approvals."
    ),
    lifespan=lifespan,
)

# Mount routers
app.include_router(dashboard_router, prefix="/dashboard")
app.include_router(customers_router, prefix="/customers")
app.include_router(projects_router, prefix="/projects")
app.include_router(files_router, prefix="/files")
app.include_router(tracking_router)
app.include_router(approvals_router, prefix="/approvals")
app.include_router(folders_router, prefix="/folders")


# ── Health check ────────────────────────────────────────────
@app.get(
    "/health",
    tags=["System"],
    summary="Liveness probe",
)
async def health_check() -> dict[str, str]:
    """Shallow health check — confirms the process is alive."""
    return {"status": "healthy"}
