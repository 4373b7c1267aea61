"""
FastAPI dependency for admin authentication.

Flow:
  1. Extract Bearer token from Authorization header
  2. Verify it as a Firebase ID token
  3. Look up admins/{uid}
  4. Return AdminContext (uid + email)

Security:
  • Generic 401 for ALL failure modes (missing, invalid, expired, not admin)
  • Raw tokens are NEVER logged
  • Admin membership is a document's existence, nothing else
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from portal_admin.auth.errors import AuthenticationError
from portal_admin.core.firebase import AuthDirectory, DocumentStore, get_auth_directory, get_store

logger = logging.getLogger(__name__)

ADMINS_COLLECTION = "admins"

# Generic 401 — same message for all auth failures to avoid leaking info
_AUTH_FAILED = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or missing credentials.",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True, slots=True)
class AdminContext:
    """Authenticated admin injected into every protected route.

    Attributes:
        uid:   Auth account id (also the admins/{uid} document id).
        email: Email claim of the token, if present.
    """

    uid: str
    email: str | None = None


async def authenticate(
    authorization: str | None,
    auth_directory: AuthDirectory,
    store: DocumentStore,
) -> AdminContext:
    """Resolve an Authorization header to an admin, or raise AuthenticationError."""
    if not authorization:
        raise AuthenticationError("missing Authorization header")

    parts = authorization.split(" ", maxsplit=1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthenticationError("non-Bearer scheme")

    try:
        claims = await asyncio.to_thread(auth_directory.verify_token, parts[1].strip())
    except Exception as exc:
        raise AuthenticationError(f"token rejected: {type(exc).__name__}") from exc

    uid = claims.get("uid") or claims.get("sub")
    if not uid:
        raise AuthenticationError("token has no uid")

    admin = await asyncio.to_thread(store.get_document, f"{ADMINS_COLLECTION}/{uid}")
    if admin is None:
        raise AuthenticationError(f"{uid} is not an admin")

    return AdminContext(uid=uid, email=claims.get("email"))


async def get_current_admin(
    authorization: str | None = Header(default=None, alias="Authorization"),
    auth_directory: AuthDirectory = Depends(get_auth_directory),
    store: DocumentStore = Depends(get_store),
) -> AdminContext:
    """
    FastAPI dependency — resolves a Bearer ID token to an AdminContext.

    Usage in routers:
        Admin = Annotated[AdminContext, Depends(get_current_admin)]
    """
    try:
        return await authenticate(authorization, auth_directory, store)
    except AuthenticationError as exc:
        logger.info("Admin authentication failed: %s", exc)
        raise _AUTH_FAILED from None


Admin = Annotated[AdminContext, Depends(get_current_admin)]
