"""
Cloudinary client for file blobs.

Uses the Upload API (signed destroy) and the Admin API (folders,
resources by prefix) directly over httpx. Uploads themselves happen
client-side; the backend only cleans up and prepares folders.

Configuration:
  CLOUDINARY_CLOUD_NAME / CLOUDINARY_API_KEY / CLOUDINARY_API_SECRET,
  server-side only.

Assets can be stored as "image" or "raw" resources depending on their
type. Destroy tries the image endpoint first and falls back to raw when
the asset is not found there.
"""

from __future__ import annotations

import hashlib
import logging
import time
from functools import lru_cache
from typing import Any

import httpx

from portal_admin.core.config import settings

logger = logging.getLogger(__name__)

_API_BASE_URL = "https://api.cloudinary.com/v1_1"
_RESOURCE_TYPES = ("image", "raw")
_MAX_RESULTS = 500


class BlobStorageError(RuntimeError):
    """Raised when the blob store is unconfigured or returns an error."""


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """SHA-1 signature over the sorted params with the secret appended."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode()).hexdigest()


class BlobStorage:
    """Async Cloudinary client. One instance per process."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._cloud_name and self._api_key and self._api_secret)

    def _require_config(self) -> None:
        if not self.configured:
            raise BlobStorageError("Cloudinary credentials are not configured")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{_API_BASE_URL}/{self._cloud_name}",
            auth=(self._api_key, self._api_secret),
            timeout=30.0,
            transport=self._transport,
        )

    # ── Single assets ───────────────────────────────────────
    async def destroy(self, public_id: str) -> bool:
        """
        Delete one asset by public id.

        Returns:
            True if an asset was deleted, False if none was found under
            either resource type.

        Raises:
            BlobStorageError: If unconfigured or the API rejects the call.
        """
        self._require_config()
        async with self._client() as client:
            for resource_type in _RESOURCE_TYPES:
                params = {"public_id": public_id, "timestamp": int(time.time())}
                form = {
                    **params,
                    "api_key": self._api_key,
                    "signature": sign_params(params, self._api_secret),
                }
                response = await client.post(f"/{resource_type}/destroy", data=form)
                if response.status_code == 404:
                    continue
                _raise_for_error(response, f"destroy {public_id}")
                if response.json().get("result") == "ok":
                    logger.info("Deleted %s asset %s", resource_type, public_id)
                    return True
        logger.info("No asset found for %s", public_id)
        return False

    # ── Folders ─────────────────────────────────────────────
    async def create_folder(self, folder: str) -> None:
        """Create a folder (idempotent on the Cloudinary side)."""
        self._require_config()
        async with self._client() as client:
            response = await client.post(f"/folders/{folder}")
        _raise_for_error(response, f"create folder {folder}")

    async def list_by_prefix(self, prefix: str) -> list[str]:
        """Public ids of every image and raw asset under prefix."""
        self._require_config()
        public_ids: list[str] = []
        async with self._client() as client:
            for resource_type in _RESOURCE_TYPES:
                cursor: str | None = None
                while True:
                    params: dict[str, Any] = {"prefix": prefix, "max_results": _MAX_RESULTS}
                    if cursor:
                        params["next_cursor"] = cursor
                    response = await client.get(f"/resources/{resource_type}/upload", params=params)
                    _raise_for_error(response, f"list {prefix}")
                    body = response.json()
                    public_ids.extend(r["public_id"] for r in body.get("resources", []))
                    cursor = body.get("next_cursor")
                    if not cursor:
                        break
        return public_ids

    async def delete_folder_assets(self, prefix: str) -> int:
        """Delete every asset under prefix; returns how many were deleted."""
        self._require_config()
        deleted = 0
        async with self._client() as client:
            for resource_type in _RESOURCE_TYPES:
                response = await client.delete(
                    f"/resources/{resource_type}/upload",
                    params={"prefix": prefix},
                )
                _raise_for_error(response, f"delete {prefix}")
                deleted += sum(
                    1 for result in response.json().get("deleted", {}).values()
                    if result == "deleted"
                )
        logger.info("Deleted %d assets under %s", deleted, prefix)
        return deleted


def _raise_for_error(response: httpx.Response, action: str) -> None:
    if response.status_code >= 400:
        logger.error(
            "Cloudinary error during %s: status=%d body=%s",
            action,
            response.status_code,
            response.text[:500],
        )
        raise BlobStorageError(f"Cloudinary could not {action}")


@lru_cache(maxsize=1)
def get_blob_storage() -> BlobStorage:
    """Process-wide BlobStorage (FastAPI dependency)."""
    return BlobStorage(
        settings.CLOUDINARY_CLOUD_NAME,
        settings.CLOUDINARY_API_KEY,
        settings.CLOUDINARY_API_SECRET,
    )
