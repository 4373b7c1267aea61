"""
Firebase app, Firestore document store, and auth directory.

Rules enforced:
  • Every Firestore call goes through DocumentStore (routers never touch
    the SDK client directly).
  • The SDK client is synchronous; async callers wrap calls with
    asyncio.to_thread so the event loop never blocks.
  • Paths are slash-joined strings; an odd number of segments is a
    collection, an even number is a document.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, TypeVar

import firebase_admin
from firebase_admin import auth, credentials, firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import ValidationError

from portal_admin.core.config import settings

logger = logging.getLogger(__name__)

# Sentinel replaced by the server's commit time on write
SERVER_TIMESTAMP = firestore.SERVER_TIMESTAMP


@dataclass(frozen=True, slots=True)
class Document:
    """One document read from a collection.

    Attributes:
        id:   Document id (last path segment).
        data: Field map exactly as stored (camelCase keys).
    """

    id: str
    data: dict[str, Any]


SnapshotCallback = Callable[[list[Document]], None]
Unsubscribe = Callable[[], None]
DecodedT = TypeVar("DecodedT")


def decode_documents(
    docs: Sequence[Document],
    decode: Callable[[Document], DecodedT],
    kind: str,
) -> list[DecodedT]:
    """Decode each document, skipping (and logging) ones whose fields do not validate."""
    decoded: list[DecodedT] = []
    for doc in docs:
        try:
            decoded.append(decode(doc))
        except ValidationError as exc:
            logger.warning(
                "Skipping malformed %s document %s: %d field error(s)",
                kind, doc.id, exc.error_count(),
            )
    return decoded


# ── App ─────────────────────────────────────────────────────
def get_firebase_app() -> firebase_admin.App:
    """Initialise the default Firebase app once and return it."""
    if firebase_admin._apps:
        return firebase_admin.get_app()

    project_id = settings.FIREBASE_PROJECT_ID.strip() or None
    options = {"projectId": project_id} if project_id else {}

    if settings.FIREBASE_CREDENTIALS_JSON:
        creds_dict = json.loads(settings.FIREBASE_CREDENTIALS_JSON)
        if not project_id and creds_dict.get("project_id"):
            options = {"projectId": creds_dict["project_id"]}
        cred = credentials.Certificate(creds_dict)
    elif settings.FIREBASE_CREDENTIALS_PATH:
        cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
    else:
        # Application Default Credentials (Cloud Run service account)
        cred = credentials.ApplicationDefault()

    app = firebase_admin.initialize_app(cred, options)
    logger.info("Firebase app initialised (project=%s)", options.get("projectId"))
    return app


# ── Document store ──────────────────────────────────────────
class DocumentStore:
    """Thin gateway over the Firestore client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def list_documents(self, collection_path: str) -> list[Document]:
        snapshots = self._client.collection(collection_path).stream()
        return [_to_document(s) for s in snapshots]

    def get_document(self, document_path: str) -> Document | None:
        snapshot = self._client.document(document_path).get()
        if not snapshot.exists:
            return None
        return _to_document(snapshot)

    def query(
        self,
        collection_path: str,
        filters: Sequence[tuple[str, str, Any]] = (),
        order_by: str | None = None,
    ) -> list[Document]:
        """Run an equality/range query; filters are (field, op, value)."""
        query = self._client.collection(collection_path)
        for field, op, value in filters:
            query = query.where(filter=FieldFilter(field, op, value))
        if order_by:
            query = query.order_by(order_by)
        return [_to_document(s) for s in query.stream()]

    def add_document(self, collection_path: str, data: dict[str, Any]) -> str:
        """Add a document with a generated id and return that id."""
        _, ref = self._client.collection(collection_path).add(data)
        return ref.id

    def set_document(
        self,
        document_path: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        self._client.document(document_path).set(data, merge=merge)

    def update_document(self, document_path: str, data: dict[str, Any]) -> None:
        self._client.document(document_path).update(data)

    def delete_document(self, document_path: str) -> None:
        self._client.document(document_path).delete()

    def watch(self, collection_path: str, on_change: SnapshotCallback) -> Unsubscribe:
        """
        Open a live listener on a collection.

        on_change receives the full document list on every snapshot and
        runs on an SDK-owned thread. Returns the unsubscribe callable.
        """

        def _on_snapshot(snapshots, _changes, _read_time) -> None:
            try:
                on_change([_to_document(s) for s in snapshots])
            except Exception:
                logger.exception("Snapshot handler failed for %s", collection_path)

        watch = self._client.collection(collection_path).on_snapshot(_on_snapshot)
        return watch.unsubscribe

    def ping(self) -> None:
        """Cheap round trip; raises if the database is unreachable."""
        list(self._client.collection("projects").limit(1).stream())


def _to_document(snapshot: Any) -> Document:
    return Document(id=snapshot.id, data=snapshot.to_dict() or {})


# ── Auth directory ──────────────────────────────────────────
class AuthDirectory:
    """User-account operations against the hosted auth service."""

    def __init__(self, app: firebase_admin.App) -> None:
        self._app = app

    def verify_token(self, id_token: str) -> dict[str, Any]:
        """Verify a Firebase ID token and return its decoded claims."""
        return auth.verify_id_token(id_token, app=self._app)

    def create_user(self, email: str, password: str) -> str:
        """Create an account and return the new uid.

        Raises:
            EmailAlreadyRegistered: If the email is taken.
        """
        try:
            record = auth.create_user(
                email=email,
                password=password,
                email_verified=False,
                app=self._app,
            )
        except auth.EmailAlreadyExistsError as exc:
            raise EmailAlreadyRegistered(email) from exc
        return record.uid

    def get_uid_by_email(self, email: str) -> str:
        return auth.get_user_by_email(email, app=self._app).uid

    def delete_user(self, uid: str) -> None:
        auth.delete_user(uid, app=self._app)


class EmailAlreadyRegistered(Exception):
    """Raised when creating an account for an email that already exists."""


# ── Dependencies ────────────────────────────────────────────
@lru_cache(maxsize=1)
def get_store() -> DocumentStore:
    """Process-wide DocumentStore (FastAPI dependency)."""
    return DocumentStore(firestore.client(app=get_firebase_app()))


@lru_cache(maxsize=1)
def get_auth_directory() -> AuthDirectory:
    """Process-wide AuthDirectory (FastAPI dependency)."""
    return AuthDirectory(get_firebase_app())
