"""
Portal Admin test suite — shared fixtures and in-memory fakes.

Run:  pytest backend/tests -v

No test touches Firebase or Cloudinary: the document store, auth
directory, and blob storage are replaced by in-memory fakes through
FastAPI dependency overrides.
"""

from __future__ import annotations

import datetime
import itertools
from collections.abc import Callable
from typing import Any

import pytest
from fastapi.testclient import TestClient

from portal_admin.core.firebase import (
    SERVER_TIMESTAMP,
    Document,
    EmailAlreadyRegistered,
    get_auth_directory,
    get_store,
)
from portal_admin.core.folders import files_collection_path
from portal_admin.main import app
from portal_admin.services.blob_storage import get_blob_storage

ADMIN_TOKEN = "admin-token"
ADMIN_UID = "admin-1"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeStore:
    """Dict-backed stand-in for DocumentStore (same method surface)."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.failing: set[str] = set()
        self.listeners: dict[str, list[Callable[[list[Document]], None]]] = {}
        self._ids = itertools.count(1)

    # -- helpers -----------------------------------------------------------
    @staticmethod
    def _split(document_path: str) -> tuple[str, str]:
        collection, _, doc_id = document_path.rpartition("/")
        return collection, doc_id

    @staticmethod
    def _resolve(data: dict[str, Any]) -> dict[str, Any]:
        now = datetime.datetime.now(datetime.timezone.utc)
        return {k: (now if v is SERVER_TIMESTAMP else v) for k, v in data.items()}

    def _check(self, collection_path: str) -> None:
        if collection_path in self.failing:
            raise RuntimeError(f"permission denied: {collection_path}")

    def docs(self, collection_path: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(collection_path, {})

    def emit(self, collection_path: str) -> None:
        """Deliver a snapshot of collection_path to its listeners."""
        snapshot = self.list_documents(collection_path)
        for callback in list(self.listeners.get(collection_path, [])):
            callback(snapshot)

    # -- DocumentStore surface ---------------------------------------------
    def list_documents(self, collection_path: str) -> list[Document]:
        self._check(collection_path)
        return [Document(id=k, data=dict(v)) for k, v in self.docs(collection_path).items()]

    def get_document(self, document_path: str) -> Document | None:
        collection, doc_id = self._split(document_path)
        self._check(collection)
        data = self.docs(collection).get(doc_id)
        return Document(id=doc_id, data=dict(data)) if data is not None else None

    def query(self, collection_path, filters=(), order_by=None) -> list[Document]:
        docs = [
            d for d in self.list_documents(collection_path)
            if all(op == "==" and d.data.get(field) == value for field, op, value in filters)
        ]
        if order_by:
            docs.sort(key=lambda d: d.data.get(order_by))
        return docs

    def add_document(self, collection_path: str, data: dict[str, Any]) -> str:
        self._check(collection_path)
        doc_id = f"doc-{next(self._ids)}"
        self.docs(collection_path)[doc_id] = self._resolve(data)
        return doc_id

    def set_document(self, document_path: str, data: dict[str, Any], merge: bool = False) -> None:
        collection, doc_id = self._split(document_path)
        self._check(collection)
        existing = self.docs(collection).get(doc_id, {}) if merge else {}
        self.docs(collection)[doc_id] = {**existing, **self._resolve(data)}

    def update_document(self, document_path: str, data: dict[str, Any]) -> None:
        collection, doc_id = self._split(document_path)
        self._check(collection)
        if doc_id not in self.docs(collection):
            raise KeyError(document_path)
        self.docs(collection)[doc_id].update(self._resolve(data))

    def delete_document(self, document_path: str) -> None:
        collection, doc_id = self._split(document_path)
        self.docs(collection).pop(doc_id, None)

    def watch(self, collection_path: str, on_change):
        self.listeners.setdefault(collection_path, []).append(on_change)
        on_change(self.list_documents(collection_path))
        return lambda: self.listeners[collection_path].remove(on_change)

    def ping(self) -> None:
        return None


class FakeAuthDirectory:
    def __init__(self) -> None:
        self.users: dict[str, str] = {}
        self.tokens: dict[str, dict[str, Any]] = {ADMIN_TOKEN: {"uid": ADMIN_UID, "email": "admin@example.com"}}
        self.deleted: list[str] = []
        self._ids = itertools.count(1)

    def verify_token(self, id_token: str) -> dict[str, Any]:
        if id_token not in self.tokens:
            raise ValueError("invalid token")
        return self.tokens[id_token]

    def create_user(self, email: str, password: str) -> str:
        if email in self.users:
            raise EmailAlreadyRegistered(email)
        uid = f"uid-{next(self._ids)}"
        self.users[email] = uid
        return uid

    def get_uid_by_email(self, email: str) -> str:
        return self.users[email]

    def delete_user(self, uid: str) -> None:
        self.deleted.append(uid)
        self.users = {e: u for e, u in self.users.items() if u != uid}


class FakeBlobStorage:
    def __init__(self) -> None:
        self.destroyed: list[str] = []
        self.folders: list[str] = []
        self.stored: list[str] = []
        self.swept: list[str] = []

    async def destroy(self, public_id: str) -> bool:
        self.destroyed.append(public_id)
        return True

    async def create_folder(self, folder: str) -> None:
        self.folders.append(folder)

    async def list_by_prefix(self, prefix: str) -> list[str]:
        return [p for p in self.stored if p.startswith(prefix)]

    async def delete_folder_assets(self, prefix: str) -> int:
        swept = [p for p in self.stored if p.startswith(prefix)]
        self.swept.extend(swept)
        self.stored = [p for p in self.stored if p not in swept]
        return len(swept)


# ---------------------------------------------------------------------------
# Seeding helpers
# ---------------------------------------------------------------------------

def ts(day: int, hour: int = 12) -> datetime.datetime:
    """A fixed UTC moment in January 2025."""
    return datetime.datetime(2025, 1, day, hour, tzinfo=datetime.timezone.utc)


def seed_customer(store: FakeStore, uid: str, number: str, email: str, name: str = "") -> str:
    doc_id = f"c-{uid}"
    store.docs("customers")[doc_id] = {
        "uid": uid,
        "customerNumber": number,
        "email": email,
        "name": name,
    }
    return doc_id


def seed_project(store: FakeStore, project_id: str, name: str, customer_id: str, **extra: Any) -> None:
    store.docs("projects")[project_id] = {"name": name, "customerId": customer_id, **extra}


def seed_file(
    store: FakeStore,
    project_id: str,
    folder_path: str,
    file_id: str,
    file_name: str,
    uploaded_at: datetime.datetime | None = None,
    public_id: str | None = None,
) -> str:
    """Add a file document; returns its storage path (public id)."""
    public_id = public_id or f"projects/{project_id}/{folder_path}/{file_name}"
    store.docs(files_collection_path(project_id, folder_path))[file_id] = {
        "fileName": file_name,
        "cloudinaryPublicId": public_id,
        "cloudinaryUrl": f"https://res.example.com/{public_id}",
        "uploadedAt": uploaded_at or ts(1),
    }
    return public_id


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store() -> FakeStore:
    fake = FakeStore()
    fake.docs("admins")[ADMIN_UID] = {"email": "admin@example.com"}
    return fake


@pytest.fixture
def auth_directory() -> FakeAuthDirectory:
    return FakeAuthDirectory()


@pytest.fixture
def blobs() -> FakeBlobStorage:
    return FakeBlobStorage()


@pytest.fixture
def client(store, auth_directory, blobs):
    """TestClient (lifespan not started) wired to the fakes, admin signed in."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_auth_directory] = lambda: auth_directory
    app.dependency_overrides[get_blob_storage] = lambda: blobs
    test_client = TestClient(app, headers={"Authorization": f"Bearer {ADMIN_TOKEN}"})
    yield test_client
    app.dependency_overrides.clear()
