"""Unit tests for portal_admin.services.aggregator — aggregation passes."""

import pytest

from conftest import seed_file, ts
from portal_admin.core.folders import files_collection_path
from portal_admin.models.customer import NOT_AVAILABLE, Customer
from portal_admin.models.project import Project
from portal_admin.models.status import StatusRecord
from portal_admin.services.aggregator import FolderAggregator, customer_index, project_index
from portal_admin.services.status_tracking import READ_TRACKING

FOLDERS = ["02_Photos/Before", "08_General"]


def _indexes():
    projects = [
        Project(id="p1", name="Alpha", customer_id="u1"),
        Project(id="p2", name="Beta", customer_id="ghost"),
    ]
    customers = [Customer(doc_id="c1", uid="u1", customer_number="K-1", email="a@example.com")]
    return project_index(projects), customer_index(customers)


class TestAggregate:
    @pytest.mark.asyncio
    async def test_one_row_per_file(self, store):
        seed_file(store, "p1", "02_Photos/Before", "f1", "a.jpg")
        seed_file(store, "p1", "08_General", "f2", "b.pdf")
        seed_file(store, "p2", "08_General", "f3", "c.pdf")
        seed_file(store, "p2", "08_General", "f4", ".keep")
        seed_file(store, "p1", "03_Reports", "f5", "outside.pdf")
        projects, customers = _indexes()

        rows = await FolderAggregator(store).aggregate(FOLDERS, projects, customers)

        assert sorted(r.file_id for r in rows) == ["f1", "f2", "f3"]
        assert all(r.status is None for r in rows)

    @pytest.mark.asyncio
    async def test_failed_folder_is_empty(self, store):
        seed_file(store, "p1", "02_Photos/Before", "f1", "a.jpg")
        seed_file(store, "p1", "08_General", "f2", "b.pdf")
        store.failing.add(files_collection_path("p1", "08_General"))
        projects, customers = _indexes()

        rows = await FolderAggregator(store).aggregate(FOLDERS, projects, customers)

        assert [r.file_id for r in rows] == ["f1"]

    @pytest.mark.asyncio
    async def test_malformed_file_document_is_skipped(self, store):
        seed_file(store, "p1", "08_General", "f1", "good.pdf")
        store.docs(files_collection_path("p1", "08_General"))["bad"] = {"fileName": "bad.pdf", "fileSize": "2 MB"}
        store.docs(files_collection_path("p1", "02_Photos/Before"))["late"] = {"uploadedAt": "last week"}
        projects, customers = _indexes()

        rows = await FolderAggregator(store).aggregate(FOLDERS, projects, customers)

        assert [r.file_id for r in rows] == ["f1"]

    @pytest.mark.asyncio
    async def test_customer_fields(self, store):
        seed_file(store, "p1", "08_General", "f1", "a.pdf")
        seed_file(store, "p2", "08_General", "f2", "b.pdf")
        projects, customers = _indexes()

        rows = {r.file_id: r for r in await FolderAggregator(store).aggregate(FOLDERS, projects, customers)}

        assert rows["f1"].customer_number == "K-1"
        assert rows["f1"].project_name == "Alpha"
        assert rows["f2"].customer_number == NOT_AVAILABLE
        assert rows["f2"].customer_email == NOT_AVAILABLE

    @pytest.mark.asyncio
    async def test_status_classification(self, store):
        read_path = seed_file(store, "p1", "08_General", "f1", "read.pdf")
        seed_file(store, "p1", "08_General", "f2", "unread.pdf")
        statuses = {read_path: StatusRecord(id="s1", file_path=read_path, read_at=ts(3))}
        projects, customers = _indexes()

        rows = await FolderAggregator(store).aggregate(
            FOLDERS, projects, customers, statuses=statuses, status_kind=READ_TRACKING
        )
        by_id = {r.file_id: r for r in rows}

        assert by_id["f1"].status == "read"
        assert by_id["f1"].status_at == ts(3)
        assert by_id["f2"].status == "unread"
        assert by_id["f2"].status_at is None

    @pytest.mark.asyncio
    async def test_missing_public_id_falls_back_to_storage_path(self, store):
        store.docs(files_collection_path("p1", "08_General"))["f1"] = {"fileName": "x.pdf"}
        projects, customers = _indexes()

        rows = await FolderAggregator(store).aggregate(FOLDERS, projects, customers)

        assert rows[0].file_path == "projects/p1/08_General/x.pdf"

    @pytest.mark.asyncio
    async def test_sort_and_project_restriction(self, store):
        seed_file(store, "p1", "08_General", "old", "old.pdf", uploaded_at=ts(1))
        seed_file(store, "p1", "08_General", "new", "new.pdf", uploaded_at=ts(5))
        seed_file(store, "p2", "08_General", "other", "o.pdf", uploaded_at=ts(9))
        projects, customers = _indexes()

        rows = await FolderAggregator(store).aggregate(
            FOLDERS,
            projects,
            customers,
            sort_key=lambda r: -r.uploaded_at.timestamp(),
            project_id="p1",
        )

        assert [r.file_id for r in rows] == ["new", "old"]
