"""Unit tests for portal_admin.services.status_tracking."""

import datetime

import pytest

from conftest import ts
from portal_admin.models.status import StatusRecord
from portal_admin.schemas.rows import FileRow
from portal_admin.services.status_tracking import (
    READ_STATUS_COLLECTION,
    READ_TRACKING,
    REPORT_APPROVALS_COLLECTION,
    REPORT_APPROVAL,
    add_working_days,
    build_status_map,
    classify,
    dedupe_approvals,
    load_status_map,
    mark_file_read,
    register_report_upload,
    set_report_approval,
)

PATH = "projects/p1/03_Reports/Daily_Reports/r.pdf"


def _row(file_path: str, status: str, at: datetime.datetime | None, project_id: str = "p1") -> FileRow:
    return FileRow(
        file_id=file_path,
        file_name=file_path.rsplit("/", 1)[-1],
        file_path=file_path,
        folder_path="03_Reports",
        folder_name="03_Reports",
        project_id=project_id,
        project_name="Alpha",
        customer_id="u1",
        customer_number="K-1",
        customer_email="a@example.com",
        status=status,
        status_at=at,
    )


class TestClassify:
    def test_no_record_is_negative(self):
        assert classify(READ_TRACKING, None) == ("unread", None)
        assert classify(REPORT_APPROVAL, None) == ("pending", None)

    def test_read_record(self):
        record = StatusRecord(id="x", file_path=PATH, read_at=ts(2))
        assert classify(READ_TRACKING, record) == ("read", ts(2))

    def test_approval_record_keeps_its_status(self):
        auto = StatusRecord(id="x", file_path=PATH, status="auto-approved", approved_at=ts(4))
        assert classify(REPORT_APPROVAL, auto) == ("auto-approved", ts(4))
        pending = StatusRecord(id="y", file_path=PATH, status="pending", uploaded_at=ts(1))
        assert classify(REPORT_APPROVAL, pending) == ("pending", ts(1))


class TestStatusMap:
    def test_first_record_wins_and_pathless_skipped(self):
        records = [
            StatusRecord(id="a", file_path=PATH, read_at=ts(1)),
            StatusRecord(id="b", file_path=PATH, read_at=ts(2)),
            StatusRecord(id="c"),
        ]
        status_map = build_status_map(records)
        assert list(status_map) == [PATH]
        assert status_map[PATH].id == "a"

    @pytest.mark.asyncio
    async def test_load_failure_is_empty(self, store):
        store.failing.add(READ_STATUS_COLLECTION)
        assert await load_status_map(store, READ_TRACKING) == {}

    @pytest.mark.asyncio
    async def test_malformed_record_is_skipped(self, store):
        store.docs(READ_STATUS_COLLECTION)["ok"] = {"filePath": PATH, "readAt": ts(2)}
        store.docs(READ_STATUS_COLLECTION)["bad"] = {"filePath": "other.pdf", "readAt": "yesterday"}

        status_map = await load_status_map(store, READ_TRACKING)

        assert list(status_map) == [PATH]
        assert status_map[PATH].read_at == ts(2)


class TestMutations:
    @pytest.mark.asyncio
    async def test_mark_read_twice_keeps_one_record(self, store):
        first = await mark_file_read(store, "p1", "u1", PATH)
        second = await mark_file_read(store, "p1", "u1", PATH)

        records = store.docs(READ_STATUS_COLLECTION)
        assert first == second == "projects__p1__03_Reports__Daily_Reports__r.pdf"
        assert len(records) == 1
        assert records[first]["filePath"] == PATH
        assert isinstance(records[first]["readAt"], datetime.datetime)

    @pytest.mark.asyncio
    async def test_approval_timestamp_only_when_approved(self, store):
        doc_id = await set_report_approval(store, "p1", "u1", PATH, "pending")
        assert "approvedAt" not in store.docs(REPORT_APPROVALS_COLLECTION)[doc_id]

        await set_report_approval(store, "p1", "u1", PATH)
        record = store.docs(REPORT_APPROVALS_COLLECTION)[doc_id]
        assert record["status"] == "approved"
        assert isinstance(record["approvedAt"], datetime.datetime)

    @pytest.mark.asyncio
    async def test_register_report_upload(self, store):
        friday = datetime.datetime(2025, 1, 3, 9, tzinfo=datetime.timezone.utc)
        doc_id = await register_report_upload(store, "p1", "u1", PATH, friday, 5)

        record = store.docs(REPORT_APPROVALS_COLLECTION)[doc_id]
        assert record["status"] == "pending"
        assert record["autoApproveDate"] == datetime.datetime(2025, 1, 10, 9, tzinfo=datetime.timezone.utc)


class TestHelpers:
    def test_working_days_skip_weekends(self):
        friday = datetime.datetime(2025, 1, 3)
        assert add_working_days(friday, 1) == datetime.datetime(2025, 1, 6)
        assert add_working_days(friday, 0) == friday

    def test_dedupe_prefers_approved_then_newer(self):
        rows = [
            _row("projects/p1/03_Reports/r.pdf", "pending", ts(9)),
            _row("projects/p1/03_Reports/Daily_Reports/r.pdf", "approved", ts(2)),
            _row("projects/p1/03_Reports/a.pdf", "pending", ts(1)),
            _row("projects/p1/03_Reports/Weekly_Reports/a.pdf", "pending", ts(5)),
            _row("projects/p2/03_Reports/r.pdf", "pending", None, project_id="p2"),
        ]

        kept = dedupe_approvals(rows)

        assert [(r.project_id, r.file_path, r.status) for r in kept] == [
            ("p1", "projects/p1/03_Reports/Daily_Reports/r.pdf", "approved"),
            ("p1", "projects/p1/03_Reports/Weekly_Reports/a.pdf", "pending"),
            ("p2", "projects/p2/03_Reports/r.pdf", "pending"),
        ]
