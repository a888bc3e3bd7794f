"""BulkImportService 测试 -- 表格解码、逐行导入、报告与临时文件清理"""

from io import BytesIO
from pathlib import Path

import aiosqlite
import openpyxl
import pytest
import pytest_asyncio
from fastapi import UploadFile
from fieldops.core.exceptions import ValidationError
from fieldops.core.models import ActivityAction, TaskStatus
from fieldops.gateway.services import bulk_import_service as bulk_import_module
from fieldops.gateway.services.bulk_import_service import (
    EMPTY_OR_INVALID_MESSAGE,
    BulkImportService,
    check_extension,
    decode_workbook,
)

HEADER = ["CaseID", "ClientName", "Pincode", "MapURL", "Notes"]


def write_workbook(path: Path, rows: list[list], header: list[str] = HEADER) -> Path:
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.append(header)
    for row in rows:
        sheet.append(row)
    workbook.save(path)
    return path


def workbook_bytes(rows: list[list], header: list[str] = HEADER) -> bytes:
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.append(header)
    for row in rows:
        sheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def five_rows() -> list[list]:
    return [
        [f"CASE-{i}", f"Client {i}", "560001", None, None] for i in range(5)
    ]


@pytest_asyncio.fixture
async def service(store_group, upload_dir) -> BulkImportService:
    return BulkImportService(store_group, upload_dir)


class TestCheckExtension:
    @pytest.mark.parametrize("name", ["tasks.xlsx", "TASKS.XLSX", "legacy.xls"])
    def test_allowed(self, name):
        assert check_extension(name) in (".xlsx", ".xls")

    @pytest.mark.parametrize("name", ["tasks.csv", "tasks", None, "tasks.xlsx.pdf"])
    def test_rejected(self, name):
        with pytest.raises(ValidationError) as exc_info:
            check_extension(name)
        assert exc_info.value.code == "UNSUPPORTED_FILE_TYPE"


class TestDecodeWorkbook:
    def test_reads_header_and_rows(self, tmp_path):
        path = write_workbook(tmp_path / "a.xlsx", [["CASE-1", "Acme", 560001, None, "n"]])
        records = decode_workbook(path)
        assert records == [
            {"CaseID": "CASE-1", "ClientName": "Acme", "Pincode": 560001, "MapURL": None, "Notes": "n"}
        ]

    def test_blank_rows_skipped(self, tmp_path):
        path = write_workbook(
            tmp_path / "b.xlsx",
            [["CASE-1", None, "560001", None, None], [None, "  ", None, None, None],
             ["CASE-2", None, "560002", None, None]],
        )
        assert [r["CaseID"] for r in decode_workbook(path)] == ["CASE-1", "CASE-2"]

    def test_header_only(self, tmp_path):
        assert decode_workbook(write_workbook(tmp_path / "c.xlsx", [])) == []

    def test_not_a_workbook(self, tmp_path):
        path = tmp_path / "fake.xlsx"
        path.write_bytes(b"CaseID,Pincode\nCASE-1,560001\n")
        with pytest.raises(ValidationError) as exc_info:
            decode_workbook(path)
        assert exc_info.value.message == EMPTY_OR_INVALID_MESSAGE


class TestImportRecords:
    async def test_bad_row_reported_by_sheet_row(self, service, store_group):
        records = [{"CaseID": f"CASE-{i}", "Pincode": "560001"} for i in range(5)]
        records[2]["Pincode"] = "12345"

        report = await service.import_records(records, "tasks.xlsx", "admin-1")

        assert report.success_count == 4
        assert report.error_count == 1
        assert report.errors == ["Row 4: Pincode must be exactly 6 digits (got: 12345)"]
        assert report.has_more_errors is False

        tasks = await store_group.task_store.list_tasks()
        assert len(tasks) == 4
        assert all(t.status == TaskStatus.UNASSIGNED for t in tasks)

    async def test_non_ascii_postal_code_reported_as_format_error(self, service):
        records = [{"CaseID": "CASE-1", "Pincode": "٥٦٠٠٠١"}]
        report = await service.import_records(records, "tasks.xlsx", "admin-1")
        assert report.errors == ["Row 2: Pincode must be exactly 6 digits (got: ٥٦٠٠٠١)"]

    async def test_one_batch_activity(self, service, store_group):
        records = [{"CaseID": "CASE-1", "Pincode": "560001"}, {"CaseID": "", "Pincode": "1"}]
        await service.import_records(records, "tasks.xlsx", "admin-1")

        activity = await store_group.activity_store.list_by_action(
            ActivityAction.TASKS_BULK_UPLOADED
        )
        assert len(activity) == 1
        assert activity[0].detail == {
            "file_name": "tasks.xlsx",
            "row_count": 2,
            "success_count": 1,
            "error_count": 1,
        }
        assert activity[0].task_id is None

    async def test_map_url_fills_coordinates(self, service, store_group):
        records = [
            {
                "CaseID": "CASE-1",
                "Pincode": "560001",
                "MapURL": "https://maps.google.com/?q=12.9,77.5",
            }
        ]
        await service.import_records(records, "tasks.xlsx", "admin-1")
        (task,) = await store_group.task_store.list_tasks()
        assert (task.latitude, task.longitude) == (12.9, 77.5)

    async def test_error_list_capped(self, service):
        records = [{"CaseID": f"CASE-{i}", "Pincode": "bad"} for i in range(25)]
        report = await service.import_records(records, "tasks.xlsx", "admin-1")
        assert report.success_count == 0
        assert report.error_count == 25
        assert len(report.errors) == 20
        assert report.has_more_errors is True

    async def test_empty_dataset_rejected(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.import_records([], "tasks.xlsx", "admin-1")
        assert exc_info.value.message == EMPTY_OR_INVALID_MESSAGE


class TestImportFile:
    async def test_file_removed_after_success(self, service, upload_dir):
        path = write_workbook(upload_dir / "ok.xlsx", five_rows())
        report = await service.import_file(path, "ok.xlsx", "admin-1")
        assert report.success_count == 5
        assert not path.exists()

    async def test_file_removed_after_failure(self, service, upload_dir):
        path = write_workbook(upload_dir / "empty.xlsx", [])
        with pytest.raises(ValidationError):
            await service.import_file(path, "empty.xlsx", "admin-1")
        assert not path.exists()


class TestImportUpload:
    async def test_staged_file_removed(self, service, upload_dir):
        upload = UploadFile(file=BytesIO(workbook_bytes(five_rows())), filename="tasks.xlsx")
        report = await service.import_upload(upload, "admin-1")
        assert report.success_count == 5
        assert list(upload_dir.iterdir()) == []

    async def test_oversized_upload_rejected(self, service, upload_dir, monkeypatch):
        monkeypatch.setenv("FIELDOPS_BULK_UPLOAD_MAX_BYTES", "1024")
        upload = UploadFile(file=BytesIO(b"x" * 5000), filename="big.xlsx")
        with pytest.raises(ValidationError) as exc_info:
            await service.import_upload(upload, "admin-1")
        assert exc_info.value.code == "FILE_TOO_LARGE"
        assert list(upload_dir.iterdir()) == []

    async def test_wrong_extension_writes_nothing(self, service, upload_dir):
        upload = UploadFile(file=BytesIO(b"a,b"), filename="tasks.csv")
        with pytest.raises(ValidationError):
            await service.import_upload(upload, "admin-1")
        assert list(upload_dir.iterdir()) == []


class RecordingLogger:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def _record(self, event: str, **kw) -> None:
        self.events.append((event, kw))

    debug = info = warning = error = _record


class TestRejectionLogging:
    async def test_single_stream_in_row_order(self, service, monkeypatch):
        recorder = RecordingLogger()
        monkeypatch.setattr(bulk_import_module, "log", recorder)

        real_create = bulk_import_module.create_task_only

        async def create_or_reject(conn, task_store, task):
            if task.title == "CASE-2":
                raise aiosqlite.IntegrityError("CHECK constraint failed")
            await real_create(conn, task_store, task)

        monkeypatch.setattr(bulk_import_module, "create_task_only", create_or_reject)

        records = [
            {"CaseID": "CASE-1", "Pincode": "560001"},
            {"CaseID": "CASE-2", "Pincode": "560001"},
            {"CaseID": "CASE-3", "Pincode": "bad"},
        ]
        report = await service.import_records(records, "tasks.xlsx", "admin-1")

        assert report.error_count == 2
        rejected = [kw for event, kw in recorder.events if event == "bulk_import_row_rejected"]
        assert [(r["row_number"], r["stage"]) for r in rejected] == [
            (3, "store"),
            (4, "validation"),
        ]
        assert rejected[0]["error"] == "CHECK constraint failed"
        assert rejected[1]["error"] is None
        assert {event for event, _ in recorder.events} == {
            "bulk_import_row_rejected",
            "bulk_import_completed",
        }
