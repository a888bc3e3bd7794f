"""BulkImportService -- 表格批量建单

流程：
1. 上传文件分块落盘到临时目录（扩展名 + 大小校验）
2. openpyxl 解码首个工作表，第 1 行为表头
3. core.bulk_import.partition_rows 逐行校验（纯函数）
4. 校验通过的行逐条落盘（始终为 Unassigned，不自动分配）
5. 汇总报告 + 整批一条 TASKS_BULK_UPLOADED 审计记录
临时文件在任何退出路径上都会被删除。
"""

import asyncio
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from zipfile import BadZipFile

import aiosqlite
import openpyxl
import structlog
from fastapi import UploadFile
from fieldops.core import lifecycle
from fieldops.core.bulk_import import ImportReport, RowFailure, build_report, partition_rows
from fieldops.core.config import (
    ALLOWED_UPLOAD_EXTENSIONS,
    UPLOAD_CHUNK_SIZE,
    get_bulk_upload_max_bytes,
    get_upload_dir,
)
from fieldops.core.exceptions import ValidationError
from fieldops.core.models import ActivityAction, BulkUploadDetail
from fieldops.core.store import StoreGroup, append_activity_only, create_task_only
from openpyxl.utils.exceptions import InvalidFileException
from ulid import ULID

from .task_service import build_activity

log = structlog.get_logger()

EMPTY_OR_INVALID_MESSAGE = "File is empty or invalid format"


def check_extension(file_name: str | None) -> str:
    """校验扩展名，返回小写扩展名

    Raises:
        ValidationError: 非 .xlsx / .xls
    """
    suffix = Path(file_name or "").suffix.lower()
    if suffix not in ALLOWED_UPLOAD_EXTENSIONS:
        raise ValidationError(
            "Only Excel files (.xlsx, .xls) are allowed",
            code="UNSUPPORTED_FILE_TYPE",
        )
    return suffix


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def decode_workbook(path: Path) -> list[dict[str, Any]]:
    """读取首个工作表为 [表头 -> 单元格值] 列表，跳过整行空白

    Raises:
        ValidationError: 文件无法解析为工作簿
    """
    try:
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, ValueError, OSError) as e:
        log.warning("bulk_import_unreadable_file", path=str(path), error=str(e))
        raise ValidationError(EMPTY_OR_INVALID_MESSAGE, code="INVALID_FILE") from e

    try:
        sheet = workbook.active
        if sheet is None:
            return []
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        keys = [str(cell).strip() if cell is not None else "" for cell in header]

        records: list[dict[str, Any]] = []
        for values in rows:
            if all(_is_blank(v) for v in values):
                continue
            record: dict[str, Any] = {}
            for key, value in zip(keys, values):
                if key:
                    record.setdefault(key, value)
            records.append(record)
        return records
    finally:
        workbook.close()


class BulkImportService:
    """批量导入业务服务"""

    def __init__(self, store_group: StoreGroup, upload_dir: Path | None = None) -> None:
        self._stores = store_group
        self._upload_dir = upload_dir or get_upload_dir()

    async def import_upload(self, upload: UploadFile, actor_id: str) -> ImportReport:
        """接收上传文件并导入，结束后删除临时文件"""
        suffix = check_extension(upload.filename)
        self._upload_dir.mkdir(parents=True, exist_ok=True)
        staged = self._upload_dir / f"{ULID()}{suffix}"
        try:
            await self._stage(upload, staged)
            return await self.import_file(staged, upload.filename or staged.name, actor_id)
        finally:
            self._cleanup(staged)

    async def import_file(self, path: Path, file_name: str, actor_id: str) -> ImportReport:
        """解码并导入已落盘的表格文件，结束后删除该文件

        Raises:
            ValidationError: 文件为空或无法解析
        """
        try:
            records = await asyncio.to_thread(decode_workbook, path)
            return await self.import_records(records, file_name, actor_id)
        finally:
            self._cleanup(path)

    async def import_records(
        self,
        records: Sequence[dict[str, Any]],
        file_name: str,
        actor_id: str,
    ) -> ImportReport:
        """逐行校验并落盘，一行失败不影响其他行

        Raises:
            ValidationError: 数据集为空
        """
        if not records:
            raise ValidationError(EMPTY_OR_INVALID_MESSAGE, code="EMPTY_FILE")

        partition = partition_rows(records)
        failures: list[RowFailure] = list(partition.failures)
        store_errors: dict[int, str] = {}
        success_count = 0

        for row in partition.successes:
            task = lifecycle.new_task(str(ULID()), row.payload, datetime.now(UTC))
            async with self._stores.write_lock:
                try:
                    await create_task_only(self._stores.conn, self._stores.task_store, task)
                except aiosqlite.IntegrityError as e:
                    store_errors[row.row_number] = str(e)
                    failures.append(
                        RowFailure(
                            row_number=row.row_number,
                            reason="Row violates stored field constraints",
                        )
                    )
                    continue
            success_count += 1

        failures.sort(key=lambda f: f.row_number)
        for failure in failures:
            log.info(
                "bulk_import_row_rejected",
                row_number=failure.row_number,
                reason=failure.reason,
                stage="store" if failure.row_number in store_errors else "validation",
                error=store_errors.get(failure.row_number),
            )

        report = build_report(success_count, failures)

        detail = BulkUploadDetail(
            file_name=file_name,
            row_count=len(records),
            success_count=report.success_count,
            error_count=report.error_count,
        )
        async with self._stores.write_lock:
            await append_activity_only(
                self._stores.conn,
                self._stores.activity_sink,
                build_activity(
                    ActivityAction.TASKS_BULK_UPLOADED,
                    actor_id,
                    detail=detail.model_dump(),
                ),
            )

        log.info("bulk_import_completed", **detail.model_dump())
        return report

    async def _stage(self, upload: UploadFile, target: Path) -> None:
        """分块写入临时文件，超过大小上限即中止

        Raises:
            ValidationError: 文件超过大小上限
        """
        max_bytes = get_bulk_upload_max_bytes()
        written = 0
        with target.open("wb") as fh:
            while chunk := await upload.read(UPLOAD_CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise ValidationError(
                        f"File exceeds the maximum size of {max_bytes} bytes",
                        code="FILE_TOO_LARGE",
                    )
                fh.write(chunk)

    @staticmethod
    def _cleanup(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            log.error("bulk_import_cleanup_failed", path=str(path), error=str(e))
