"""批量导入的纯函数部分

partition_rows：按文件顺序把所有行折叠为 (successes, failures)，
行号 = 下标 + 2（第 1 行为表头）。一行失败不影响其他行的结果或行号。
build_report：汇总计数并把错误列表截断到前 N 条。
"""

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, Field

from .config import BULK_ERROR_REPORT_LIMIT, BULK_ROW_OFFSET
from .models.payloads import NewTaskPayload
from .row_validator import RowRejection, validate_row


class RowSuccess(BaseModel):
    """校验通过的行（带表格行号）"""

    row_number: int
    payload: NewTaskPayload


class RowFailure(BaseModel):
    """校验失败的行（带表格行号）"""

    row_number: int
    reason: str

    @property
    def message(self) -> str:
        return f"Row {self.row_number}: {self.reason}"


class ImportPartition(BaseModel):
    """校验折叠结果"""

    successes: list[RowSuccess] = Field(default_factory=list)
    failures: list[RowFailure] = Field(default_factory=list)


class ImportReport(BaseModel):
    """导入报告"""

    success_count: int
    error_count: int
    errors: list[str] = Field(default_factory=list, description="前 N 条错误")
    has_more_errors: bool = False


def row_number(index: int) -> int:
    """数据下标 -> 表格行号"""
    return index + BULK_ROW_OFFSET


def partition_rows(records: Sequence[Mapping[str, Any]]) -> ImportPartition:
    """逐行校验并折叠为成功/失败两组，保持文件顺序"""
    successes: list[RowSuccess] = []
    failures: list[RowFailure] = []
    for index, record in enumerate(records):
        outcome = validate_row(record)
        if isinstance(outcome, RowRejection):
            failures.append(RowFailure(row_number=row_number(index), reason=outcome.reason))
        else:
            successes.append(RowSuccess(row_number=row_number(index), payload=outcome.payload))
    return ImportPartition(successes=successes, failures=failures)


def build_report(
    success_count: int,
    failures: Sequence[RowFailure],
    limit: int = BULK_ERROR_REPORT_LIMIT,
) -> ImportReport:
    """汇总导入结果，错误按行号排序后截断"""
    ordered = sorted(failures, key=lambda f: f.row_number)
    return ImportReport(
        success_count=success_count,
        error_count=len(ordered),
        errors=[f.message for f in ordered[:limit]],
        has_more_errors=len(ordered) > limit,
    )
