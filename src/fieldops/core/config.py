"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、上传临时目录、批量导入限制等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("FIELDOPS_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "FIELDOPS_DB_PATH",
        str(_get_base_dir() / "sqlite" / "fieldops.db"),
    )


def get_upload_dir() -> Path:
    """获取上传文件临时存放目录（导入结束后文件即删除）"""
    return Path(
        os.environ.get(
            "FIELDOPS_UPLOAD_DIR",
            str(_get_base_dir() / "uploads"),
        )
    )


def get_bulk_upload_max_bytes() -> int:
    """批量导入文件大小上限（字节），默认 10MB"""
    return int(os.environ.get("FIELDOPS_BULK_UPLOAD_MAX_BYTES", str(10 * 1024 * 1024)))


# 批量导入只接受的文件扩展名
ALLOWED_UPLOAD_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls")

# 导入报告中最多返回的错误条数
BULK_ERROR_REPORT_LIMIT: int = 20

# 行号偏移：数据第 1 条对应表格第 2 行（第 1 行为表头）
BULK_ROW_OFFSET: int = 2

# Task 字段长度限制
TITLE_MAX_LENGTH: int = 500
CLIENT_NAME_MAX_LENGTH: int = 200

# 上传文件分块读取大小
UPLOAD_CHUNK_SIZE: int = 64 * 1024
