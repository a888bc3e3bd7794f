"""批量导入单行校验

每一行独立校验、独立清洗，不依赖其他行的结果。
校验顺序：案件编号 -> 邮编存在 -> 邮编格式 -> 长度 -> 坐标，先失败者生效。
"""

import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from .config import CLIENT_NAME_MAX_LENGTH, TITLE_MAX_LENGTH
from .coordinates import extract_coordinates
from .models.payloads import NewTaskPayload
from .models.task import is_valid_postal_code

# 表头别名：按顺序取第一个非空值
TITLE_ALIASES = ("CaseID", "caseId", "caseid", "Title", "title")
POSTAL_CODE_ALIASES = ("Pincode", "pincode", "PINCODE")
MAP_URL_ALIASES = ("MapURL", "mapUrl", "mapurl", "Map URL", "MapLink", "map_url")
CLIENT_NAME_ALIASES = ("ClientName", "clientName", "clientname", "Client Name", "Client")
LATITUDE_ALIASES = ("Latitude", "latitude", "Lat", "lat")
LONGITUDE_ALIASES = ("Longitude", "longitude", "Lng", "lng", "Long", "long")
NOTES_ALIASES = ("Notes", "notes", "NOTES")


class ValidatedRow(BaseModel):
    """校验通过的行"""

    payload: NewTaskPayload


class RowRejection(BaseModel):
    """校验失败的行"""

    reason: str


def _to_text(value: Any) -> str | None:
    """单元格值转字符串并去空白，空串视为缺失

    表格软件常把纯数字列读成 float（560001.0），整数值去掉小数部分。
    """
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _lookup(record: Mapping[str, Any], aliases: tuple[str, ...]) -> str | None:
    for alias in aliases:
        text = _to_text(record.get(alias))
        if text is not None:
            return text
    return None


def _parse_coordinate(raw: str | None, label: str, limit: float) -> float | None:
    """解析并校验单个坐标值

    Raises:
        ValueError: 非数字或超出范围，消息可直接写入导入报告
    """
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{label} must be a number (got: {raw})") from None
    if math.isnan(value) or not -limit <= value <= limit:
        raise ValueError(f"{label} must be between {-limit:g} and {limit:g} (got: {raw})")
    return value


def validate_row(record: Mapping[str, Any]) -> ValidatedRow | RowRejection:
    """校验并清洗一行导入数据

    Args:
        record: 表头 -> 单元格值

    Returns:
        ValidatedRow（含建单数据）或 RowRejection（含拒绝原因）
    """
    title = _lookup(record, TITLE_ALIASES)
    if title is None:
        return RowRejection(reason="CaseID/Title is required")

    postal_code = _lookup(record, POSTAL_CODE_ALIASES)
    if postal_code is None:
        return RowRejection(reason="Pincode is required")
    if not is_valid_postal_code(postal_code):
        return RowRejection(reason=f"Pincode must be exactly 6 digits (got: {postal_code})")

    if len(title) > TITLE_MAX_LENGTH:
        return RowRejection(
            reason=f"CaseID/Title must be at most {TITLE_MAX_LENGTH} characters"
        )

    client_name = _lookup(record, CLIENT_NAME_ALIASES)
    if client_name is not None and len(client_name) > CLIENT_NAME_MAX_LENGTH:
        return RowRejection(
            reason=f"ClientName must be at most {CLIENT_NAME_MAX_LENGTH} characters"
        )

    try:
        latitude = _parse_coordinate(_lookup(record, LATITUDE_ALIASES), "Latitude", 90)
        longitude = _parse_coordinate(_lookup(record, LONGITUDE_ALIASES), "Longitude", 180)
    except ValueError as e:
        return RowRejection(reason=str(e))

    map_url = _lookup(record, MAP_URL_ALIASES)
    if map_url and (latitude is None or longitude is None):
        latitude, longitude = fill_from_map_url(map_url, latitude, longitude)

    return ValidatedRow(
        payload=NewTaskPayload(
            title=title,
            client_name=client_name,
            postal_code=postal_code,
            map_url=map_url,
            latitude=latitude,
            longitude=longitude,
            notes=_lookup(record, NOTES_ALIASES),
        )
    )


def fill_from_map_url(
    map_url: str,
    latitude: float | None,
    longitude: float | None,
) -> tuple[float | None, float | None]:
    """用地图链接补齐缺失的坐标，已提供的坐标优先

    链接中解析出的坐标超出范围时视为未识别。
    """
    extracted = extract_coordinates(map_url)
    if extracted is None:
        return latitude, longitude
    if not (-90 <= extracted.latitude <= 90 and -180 <= extracted.longitude <= 180):
        return latitude, longitude
    return (
        latitude if latitude is not None else extracted.latitude,
        longitude if longitude is not None else extracted.longitude,
    )
