"""地图链接坐标提取

依次尝试 "@<lat>,<lng>" 与 "?q=<lat>,<lng>" 两种写法，先匹配者生效。
无法识别时返回 None，不抛异常。
"""

import re
from urllib.parse import unquote

from pydantic import BaseModel

_NUMBER = r"[-+]?\d+(?:\.\d+)?"

_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"@({_NUMBER}),\s*({_NUMBER})"),
    re.compile(rf"[?&]q=({_NUMBER}),\s*({_NUMBER})"),
)


class Coordinates(BaseModel):
    """经纬度"""

    latitude: float
    longitude: float


def extract_coordinates(text: str | None) -> Coordinates | None:
    """从地图链接中提取经纬度

    Args:
        text: 任意文本，通常是地图分享链接

    Returns:
        Coordinates，未识别时返回 None
    """
    if not text:
        return None

    decoded = unquote(text)
    for pattern in _PATTERNS:
        match = pattern.search(decoded)
        if match:
            return Coordinates(
                latitude=float(match.group(1)),
                longitude=float(match.group(2)),
            )
    return None
