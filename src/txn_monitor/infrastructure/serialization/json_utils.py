"""
고성능 JSON 유틸리티

orjson 기반으로 직렬화/역직렬화합니다.
웹소켓 I/O에 맞춰 dumps는 str(UTF-8)로 반환하며, Decimal 금액은 float로 기록합니다.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import orjson


def _default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def json_loads(data: Any) -> Any:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return orjson.loads(data)
    return orjson.loads(str(data).encode("utf-8"))


def json_dumps(obj: Any) -> str:
    # orjson.dumps → bytes 반환, websockets.send는 str를 기대
    return orjson.dumps(obj, default=_default, option=orjson.OPT_NON_STR_KEYS).decode("utf-8")


def json_dumps_bytes(obj: Any) -> bytes:
    """HTTP 요청 본문용: 인코딩 없이 bytes 그대로 반환"""
    return orjson.dumps(obj, default=_default, option=orjson.OPT_NON_STR_KEYS)
