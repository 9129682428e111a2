"""
基础设施层 - 序列化模块

状态记录必须是扁平 JSON 对象；这里不做降级序列化，失败即抛 StateSerializationError。
"""

import json
from typing import Any, Dict, Optional

from .exceptions import StateSerializationError


def dump_record(record: Dict[str, Any], key: Optional[str] = None) -> str:
    """序列化状态记录（仅允许 JSON 原生标量）"""
    try:
        return json.dumps(record, ensure_ascii=False, indent=2, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise StateSerializationError(f"状态记录无法序列化: {e}", key=key) from e


def parse_record(text: str, key: Optional[str] = None) -> Dict[str, Any]:
    """
    解析状态记录

    Raises:
        StateSerializationError: JSON 非法或顶层不是对象
    """
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise StateSerializationError(f"状态记录不是合法 JSON: {e}", key=key) from e
    if not isinstance(parsed, dict):
        raise StateSerializationError(
            f"状态记录顶层必须是对象，实际为 {type(parsed).__name__}", key=key
        )
    return parsed

