"""JSON 文件读取"""

import json
from pathlib import Path
from typing import Any

from loguru import logger


def read_json_file(path: Path) -> Any:
    """读取 JSON 文件

    Args:
        path: 文件路径

    Returns:
        解析后的数据

    Raises:
        ValueError: 文件无法读取或不是合法的 JSON
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
        return json.loads(text)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(f"读取 {path.name} 失败: {e}")
        raise ValueError(f"无法读取 {path}: {e}") from e


__all__ = ["read_json_file"]
