"""通用辅助函数

提供时间戳、文件大小格式化等常用辅助函数。
"""

from datetime import datetime
from typing import Optional

BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
"""备份文件名中的时间戳格式（各字段补零，字典序即时间序）"""


def get_formatted_timestamp(format: str = "%Y-%m-%d %H:%M:%S") -> str:
    """获取格式化时间戳"""
    return datetime.now().strftime(format)


def get_backup_timestamp(now: Optional[datetime] = None) -> str:
    """获取备份文件名使用的时间戳

    Args:
        now: 指定时间，默认为当前时间

    Returns:
        形如 2025-08-25_04-23-51 的时间戳
    """
    return (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)


def parse_backup_timestamp(value: str) -> Optional[datetime]:
    """解析备份时间戳

    Args:
        value: 形如 2025-08-25_04-23-51 的字符串

    Returns:
        解析后的时间，格式不符时返回 None
    """
    try:
        return datetime.strptime(value, BACKUP_TIMESTAMP_FORMAT)
    except ValueError:
        return None


def format_size(size: float) -> str:
    """格式化文件大小

    Args:
        size: 字节大小

    Returns:
        格式化后的字符串，如 "1.23 MB"
    """
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} PB"
