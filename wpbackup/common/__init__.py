"""通用工具模块

提供项目中常用的辅助函数和工具类。
"""

from .helpers import (
    get_formatted_timestamp,
    get_backup_timestamp,
    parse_backup_timestamp,
    format_size,
    BACKUP_TIMESTAMP_FORMAT,
)

from .file_handler import read_json_file

from .path_utils import (
    ensure_dir,
)

__all__ = [
    "get_formatted_timestamp",
    "get_backup_timestamp",
    "parse_backup_timestamp",
    "format_size",
    "BACKUP_TIMESTAMP_FORMAT",
    "read_json_file",
    "ensure_dir",
]
