"""核心工具模块"""

from .path_manager import (
    get_wpbackup_home,
    get_wpbackup_config_file,
    get_wpbackup_scratch_path,
)

__all__ = [
    "get_wpbackup_home",
    "get_wpbackup_config_file",
    "get_wpbackup_scratch_path",
]
