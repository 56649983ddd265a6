"""wpbackup 统一路径管理模块

主目录路径：默认为当前用户主目录，可通过环境变量 WPBACKUP_HOME 指定
配置文件路径：默认为主目录下的 .wpbackup.json，可通过环境变量 WPBACKUP_CONFIG 指定
临时工作目录：系统临时目录，可通过环境变量 WPBACKUP_SCRATCH 指定
"""

import os
import tempfile
from typing import Mapping, Optional


def get_wpbackup_home(env: Optional[Mapping[str, str]] = None) -> str:
    """获取站点所在的主目录路径"""
    env = os.environ if env is None else env
    if path := env.get("WPBACKUP_HOME"):
        return os.path.realpath(os.path.expanduser(path))
    return os.path.realpath(os.path.expanduser("~"))


def get_wpbackup_config_file(
    home: str, env: Optional[Mapping[str, str]] = None
) -> str:
    """获取配置覆盖文件路径"""
    env = os.environ if env is None else env
    if path := env.get("WPBACKUP_CONFIG"):
        return os.path.realpath(os.path.expanduser(path))
    return os.path.join(home, ".wpbackup.json")


def get_wpbackup_scratch_path(env: Optional[Mapping[str, str]] = None) -> str:
    """获取临时工作目录路径（数据库导出文件、解压目录）"""
    env = os.environ if env is None else env
    if path := env.get("WPBACKUP_SCRATCH"):
        return os.path.realpath(os.path.expanduser(path))
    return os.path.realpath(tempfile.gettempdir())


__all__ = [
    "get_wpbackup_home",
    "get_wpbackup_config_file",
    "get_wpbackup_scratch_path",
]
