"""备份文件列表与选择

本地和远程列表都解析为 ArchiveEntry，按文件名中的时间戳排序。
时间戳各字段补零，字符串排序与时间排序结果一致，但这里显式按解析出的时间比较
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from ...common import parse_backup_timestamp
from ...config import BackupSettings
from .constants import ARCHIVE_SUFFIX, BackupError, ErrorKind

_ARCHIVE_NAME_RE = re.compile(
    r"^(?P<site>.+)_(?P<ts>\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2})"
    + re.escape(ARCHIVE_SUFFIX)
    + r"$"
)

_MODTIME_FRACTION_RE = re.compile(r"\.(\d{6})\d*")


@dataclass(frozen=True)
class ArchiveEntry:
    """备份文件条目"""

    name: str
    """文件名"""

    size: int = 0
    """大小（字节）"""

    modified: Optional[datetime] = None
    """修改时间"""

    path: Optional[Path] = None
    """本地路径（远程条目为 None）"""

    @property
    def site(self) -> Optional[str]:
        match = _ARCHIVE_NAME_RE.match(self.name)
        return match.group("site") if match else None

    @property
    def timestamp(self) -> Optional[datetime]:
        """文件名中的备份时间"""
        match = _ARCHIVE_NAME_RE.match(self.name)
        if not match:
            return None
        return parse_backup_timestamp(match.group("ts"))


def archive_sort_key(entry: ArchiveEntry) -> tuple:
    """排序键：有时间戳的在前，按时间戳，其次按文件名"""
    ts = entry.timestamp
    return (ts is not None, ts or datetime.min, entry.name)


def sort_newest_first(entries: Iterable[ArchiveEntry]) -> list[ArchiveEntry]:
    """按备份时间倒序排列"""
    return sorted(entries, key=archive_sort_key, reverse=True)


def parse_modtime(value: str) -> Optional[datetime]:
    """解析 rclone lsjson 的 ModTime（RFC3339，可能带纳秒）"""
    if not value:
        return None
    text = _MODTIME_FRACTION_RE.sub(lambda m: "." + m.group(1), value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def list_local_archives(settings: BackupSettings) -> list[ArchiveEntry]:
    """列出本地备份目录中属于本站点的备份文件

    Returns:
        备份条目，按备份时间倒序
    """
    backup_dir = settings.backup_dir
    if not backup_dir.is_dir():
        return []

    entries = []
    for path in backup_dir.glob(settings.archive_glob):
        if not path.is_file():
            continue
        stat = path.stat()
        entries.append(
            ArchiveEntry(
                name=path.name,
                size=stat.st_size,
                modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                path=path,
            )
        )
    return sort_newest_first(entries)


def latest_by_mtime(entries: Iterable[ArchiveEntry]) -> Optional[ArchiveEntry]:
    """按文件修改时间取最新的备份"""
    candidates = [e for e in entries if e.modified is not None]
    if not candidates:
        return None
    return max(candidates, key=lambda e: e.modified)


def choose_menu_entry(entries: list[ArchiveEntry], choice: str) -> ArchiveEntry:
    """根据菜单输入选择备份

    Args:
        entries: 按时间倒序排列的备份
        choice: 输入，空或 0 表示最新，1..n 表示对应条目

    Returns:
        选中的备份

    Raises:
        BackupError: 没有备份或输入无效
    """
    if not entries:
        raise BackupError(ErrorKind.NO_BACKUPS, "没有可用的备份文件")

    choice = choice.strip()
    if choice in ("", "0"):
        return entries[0]
    if re.fullmatch(r"[0-9]+", choice) and 1 <= int(choice) <= len(entries):
        return entries[int(choice) - 1]
    raise BackupError(ErrorKind.INVALID_CHOICE, f"无效的选择: {choice!r}")


def format_menu(entries: list[ArchiveEntry]) -> list[str]:
    """生成选择菜单文本"""
    lines = ["0) 自动使用最新的备份"]
    for index, entry in enumerate(entries, start=1):
        lines.append(f"{index}) {entry.name}")
    return lines


__all__ = [
    "ArchiveEntry",
    "archive_sort_key",
    "sort_newest_first",
    "parse_modtime",
    "list_local_archives",
    "latest_by_mtime",
    "choose_menu_entry",
    "format_menu",
]
