"""备份模块

提供 WordPress 数据库与网站文件的备份和恢复功能
"""

from .path_manager import PathManager
from .exporter import BackupExporter
from .importer import BackupImporter
from .commands import CommandResult, CommandRunner, SubprocessRunner
from .credentials import DatabaseCredentials, parse_credentials
from .prompts import Prompter, ConsolePrompter
from .remote import RcloneRemote, ensure_rclone_installed, list_configured_remotes
from .selection import ArchiveEntry, choose_menu_entry, list_local_archives
from .constants import (
    ErrorKind,
    BackupError,
    BackupResult,
    RestoreResult,
    BackupStage,
    RestoreStage,
)

__all__ = [
    "PathManager",
    "BackupExporter",
    "BackupImporter",
    "CommandResult",
    "CommandRunner",
    "SubprocessRunner",
    "DatabaseCredentials",
    "parse_credentials",
    "Prompter",
    "ConsolePrompter",
    "RcloneRemote",
    "ensure_rclone_installed",
    "list_configured_remotes",
    "ArchiveEntry",
    "choose_menu_entry",
    "list_local_archives",
    "ErrorKind",
    "BackupError",
    "BackupResult",
    "RestoreResult",
    "BackupStage",
    "RestoreStage",
]
