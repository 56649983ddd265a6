"""备份模块常量

定义导出器和导入器共享的常量、结果类型和错误类型
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional


ARCHIVE_SUFFIX = ".tar.gz"
"""备份文件扩展名"""

DUMP_SUFFIX = ".sql"
"""数据库导出文件扩展名"""

DUMP_MARKER = "_db_"
"""数据库导出文件名标记"""

PRE_RESTORE_PREFIX = "pre_restore_"
"""恢复前快照文件名前缀"""


class ErrorKind(str, Enum):
    """错误类型"""

    # 预检查
    INVALID_ARGUMENT = "invalid_argument"
    TOOL_MISSING = "tool_missing"
    REMOTE_NOT_FOUND = "remote_not_found"
    CONFIG_NOT_FOUND = "config_not_found"
    CREDENTIALS_MISSING = "credentials_missing"
    SETTINGS_INVALID = "settings_invalid"

    # 外部命令
    DUMP_FAILED = "dump_failed"
    ARCHIVE_FAILED = "archive_failed"
    EXTRACT_FAILED = "extract_failed"
    DB_RESTORE_FAILED = "db_restore_failed"
    UPLOAD_FAILED = "upload_failed"
    DOWNLOAD_FAILED = "download_failed"
    SNAPSHOT_FAILED = "snapshot_failed"
    COPY_FAILED = "copy_failed"

    # 输入与备份内容
    NO_BACKUPS = "no_backups"
    INVALID_CHOICE = "invalid_choice"
    BACKUP_NOT_FOUND = "backup_not_found"
    DUMP_NOT_FOUND = "dump_not_found"
    FILES_NOT_FOUND = "files_not_found"


class BackupError(Exception):
    """备份/恢复错误"""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass
class BackupResult:
    """备份操作结果"""

    success: bool
    """是否成功"""

    archive_path: str = ""
    """备份文件路径"""

    message: str = ""
    """结果消息"""

    size: int = 0
    """备份大小（字节）"""

    remote_path: str = ""
    """上传后的远程路径"""

    error_kind: Optional[ErrorKind] = None
    """失败时的错误类型"""

    errors: List[str] = field(default_factory=list)
    """错误列表"""

    warnings: List[str] = field(default_factory=list)
    """警告列表"""

    duration: float = 0.0
    """耗时（秒）"""

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "success": self.success,
            "archive_path": self.archive_path,
            "message": self.message,
            "size": self.size,
            "remote_path": self.remote_path,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "duration": self.duration,
        }


@dataclass
class RestoreResult:
    """恢复操作结果"""

    success: bool
    """是否成功"""

    cancelled: bool = False
    """是否被操作员取消"""

    archive_name: str = ""
    """使用的备份文件名"""

    message: str = ""
    """结果消息"""

    snapshot_path: str = ""
    """恢复前快照路径"""

    error_kind: Optional[ErrorKind] = None
    """失败时的错误类型"""

    errors: List[str] = field(default_factory=list)
    """错误列表"""

    warnings: List[str] = field(default_factory=list)
    """警告列表"""

    duration: float = 0.0
    """耗时（秒）"""

    @property
    def exit_code(self) -> int:
        return 0 if self.success or self.cancelled else 1

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "success": self.success,
            "cancelled": self.cancelled,
            "archive_name": self.archive_name,
            "message": self.message,
            "snapshot_path": self.snapshot_path,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "duration": self.duration,
        }


class BackupStage:
    """备份阶段常量"""

    INITIALIZATION = "initialization"
    CREDENTIALS = "credentials"
    DATABASE_DUMP = "database_dump"
    ARCHIVE = "archive"
    UPLOAD = "upload"
    FINALIZATION = "finalization"


class RestoreStage:
    """恢复阶段常量"""

    SELECTION = "selection"
    DOWNLOAD = "download"
    EXTRACT = "extract"
    DATABASE = "database"
    SNAPSHOT = "snapshot"
    FILES = "files"
    CLEANUP = "cleanup"
    FINALIZATION = "finalization"


__all__ = [
    "ARCHIVE_SUFFIX",
    "DUMP_SUFFIX",
    "DUMP_MARKER",
    "PRE_RESTORE_PREFIX",
    "ErrorKind",
    "BackupError",
    "BackupResult",
    "RestoreResult",
    "BackupStage",
    "RestoreStage",
]
