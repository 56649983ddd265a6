"""路径管理器

统一管理备份系统需要的所有路径，避免硬编码
"""

import tempfile
from pathlib import Path

from loguru import logger

from ...common import ensure_dir, format_size
from ...config import BackupSettings
from .constants import ARCHIVE_SUFFIX, DUMP_MARKER, DUMP_SUFFIX, PRE_RESTORE_PREFIX


class PathManager:
    """路径管理器

    所有路径均由 BackupSettings 推导
    """

    def __init__(self, settings: BackupSettings):
        """初始化路径管理器

        Args:
            settings: 运行配置
        """
        self.settings = settings

    @property
    def backup_dir(self) -> Path:
        return self.settings.backup_dir

    @property
    def wp_dir(self) -> Path:
        return self.settings.wp_dir

    def ensure_backup_dir(self) -> None:
        """确保本地备份目录存在"""
        if ensure_dir(self.backup_dir):
            logger.info(f"已创建备份目录: {self.backup_dir}")

    def get_archive_path(self, timestamp: str) -> Path:
        """获取备份文件路径

        Args:
            timestamp: 备份时间戳

        Returns:
            <backup_dir>/<site>_<timestamp>.tar.gz
        """
        return self.backup_dir / f"{self.settings.site_name}_{timestamp}{ARCHIVE_SUFFIX}"

    def get_dump_path(self, timestamp: str) -> Path:
        """获取临时数据库导出文件路径

        Args:
            timestamp: 备份时间戳

        Returns:
            <scratch>/<site>_db_<timestamp>.sql
        """
        return (
            self.settings.scratch_dir
            / f"{self.settings.site_name}{DUMP_MARKER}{timestamp}{DUMP_SUFFIX}"
        )

    def get_snapshot_path(self, timestamp: str) -> Path:
        """获取恢复前快照路径"""
        return self.backup_dir / f"{PRE_RESTORE_PREFIX}{timestamp}{ARCHIVE_SUFFIX}"

    def create_extract_dir(self) -> Path:
        """在临时工作目录下创建新的解压目录"""
        ensure_dir(self.settings.scratch_dir)
        return Path(tempfile.mkdtemp(prefix="wp_restore_", dir=self.settings.scratch_dir))

    def get_staging_dir(self, timestamp: str) -> Path:
        """与网站目录同级的暂存目录"""
        return self.wp_dir.with_name(f".{self.wp_dir.name}.restore-{timestamp}")

    def get_retired_dir(self, timestamp: str) -> Path:
        """替换时旧网站目录的临时名称"""
        return self.wp_dir.with_name(f".{self.wp_dir.name}.old-{timestamp}")

    def describe_size(self, path: Path) -> str:
        """获取文件大小的可读描述"""
        try:
            return format_size(path.stat().st_size)
        except OSError:
            return "未知"


__all__ = ["PathManager"]
