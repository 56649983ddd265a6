"""备份导出器

导出数据库、打包网站文件，可选上传到 rclone 远程
"""

import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger

from ...common import get_backup_timestamp
from ...config import BackupSettings
from .archiver import TarArchiver
from .commands import CommandRunner, SubprocessRunner
from .constants import BackupError, BackupResult, BackupStage
from .credentials import DatabaseCredentials, parse_credentials
from .database import MySQLClient
from .path_manager import PathManager
from .remote import RcloneRemote, ensure_rclone_installed
from .selection import list_local_archives


class BackupExporter:
    """备份导出器

    备份内容：
    - 网站目录（应用排除列表）
    - 数据库导出文件（<site>_db_<timestamp>.sql，位于归档根目录）
    """

    def __init__(
        self,
        settings: BackupSettings,
        runner: Optional[CommandRunner] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """初始化导出器

        Args:
            settings: 运行配置
            runner: 外部命令执行器，默认使用子进程
            clock: 当前时间来源
        """
        self.settings = settings
        self.runner = runner or SubprocessRunner()
        self.clock = clock
        self.path_manager = PathManager(settings)
        self.database = MySQLClient(settings, self.runner)
        self.archiver = TarArchiver(settings, self.runner)

    async def _prepare_remote(self, remote_name: str) -> RcloneRemote:
        ensure_rclone_installed(self.settings, self.runner)
        remote = RcloneRemote(self.settings, self.runner, remote_name)
        await remote.ensure_configured()
        return remote

    async def _create_archive(
        self, credentials: DatabaseCredentials, timestamp: str
    ) -> tuple[Path, bool]:
        """导出数据库并打包

        Returns:
            (备份文件路径, 是否使用了重试)
        """
        dump_path = self.path_manager.get_dump_path(timestamp)
        archive_path = self.path_manager.get_archive_path(timestamp)
        dump_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            await self.database.dump(credentials, dump_path)
            used_fallback = await self.archiver.create_backup(archive_path, dump_path)
        finally:
            dump_path.unlink(missing_ok=True)
        return archive_path, used_fallback

    def _report_local_archives(self) -> None:
        logger.info("可用的备份:")
        for entry in list_local_archives(self.settings):
            logger.info(
                f"  {entry.name}  {self.path_manager.describe_size(entry.path)}"
            )

    async def export(
        self,
        remote_name: Optional[str] = None,
        progress_callback: Optional[Callable[[str, int, int, str], Any]] = None,
    ) -> BackupResult:
        """创建备份

        Args:
            remote_name: rclone 远程名称，None 表示只做本地备份
            progress_callback: 进度回调函数 (stage, current, total, message)

        Returns:
            备份结果
        """
        start_time = time.time()
        result = BackupResult(success=False)

        try:
            if progress_callback:
                await progress_callback(
                    BackupStage.INITIALIZATION, 0, 100, "初始化备份..."
                )

            self.path_manager.ensure_backup_dir()

            remote = None
            if remote_name:
                remote = await self._prepare_remote(remote_name)

            timestamp = get_backup_timestamp(self.clock())
            logger.info("==== 开始备份 WordPress ====")
            logger.info(f"站点: {self.settings.site_name}")
            logger.info(f"时间戳: {timestamp}")

            if progress_callback:
                await progress_callback(
                    BackupStage.CREDENTIALS, 0, 100, "读取数据库配置..."
                )
            credentials = parse_credentials(self.settings.config_file)

            if progress_callback:
                await progress_callback(
                    BackupStage.DATABASE_DUMP, 0, 100, "导出数据库并打包文件..."
                )

            archive_path, used_fallback = await self._create_archive(
                credentials, timestamp
            )
            if used_fallback:
                result.warnings.append("首次打包失败，已使用精简排除列表重试")

            result.archive_path = str(archive_path)
            result.size = archive_path.stat().st_size

            if progress_callback:
                await progress_callback(BackupStage.ARCHIVE, 100, 100, "打包完成")

            logger.info("==== 备份完成 ====")
            logger.info(f"备份文件: {archive_path}")
            logger.info(f"备份大小: {self.path_manager.describe_size(archive_path)}")

            if remote:
                if progress_callback:
                    await progress_callback(
                        BackupStage.UPLOAD, 0, 100, f"上传到 {remote.remote_dir}..."
                    )
                logger.info("==== 上传到远程存储 ====")
                logger.info(f"远程: {remote.name}")
                await remote.mkdir()
                result.remote_path = await remote.upload(archive_path)
                logger.info("==== 远程上传完成 ====")

            self._report_local_archives()

            if progress_callback:
                await progress_callback(BackupStage.FINALIZATION, 100, 100, "备份完成")

            result.success = True
            result.message = "备份创建成功"

        except BackupError as e:
            logger.error(f"备份失败: {e.message}")
            result.error_kind = e.kind
            result.message = e.message
            result.errors.append(e.message)

        except Exception as e:
            logger.error(f"创建备份失败: {e}")
            result.message = f"创建备份失败: {str(e)}"
            result.errors.append(str(e))

        result.duration = time.time() - start_time
        return result


__all__ = ["BackupExporter"]
