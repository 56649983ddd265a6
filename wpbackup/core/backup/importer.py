"""备份导入器

负责从备份文件恢复数据库和网站文件
"""

import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger

from ...common import get_backup_timestamp, get_formatted_timestamp
from ...config import BackupSettings
from .archiver import TarArchiver
from .commands import CommandRunner, SubprocessRunner
from .constants import (
    DUMP_MARKER,
    DUMP_SUFFIX,
    BackupError,
    ErrorKind,
    RestoreResult,
    RestoreStage,
)
from .credentials import parse_credentials
from .database import MySQLClient
from .path_manager import PathManager
from .prompts import ConsolePrompter, Prompter
from .remote import RcloneRemote, ensure_rclone_installed
from .selection import (
    choose_menu_entry,
    format_menu,
    latest_by_mtime,
    list_local_archives,
)


def _depth_key(path: Path) -> tuple:
    return (len(path.parts), str(path))


class BackupImporter:
    """备份导入器

    恢复顺序：选择备份 -> 确认 -> 解压 -> 恢复数据库 -> 恢复前快照 -> 替换网站文件
    """

    def __init__(
        self,
        settings: BackupSettings,
        prompter: Optional[Prompter] = None,
        runner: Optional[CommandRunner] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """初始化导入器

        Args:
            settings: 运行配置
            prompter: 交互输入，默认使用终端
            runner: 外部命令执行器，默认使用子进程
            clock: 当前时间来源
        """
        self.settings = settings
        self.prompter = prompter or ConsolePrompter()
        self.runner = runner or SubprocessRunner()
        self.clock = clock
        self.path_manager = PathManager(settings)
        self.database = MySQLClient(settings, self.runner)
        self.archiver = TarArchiver(settings, self.runner)

    async def _select_remote_archive(self, remote: RcloneRemote) -> Path:
        """从远程选择并下载备份"""
        self.prompter.show(f"==== 从远程恢复: {remote.name} ====")
        entries = await remote.list_archives()
        if not entries:
            raise BackupError(
                ErrorKind.NO_BACKUPS, f"远程 {remote.remote_dir} 中没有备份文件"
            )

        self.prompter.show("请选择要恢复的备份:")
        for line in format_menu(entries):
            self.prompter.show(line)
        choice = await self.prompter.ask(f"请输入选项 (0-{len(entries)}):")
        entry = choose_menu_entry(entries, choice)
        logger.info(f"已选择备份: {entry.name}")

        return await remote.download(entry.name, self.settings.backup_dir)

    async def _select_local_archive(self) -> Path:
        """从本地备份目录选择备份"""
        entries = list_local_archives(self.settings)
        if not entries:
            raise BackupError(
                ErrorKind.NO_BACKUPS,
                f"{self.settings.backup_dir} 中没有备份文件",
            )

        self.prompter.show("本地可用的备份:")
        for entry in entries:
            modified = entry.modified.astimezone().strftime("%Y-%m-%d %H:%M")
            size = self.path_manager.describe_size(entry.path)
            self.prompter.show(f"  {entry.name}  {size}  {modified}")

        name = await self.prompter.ask(
            f"请输入要恢复的备份文件名（例如 {self.settings.site_name}_2025-08-25_12-00-00.tar.gz）\n"
            "直接回车使用最新的备份:"
        )
        if not name:
            latest = latest_by_mtime(entries)
            logger.info(f"使用最新的备份: {latest.name}")
            return latest.path
        return self.settings.backup_dir / name

    def find_dump_file(self, extract_dir: Path) -> Path:
        """在解压目录中查找数据库导出文件

        优先匹配 *_db_*.sql，其次任意 .sql 文件

        Raises:
            BackupError: 没有找到
        """
        for pattern in (f"*{DUMP_MARKER}*{DUMP_SUFFIX}", f"*{DUMP_SUFFIX}"):
            matches = sorted(
                (p for p in extract_dir.rglob(pattern) if p.is_file()), key=_depth_key
            )
            if matches:
                return matches[0]
        raise BackupError(ErrorKind.DUMP_NOT_FOUND, "备份中没有找到数据库导出文件")

    def find_site_tree(self, extract_dir: Path) -> tuple[Path, bool]:
        """在解压目录中定位网站文件

        Returns:
            (网站文件目录, 是否为平铺结构)

        Raises:
            BackupError: 没有找到网站文件
        """
        candidates = sorted(
            (p for p in extract_dir.rglob(self.settings.wp_dir_name) if p.is_dir()),
            key=_depth_key,
        )
        if candidates:
            return candidates[0], False

        if (extract_dir / self.settings.config_filename).is_file() or (
            extract_dir / "wp-content"
        ).is_dir():
            return extract_dir, True

        raise BackupError(ErrorKind.FILES_NOT_FOUND, "备份中没有找到网站文件")

    def _copy_tree(self, source: Path, dest: Path, flat: bool) -> None:
        """复制网站文件，平铺结构时跳过根目录下的 .sql 文件"""

        def ignore(directory: str, names: list[str]) -> list[str]:
            if not flat or Path(directory) != source:
                return []
            return [n for n in names if n.endswith(DUMP_SUFFIX)]

        shutil.copytree(source, dest, symlinks=True, ignore=ignore, dirs_exist_ok=True)

    def _replace_in_place(self, source: Path, flat: bool) -> None:
        """清空网站目录后复制（存在网站缺失的时间窗口）"""
        wp_dir = self.settings.wp_dir
        wp_dir.mkdir(parents=True, exist_ok=True)
        logger.info("正在删除当前网站文件...")
        for child in wp_dir.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
        logger.info(f"正在复制恢复的文件到 {wp_dir}...")
        self._copy_tree(source, wp_dir, flat)

    def _replace_staged(self, source: Path, flat: bool, timestamp: str) -> None:
        """在同级暂存目录组装文件，再通过重命名替换网站目录"""
        wp_dir = self.settings.wp_dir
        staging = self.path_manager.get_staging_dir(timestamp)
        retired = self.path_manager.get_retired_dir(timestamp)

        logger.info(f"正在暂存恢复的文件: {staging}")
        try:
            self._copy_tree(source, staging, flat)
            if wp_dir.is_dir():
                shutil.copymode(wp_dir, staging)
        except OSError:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        logger.info(f"正在替换网站目录 {wp_dir}...")
        try:
            if wp_dir.exists():
                wp_dir.rename(retired)
            staging.rename(wp_dir)
        except OSError:
            if retired.exists() and not wp_dir.exists():
                retired.rename(wp_dir)
            shutil.rmtree(staging, ignore_errors=True)
            raise

        if retired.exists():
            shutil.rmtree(retired, ignore_errors=True)
            if retired.exists():
                logger.warning(f"旧网站目录未能完全删除: {retired}")

    def replace_site_files(self, source: Path, flat: bool, timestamp: str) -> None:
        """用备份中的文件替换网站目录

        Raises:
            BackupError: 复制失败
        """
        logger.info("正在恢复网站文件...")
        try:
            if self.settings.staged_swap:
                self._replace_staged(source, flat, timestamp)
            else:
                self._replace_in_place(source, flat)
        except OSError as e:
            raise BackupError(ErrorKind.COPY_FAILED, f"复制网站文件失败: {e}") from e

    async def _take_snapshot(self, timestamp: str, result: RestoreResult) -> None:
        """恢复前快照，失败时是否中止由 snapshot_failure_fatal 决定"""
        snapshot_path = self.path_manager.get_snapshot_path(timestamp)
        logger.info(f"正在备份当前网站: {snapshot_path}")
        outcome = await self.archiver.snapshot(snapshot_path)
        if outcome.ok:
            result.snapshot_path = str(snapshot_path)
            return

        message = outcome.failure_message("恢复前快照失败")
        if self.settings.snapshot_failure_fatal:
            raise BackupError(ErrorKind.SNAPSHOT_FAILED, message)
        logger.warning(f"{message}，继续恢复")
        result.warnings.append(message)

    async def _restore_from_archive(
        self,
        archive_path: Path,
        result: RestoreResult,
        progress_callback: Optional[Callable[[str, int, int, str], Any]] = None,
    ) -> None:
        extract_dir = self.path_manager.create_extract_dir()
        try:
            if progress_callback:
                await progress_callback(RestoreStage.EXTRACT, 0, 100, "解压备份...")
            await self.archiver.extract(archive_path, extract_dir)

            dump_file = self.find_dump_file(extract_dir)
            credentials = parse_credentials(self.settings.config_file)

            if progress_callback:
                await progress_callback(RestoreStage.DATABASE, 0, 100, "恢复数据库...")
            await self.database.apply(credentials, dump_file)

            timestamp = get_backup_timestamp(self.clock())
            if progress_callback:
                await progress_callback(
                    RestoreStage.SNAPSHOT, 0, 100, "备份当前网站..."
                )
            await self._take_snapshot(timestamp, result)

            if progress_callback:
                await progress_callback(RestoreStage.FILES, 0, 100, "恢复网站文件...")
            source, flat = self.find_site_tree(extract_dir)
            self.replace_site_files(source, flat, timestamp)
        finally:
            logger.info("正在清理临时文件...")
            shutil.rmtree(extract_dir, ignore_errors=True)

    async def _offer_download_cleanup(self, archive_path: Path) -> None:
        answer = await self.prompter.ask("删除已下载的备份文件？(y/N):")
        if answer in ("y", "Y"):
            archive_path.unlink(missing_ok=True)
            logger.info(f"已删除下载的备份文件: {archive_path}")
        else:
            logger.info(f"保留下载的备份文件: {archive_path}")

    def _report(self, result: RestoreResult, from_remote: bool) -> None:
        wp_dir = self.settings.wp_dir
        logger.info("==== 恢复完成 ====")
        source = "远程" if from_remote else "本地"
        logger.info(f"已从{source}备份恢复: {result.archive_name}")
        if result.snapshot_path:
            logger.info(f"恢复前的网站已备份到: {result.snapshot_path}")
        logger.info(f"恢复完成时间: {get_formatted_timestamp()}")
        logger.info("可能需要修复网站文件权限:")
        logger.info(f"find {wp_dir} -type d -exec chmod 755 {{}} \\;")
        logger.info(f"find {wp_dir} -type f -exec chmod 644 {{}} \\;")
        logger.info(f"chown -R your_user:your_group {wp_dir}")

    async def restore(
        self,
        remote_name: Optional[str] = None,
        progress_callback: Optional[Callable[[str, int, int, str], Any]] = None,
    ) -> RestoreResult:
        """恢复备份

        Args:
            remote_name: rclone 远程名称，None 表示从本地备份恢复
            progress_callback: 进度回调函数 (stage, current, total, message)

        Returns:
            恢复结果
        """
        start_time = time.time()
        result = RestoreResult(success=False)

        try:
            if progress_callback:
                await progress_callback(RestoreStage.SELECTION, 0, 100, "选择备份...")

            remote = None
            if remote_name:
                ensure_rclone_installed(self.settings, self.runner)
                remote = RcloneRemote(self.settings, self.runner, remote_name)
                await remote.ensure_configured()
                if progress_callback:
                    await progress_callback(
                        RestoreStage.DOWNLOAD, 0, 100, "从远程获取备份..."
                    )
                archive_path = await self._select_remote_archive(remote)
            else:
                archive_path = await self._select_local_archive()

            if not archive_path.is_file():
                raise BackupError(
                    ErrorKind.BACKUP_NOT_FOUND, f"备份文件不存在: {archive_path}"
                )
            result.archive_name = archive_path.name

            self.prompter.show("警告: 此操作将覆盖当前的 WordPress 网站文件和数据库。")
            answer = await self.prompter.ask(
                f"确定要从 {archive_path.name} 恢复吗？(yes/no)"
            )
            if answer != self.settings.confirm_token:
                logger.info("已取消恢复")
                result.cancelled = True
                result.message = "已取消恢复"
                result.duration = time.time() - start_time
                return result

            await self._restore_from_archive(archive_path, result, progress_callback)

            if remote:
                if progress_callback:
                    await progress_callback(
                        RestoreStage.CLEANUP, 0, 100, "清理下载的备份..."
                    )
                await self._offer_download_cleanup(archive_path)

            self._report(result, from_remote=remote is not None)

            if progress_callback:
                await progress_callback(RestoreStage.FINALIZATION, 100, 100, "恢复完成")

            result.success = True
            result.message = "恢复成功"

        except BackupError as e:
            logger.error(f"恢复失败: {e.message}")
            result.error_kind = e.kind
            result.message = e.message
            result.errors.append(e.message)

        except Exception as e:
            logger.error(f"恢复备份失败: {e}")
            result.message = f"恢复备份失败: {str(e)}"
            result.errors.append(str(e))

        result.duration = time.time() - start_time
        return result


__all__ = ["BackupImporter"]
