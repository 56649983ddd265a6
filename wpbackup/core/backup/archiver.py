"""tar 归档封装

打包网站目录和数据库导出文件、解压备份、生成恢复前快照
"""

from pathlib import Path
from typing import Iterable

from loguru import logger

from ...common import ensure_dir
from ...config import BackupSettings
from .commands import CommandResult, CommandRunner
from .constants import BackupError, ErrorKind

TAR_OK_CODES = (0, 1)
"""tar 退出码：0 成功，1 打包期间有文件变化（可接受），其余为致命错误"""


def normalize_pattern(pattern: str) -> str:
    """去掉目录模式末尾的斜杠，tar 按名称匹配目录"""
    stripped = pattern.rstrip("/")
    return stripped or pattern


class TarArchiver:
    """tar 归档器"""

    def __init__(self, settings: BackupSettings, runner: CommandRunner):
        self.settings = settings
        self.runner = runner

    def write_exclude_file(self, patterns: Iterable[str]) -> Path:
        """写入 --exclude-from 使用的排除列表

        Args:
            patterns: 排除模式

        Returns:
            排除列表文件路径
        """
        exclude_file = self.settings.exclude_file
        ensure_dir(exclude_file.parent)
        lines = [normalize_pattern(p) for p in patterns]
        exclude_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return exclude_file

    def _create_args(self, archive_path: Path) -> list[str]:
        return [
            self.settings.tar_bin,
            "--warning=no-file-changed",
            "-czf",
            str(archive_path),
        ]

    def _members(self, dump_path: Path) -> list[str]:
        return [
            self.settings.wp_dir.name,
            "-C",
            str(dump_path.parent),
            dump_path.name,
        ]

    async def create_backup(self, archive_path: Path, dump_path: Path) -> bool:
        """打包网站目录和数据库导出文件

        首次失败时使用精简排除列表重试一次

        Args:
            archive_path: 输出的备份文件
            dump_path: 数据库导出文件

        Returns:
            是否使用了重试

        Raises:
            BackupError: 两次打包都失败
        """
        wp_dir = self.settings.wp_dir
        logger.info(f"正在备份网站文件: {wp_dir}")

        exclude_file = self.write_exclude_file(self.settings.exclude_patterns)
        try:
            args = self._create_args(archive_path)
            args.append(f"--exclude-from={exclude_file}")
            args.extend(self._members(dump_path))
            result = await self.runner.run(args, cwd=wp_dir.parent)
            if result.returncode in TAR_OK_CODES:
                logger.info(f"文件备份成功: {archive_path}")
                return False

            logger.error(result.failure_message("文件备份失败"))
            logger.info("使用精简排除列表重试...")

            args = self._create_args(archive_path)
            for pattern in self.settings.fallback_exclude_patterns:
                args.append(f"--exclude={normalize_pattern(pattern)}")
            args.extend(self._members(dump_path))
            result = await self.runner.run(args, cwd=wp_dir.parent)
            if result.returncode in TAR_OK_CODES:
                logger.info("重试备份成功")
                return True

            archive_path.unlink(missing_ok=True)
            raise BackupError(
                ErrorKind.ARCHIVE_FAILED,
                result.failure_message("重试后备份仍然失败"),
            )
        finally:
            exclude_file.unlink(missing_ok=True)

    async def extract(self, archive_path: Path, dest_dir: Path) -> None:
        """解压备份文件

        Raises:
            BackupError: 解压失败
        """
        logger.info("正在解压备份文件...")
        result = await self.runner.run(
            [self.settings.tar_bin, "-xzf", str(archive_path), "-C", str(dest_dir)]
        )
        if not result.ok:
            raise BackupError(
                ErrorKind.EXTRACT_FAILED,
                result.failure_message("解压备份文件失败"),
            )

    async def snapshot(self, snapshot_path: Path) -> CommandResult:
        """打包当前网站目录作为恢复前快照

        Args:
            snapshot_path: 快照文件路径

        Returns:
            tar 执行结果，由调用方决定失败时是否中止
        """
        wp_dir = self.settings.wp_dir
        return await self.runner.run(
            [
                self.settings.tar_bin,
                "-czf",
                str(snapshot_path),
                "-C",
                str(wp_dir.parent),
                wp_dir.name,
            ]
        )


__all__ = ["TAR_OK_CODES", "TarArchiver", "normalize_pattern"]
