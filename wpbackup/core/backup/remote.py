"""rclone 远程存储封装

远程目录结构: <remote>:backups/<site>/<备份文件>
"""

import json
from pathlib import Path
from typing import Optional

from loguru import logger

from ...config import BackupSettings
from .commands import CommandRunner
from .constants import ARCHIVE_SUFFIX, BackupError, ErrorKind
from .selection import ArchiveEntry, parse_modtime, sort_newest_first


def ensure_rclone_installed(settings: BackupSettings, runner: CommandRunner) -> str:
    """检查 rclone 是否已安装

    Returns:
        rclone 可执行文件路径

    Raises:
        BackupError: 未安装 rclone
    """
    path = runner.which(settings.rclone_bin)
    if not path:
        raise BackupError(
            ErrorKind.TOOL_MISSING,
            "必须先安装 rclone: https://rclone.org/install/",
        )
    return path


async def list_configured_remotes(
    settings: BackupSettings, runner: CommandRunner
) -> Optional[list[str]]:
    """列出 rclone 中已配置的远程名称

    Returns:
        远程名称列表（不含结尾冒号），rclone 不可用时返回 None
    """
    if not runner.which(settings.rclone_bin):
        return None
    result = await runner.run([settings.rclone_bin, "listremotes"])
    if not result.ok:
        return None
    names = []
    for line in result.stdout.splitlines():
        line = line.strip()
        if line:
            names.append(line[:-1] if line.endswith(":") else line)
    return names


class RcloneRemote:
    """单个 rclone 远程"""

    def __init__(self, settings: BackupSettings, runner: CommandRunner, name: str):
        self.settings = settings
        self.runner = runner
        self.name = name

    @property
    def remote_dir(self) -> str:
        return f"{self.name}:{self.settings.remote_subpath}"

    def remote_file(self, filename: str) -> str:
        return f"{self.remote_dir}/{filename}"

    async def ensure_configured(self) -> None:
        """确认远程已在 rclone 配置中（名称完全匹配）

        Raises:
            BackupError: 远程不存在
        """
        remotes = await list_configured_remotes(self.settings, self.runner) or []
        if self.name in remotes:
            return

        available = "\n".join(f"  {r}:" for r in remotes) or "  (无)"
        raise BackupError(
            ErrorKind.REMOTE_NOT_FOUND,
            f"rclone 配置中不存在远程 '{self.name}'\n可用的远程:\n{available}",
        )

    async def list_archives(self) -> list[ArchiveEntry]:
        """列出远程备份文件

        Returns:
            备份条目，按备份时间倒序
        """
        result = await self.runner.run(
            [self.settings.rclone_bin, "lsjson", "--files-only", self.remote_dir]
        )
        if not result.ok:
            logger.warning(
                result.failure_message(f"无法列出远程目录 {self.remote_dir}")
            )
            return []

        try:
            items = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as e:
            logger.warning(f"无法解析 rclone 输出: {e}")
            return []

        entries = []
        for item in items:
            name = item.get("Name") or item.get("Path") or ""
            if item.get("IsDir") or not name.endswith(ARCHIVE_SUFFIX):
                continue
            entries.append(
                ArchiveEntry(
                    name=name,
                    size=int(item.get("Size") or 0),
                    modified=parse_modtime(item.get("ModTime", "")),
                )
            )
        return sort_newest_first(entries)

    async def mkdir(self) -> bool:
        """创建远程备份目录（已存在时 rclone 不报错）"""
        logger.info(f"创建远程目录: {self.remote_dir}")
        result = await self.runner.run(
            [self.settings.rclone_bin, "mkdir", self.remote_dir]
        )
        if not result.ok:
            logger.warning(
                result.failure_message(f"创建远程目录失败: {self.remote_dir}")
            )
        return result.ok

    async def upload(self, archive_path: Path) -> str:
        """上传备份文件

        Returns:
            远程文件路径

        Raises:
            BackupError: 上传失败
        """
        logger.info(f"正在上传备份到 {self.remote_dir}...")
        result = await self.runner.run(
            [
                self.settings.rclone_bin,
                "copy",
                str(archive_path),
                self.remote_dir,
                "--progress",
            ],
            stream=True,
        )
        if not result.ok:
            reason = result.failure_message("上传备份失败")
            raise BackupError(
                ErrorKind.UPLOAD_FAILED,
                f"{reason}，本地备份仍然可用: {archive_path}",
            )
        remote_file = self.remote_file(archive_path.name)
        logger.info(f"✓ 备份已上传: {remote_file}")
        return remote_file

    async def download(self, filename: str, dest_dir: Path) -> Path:
        """下载备份文件到本地目录

        Returns:
            本地文件路径

        Raises:
            BackupError: 下载失败
        """
        dest_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"正在从 {self.remote_dir} 下载 {filename}...")
        result = await self.runner.run(
            [
                self.settings.rclone_bin,
                "copy",
                self.remote_file(filename),
                str(dest_dir),
                "--progress",
            ],
            stream=True,
        )
        local_path = dest_dir / filename
        if not result.ok:
            raise BackupError(
                ErrorKind.DOWNLOAD_FAILED,
                result.failure_message(f"下载备份失败: {filename}"),
            )
        logger.info(f"✓ 备份已下载: {local_path}")
        return local_path


__all__ = ["RcloneRemote", "ensure_rclone_installed", "list_configured_remotes"]
