"""MySQL 导出与导入

通过 mysqldump / mysql 子进程完成，凭据写入临时选项文件，
避免密码出现在进程列表中
"""

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from loguru import logger

from ...config import BackupSettings
from .commands import CommandRunner
from .constants import BackupError, ErrorKind
from .credentials import DatabaseCredentials


def _quote_option(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class MySQLClient:
    """MySQL 客户端工具封装"""

    def __init__(self, settings: BackupSettings, runner: CommandRunner):
        self.settings = settings
        self.runner = runner

    def effective_credentials(
        self, credentials: DatabaseCredentials
    ) -> DatabaseCredentials:
        """应用主机覆盖设置"""
        if self.settings.db_host_override:
            return credentials.with_host(self.settings.db_host_override)
        return credentials

    @contextmanager
    def _options_file(self, credentials: DatabaseCredentials) -> Iterator[Path]:
        """生成仅当前用户可读的 [client] 选项文件"""
        self.settings.scratch_dir.mkdir(parents=True, exist_ok=True)
        # mkstemp 创建的文件权限为 0600
        fd, name = tempfile.mkstemp(
            prefix="wpbackup_my_", suffix=".cnf", dir=self.settings.scratch_dir
        )
        path = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write("[client]\n")
                f.write(f"user={_quote_option(credentials.user)}\n")
                f.write(f"password={_quote_option(credentials.password)}\n")
                f.write(f"host={_quote_option(credentials.host)}\n")
            yield path
        finally:
            path.unlink(missing_ok=True)

    async def dump(self, credentials: DatabaseCredentials, output_path: Path) -> None:
        """导出数据库

        Args:
            credentials: 数据库凭据
            output_path: 导出文件路径

        Raises:
            BackupError: mysqldump 失败
        """
        credentials = self.effective_credentials(credentials)
        logger.info(f"正在备份数据库: {credentials.name}")

        with self._options_file(credentials) as options:
            result = await self.runner.run(
                [
                    self.settings.mysqldump_bin,
                    f"--defaults-extra-file={options}",
                    credentials.name,
                ],
                stdout_path=output_path,
            )

        if not result.ok:
            output_path.unlink(missing_ok=True)
            raise BackupError(
                ErrorKind.DUMP_FAILED,
                result.failure_message("数据库备份失败"),
            )
        logger.info(f"数据库备份成功: {output_path}")

    async def apply(self, credentials: DatabaseCredentials, dump_path: Path) -> None:
        """将导出文件导入数据库

        Args:
            credentials: 数据库凭据
            dump_path: SQL 文件路径

        Raises:
            BackupError: mysql 执行失败
        """
        credentials = self.effective_credentials(credentials)
        logger.info(f"正在恢复数据库: {credentials.name}")

        with self._options_file(credentials) as options:
            result = await self.runner.run(
                [
                    self.settings.mysql_bin,
                    f"--defaults-extra-file={options}",
                    credentials.name,
                ],
                stdin_path=dump_path,
            )

        if not result.ok:
            raise BackupError(
                ErrorKind.DB_RESTORE_FAILED,
                result.failure_message("数据库恢复失败"),
            )
        logger.info("数据库恢复成功")


__all__ = ["MySQLClient"]
