"""外部命令执行

所有外部工具（mysqldump、mysql、tar、rclone）都通过 CommandRunner 调用，
测试时可替换为假实现
"""

import asyncio
import shlex
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger


@dataclass
class CommandResult:
    """命令执行结果"""

    args: list[str]
    """命令参数"""

    returncode: int
    """退出码"""

    stdout: str = ""
    """标准输出（stream 或 stdout_path 模式下为空）"""

    stderr: str = ""
    """标准错误（stream 模式下为空）"""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def stderr_tail(self, limit: int = 5) -> str:
        """标准错误的最后几行非空内容"""
        lines = [line.strip() for line in self.stderr.splitlines() if line.strip()]
        return "\n".join(lines[-limit:])

    def failure_message(self, action: str) -> str:
        """生成包含退出码和错误输出的失败信息

        Args:
            action: 失败的操作，如 "数据库备份失败"

        Returns:
            形如 "数据库备份失败 (退出码 2): mysqldump: Access denied" 的文本
        """
        message = f"{action} (退出码 {self.returncode})"
        tail = self.stderr_tail()
        if tail:
            message += f": {tail}"
        return message


class CommandRunner(ABC):
    """外部命令执行器接口"""

    @abstractmethod
    async def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        stdin_path: Optional[Path] = None,
        stdout_path: Optional[Path] = None,
        stream: bool = False,
    ) -> CommandResult:
        """执行命令并等待结束

        Args:
            args: 命令及参数
            cwd: 工作目录
            stdin_path: 作为标准输入的文件
            stdout_path: 标准输出写入的文件
            stream: 是否直接输出到终端（用于显示进度）

        Returns:
            命令执行结果
        """

    @abstractmethod
    def which(self, program: str) -> Optional[str]:
        """查找可执行文件

        Args:
            program: 程序名

        Returns:
            可执行文件路径，未安装时返回 None
        """


class SubprocessRunner(CommandRunner):
    """基于 asyncio 子进程的命令执行器"""

    async def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        stdin_path: Optional[Path] = None,
        stdout_path: Optional[Path] = None,
        stream: bool = False,
    ) -> CommandResult:
        args = [str(a) for a in args]
        logger.debug(f"执行命令: {shlex.join(args)}")

        stdin_file = open(stdin_path, "rb") if stdin_path else None
        stdout_file = open(stdout_path, "wb") if stdout_path else None
        try:
            if stdout_file is not None:
                stdout_target = stdout_file
            elif stream:
                stdout_target = None
            else:
                stdout_target = asyncio.subprocess.PIPE

            try:
                process = await asyncio.create_subprocess_exec(
                    *args,
                    cwd=str(cwd) if cwd else None,
                    stdin=stdin_file if stdin_file else asyncio.subprocess.DEVNULL,
                    stdout=stdout_target,
                    stderr=None if stream else asyncio.subprocess.PIPE,
                )
            except FileNotFoundError as e:
                logger.error(f"无法执行 {args[0]}: {e}")
                return CommandResult(args=args, returncode=127, stderr=str(e))

            out, err = await process.communicate()
        finally:
            if stdin_file:
                stdin_file.close()
            if stdout_file:
                stdout_file.close()

        result = CommandResult(
            args=args,
            returncode=process.returncode,
            stdout=out.decode("utf-8", errors="replace") if out else "",
            stderr=err.decode("utf-8", errors="replace") if err else "",
        )
        if result.stderr.strip():
            logger.debug(f"{args[0]} stderr: {result.stderr.strip()}")
        return result

    def which(self, program: str) -> Optional[str]:
        return shutil.which(program)


__all__ = ["CommandResult", "CommandRunner", "SubprocessRunner"]
