"""wpbackup 命令行入口

wp-backup  [--gdrive=REMOTE]   创建备份，可选上传到 rclone 远程
wp-restore [--gdrive=REMOTE]   从本地或 rclone 远程恢复备份
"""

import argparse
import asyncio
import sys
from typing import Mapping, Optional, Sequence

from loguru import logger

from .config import BackupSettings, ConfigValidationError, load_settings
from .core.backup import (
    BackupError,
    BackupExporter,
    BackupImporter,
    CommandRunner,
    ErrorKind,
    Prompter,
    SubprocessRunner,
    ensure_rclone_installed,
    list_configured_remotes,
)

COMMANDS = {
    "backup": {
        "prog": "wp-backup",
        "title": "WordPress 备份工具",
        "gdrive": "将备份上传到 rclone 远程（如 Google Drive）",
        "local": "只创建本地备份",
        "remote": "创建备份并上传到远程 'ndev'",
    },
    "restore": {
        "prog": "wp-restore",
        "title": "WordPress 恢复工具",
        "gdrive": "从 rclone 远程列出并恢复备份",
        "local": "只从本地备份恢复",
        "remote": "从远程 'ndev' 列出并恢复备份",
    },
}

LOG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> <level>[{level}]</level> {message}"


class UsageError(Exception):
    """命令行参数错误"""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):
        raise UsageError(message)


def build_parser(command: str) -> argparse.ArgumentParser:
    """构建命令行解析器"""
    parser = _ArgumentParser(
        prog=COMMANDS[command]["prog"],
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument("--gdrive", dest="remote", metavar="REMOTE", default=None)
    parser.add_argument("-h", "--help", action="store_true", dest="show_help")
    return parser


def setup_logging(settings: BackupSettings) -> None:
    """配置 loguru 输出"""
    logger.remove()
    logger.add(
        sys.stdout,
        format=LOG_FORMAT,
        level=settings.log_level,
        colorize=True,
    )
    if settings.log_file:
        logger.add(
            settings.log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} [{level}] {message}",
            level=settings.log_level,
            rotation="10 MB",
            encoding="utf-8",
        )


def print_usage(command: str, argument: str) -> None:
    prog = COMMANDS[command]["prog"]
    print(f"未知参数: {argument}")
    print(f"用法: {prog} [--gdrive=REMOTE]")
    print("使用 --help 查看更多信息")


def parse_arguments(command: str, argv: Sequence[str]) -> argparse.Namespace:
    """按顺序解析命令行参数

    只接受 --gdrive=REMOTE 形式；遇到 --help/-h 后忽略其余参数，
    在此之前出现的未知参数会打印用法

    Raises:
        BackupError: 参数无效
    """
    accepted = []
    for token in argv:
        if token in ("-h", "--help"):
            accepted.append(token)
            break
        if not token.startswith("--gdrive="):
            print_usage(command, token)
            raise BackupError(ErrorKind.INVALID_ARGUMENT, f"未知参数: {token}")
        accepted.append(token)

    try:
        return build_parser(command).parse_args(accepted)
    except UsageError as e:
        print_usage(command, " ".join(accepted))
        raise BackupError(ErrorKind.INVALID_ARGUMENT, f"参数错误: {e}") from e


def read_settings(env: Optional[Mapping[str, str]] = None) -> BackupSettings:
    """加载配置，覆盖文件无效时转换为 BackupError"""
    try:
        return load_settings(env)
    except (ConfigValidationError, ValueError) as e:
        raise BackupError(ErrorKind.SETTINGS_INVALID, f"配置无效: {e}") from e


async def show_help(
    command: str, settings: BackupSettings, runner: CommandRunner
) -> int:
    """显示帮助信息和已配置的 rclone 远程"""
    info = COMMANDS[command]
    prog = info["prog"]
    help_text = f"""{info["title"]}
用法: {prog} [选项]

选项:
  --gdrive=REMOTE    {info["gdrive"]}
  --help, -h         显示帮助信息

示例:
  {prog}                 {info["local"]}
  {prog} --gdrive=ndev   {info["remote"]}

注意: 备份和恢复没有加锁，请勿对同一站点同时运行多个实例（例如 cron 任务重叠）。

可用的 rclone 远程:"""
    print(help_text)
    remotes = await list_configured_remotes(settings, runner)
    if remotes is None:
        print("  (rclone 未配置)")
    else:
        for name in remotes:
            print(f"{name}:")
    return 0


async def run_command(
    command: str,
    argv: Sequence[str],
    env: Optional[Mapping[str, str]] = None,
    runner: Optional[CommandRunner] = None,
    prompter: Optional[Prompter] = None,
    settings: Optional[BackupSettings] = None,
) -> int:
    """执行 backup 或 restore 命令

    Args:
        command: "backup" 或 "restore"
        argv: 命令行参数（不含程序名）
        env: 环境变量，默认为 os.environ
        runner: 外部命令执行器
        prompter: 交互输入（仅 restore 使用）
        settings: 运行配置，默认由 load_settings 构建

    Returns:
        退出码：0 成功或取消，1 失败
    """
    try:
        args = parse_arguments(command, argv)
        runner = runner or SubprocessRunner()
        if settings is None:
            settings = read_settings(env)
        if args.remote is not None:
            ensure_rclone_installed(settings, runner)
    except BackupError as e:
        logger.error(e.message)
        return 1

    if args.show_help:
        return await show_help(command, settings, runner)

    remote_name = args.remote or None
    if command == "backup":
        exporter = BackupExporter(settings, runner=runner)
        result = await exporter.export(remote_name=remote_name)
    else:
        importer = BackupImporter(settings, prompter=prompter, runner=runner)
        result = await importer.restore(remote_name=remote_name)
    logger.debug(f"执行结果: {result.to_dict()}")
    return result.exit_code


def entry(command: str, argv: Optional[Sequence[str]] = None) -> int:
    """加载配置、配置日志并运行命令"""
    argv = sys.argv[1:] if argv is None else argv
    try:
        settings = read_settings()
    except BackupError as e:
        logger.error(e.message)
        return 1
    setup_logging(settings)

    try:
        return asyncio.run(run_command(command, argv, settings=settings))
    except KeyboardInterrupt:
        logger.info("收到中断信号，临时文件可能需要手动清理")
        return 1


def backup_main() -> None:
    """wp-backup 入口"""
    sys.exit(entry("backup"))


def restore_main() -> None:
    """wp-restore 入口"""
    sys.exit(entry("restore"))


__all__ = [
    "build_parser",
    "parse_arguments",
    "read_settings",
    "setup_logging",
    "show_help",
    "run_command",
    "entry",
    "backup_main",
    "restore_main",
]
