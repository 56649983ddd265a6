"""wpbackup 入口文件

python main.py backup  [--gdrive=REMOTE]
python main.py restore [--gdrive=REMOTE]
"""

import sys

from loguru import logger

from wpbackup import __version__
from wpbackup.cli import entry


def show_help() -> int:
    """显示帮助信息"""
    help_text = """
wpbackup - WordPress 备份与恢复工具

用法:
    python main.py <命令> [选项]

可用命令:
    backup           创建备份（可选 --gdrive=REMOTE 上传）
    restore          恢复备份（可选 --gdrive=REMOTE 从远程恢复）
    version, -v      显示版本信息
    help, -h         显示帮助信息

使用 python main.py backup --help 查看命令选项
"""
    print(help_text)
    return 0


def main(argv=None) -> int:
    """主函数：分派到 backup / restore 命令"""
    argv = sys.argv[1:] if argv is None else list(argv)
    if not argv or argv[0] in ("help", "-h", "--help"):
        return show_help()
    if argv[0] in ("version", "-v", "--version"):
        print(f"wpbackup {__version__}")
        return 0
    if argv[0] in ("backup", "restore"):
        return entry(argv[0], argv[1:])

    logger.error(f"未知命令: {argv[0]}")
    show_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
