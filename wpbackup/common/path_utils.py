"""路径工具函数

提供路径操作的辅助函数。
"""

from pathlib import Path


def ensure_dir(directory: Path) -> bool:
    """确保目录存在

    Args:
        directory: 目录路径

    Returns:
        目录是否为本次新建
    """
    if not isinstance(directory, Path):
        directory = Path(directory)
    if directory.is_dir():
        return False
    directory.mkdir(parents=True, exist_ok=True)
    return True
