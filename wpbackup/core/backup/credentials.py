"""数据库凭据解析

从 wp-config.php 的 define('DB_*', '...') 语句中提取数据库连接信息，
只做简单文本匹配，不解析 PHP
"""

import re
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from .constants import BackupError, ErrorKind

CREDENTIAL_KEYS = {
    "DB_NAME": "name",
    "DB_USER": "user",
    "DB_PASSWORD": "password",
    "DB_HOST": "host",
}

_DEFINE_RE = re.compile(
    r"""define\s*\(\s*(['"])(DB_NAME|DB_USER|DB_PASSWORD|DB_HOST)\1\s*,\s*(['"])(.*?)\3\s*\)""",
    re.IGNORECASE,
)

_COMMENT_PREFIXES = ("//", "#", "/*", "*")


@dataclass(frozen=True)
class DatabaseCredentials:
    """数据库凭据"""

    name: str
    user: str
    password: str
    host: str

    def with_host(self, host: str) -> "DatabaseCredentials":
        return DatabaseCredentials(self.name, self.user, self.password, host)

    def __repr__(self) -> str:
        return (
            f"DatabaseCredentials(name={self.name!r}, user={self.user!r}, "
            f"password='***', host={self.host!r})"
        )


def parse_credentials_text(text: str) -> DatabaseCredentials:
    """从配置文本中解析数据库凭据

    Args:
        text: wp-config.php 内容

    Returns:
        数据库凭据

    Raises:
        BackupError: 任意一项缺失或为空
    """
    found: dict[str, str] = {}
    for line in text.splitlines():
        if line.lstrip().startswith(_COMMENT_PREFIXES):
            continue
        for match in _DEFINE_RE.finditer(line):
            key = match.group(2).upper()
            # 与 grep | head 一致，第一次出现的定义生效
            found.setdefault(key, match.group(4))

    missing = [key for key in CREDENTIAL_KEYS if not found.get(key)]
    if missing:
        raise BackupError(
            ErrorKind.CREDENTIALS_MISSING,
            f"无法从配置文件中提取数据库凭据，缺少: {', '.join(missing)}",
        )

    return DatabaseCredentials(
        **{field_name: found[key] for key, field_name in CREDENTIAL_KEYS.items()}
    )


def parse_credentials(config_path: Path) -> DatabaseCredentials:
    """读取配置文件并解析数据库凭据

    Args:
        config_path: wp-config.php 路径

    Returns:
        数据库凭据

    Raises:
        BackupError: 配置文件不存在或凭据不完整
    """
    if not config_path.is_file():
        raise BackupError(
            ErrorKind.CONFIG_NOT_FOUND, f"未找到配置文件: {config_path}"
        )

    text = config_path.read_text(encoding="utf-8", errors="replace")
    credentials = parse_credentials_text(text)
    logger.debug(f"已读取数据库凭据: {credentials!r}")
    return credentials


__all__ = [
    "CREDENTIAL_KEYS",
    "DatabaseCredentials",
    "parse_credentials",
    "parse_credentials_text",
]
