"""wpbackup 运行配置

启动时构建一次的不可变配置对象，传递给所有组件
"""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from loguru import logger

from ..common import read_json_file
from ..core.utils import (
    get_wpbackup_config_file,
    get_wpbackup_home,
    get_wpbackup_scratch_path,
)
from .schema import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_FALLBACK_EXCLUDE_PATTERNS,
)
from .validator import ConfigValidator


@dataclass(frozen=True)
class BackupSettings:
    """备份/恢复配置"""

    home: Path
    """站点所在主目录"""

    scratch_dir: Path
    """临时工作目录（数据库导出文件、解压目录、MySQL 选项文件）"""

    site_name: str = "wordpress"
    """站点标识，用于备份文件名和远程子路径"""

    wp_dir_name: str = "public_html"
    """网站文件目录名（位于主目录下）"""

    config_filename: str = "wp-config.php"
    """网站配置文件名"""

    backup_dir_name: str = "backups"
    """本地备份目录名"""

    tmp_dir_name: str = "tmp"
    """排除列表所在目录名"""

    db_host_override: Optional[str] = "127.0.0.1"
    """导出/导入时使用的数据库主机，None 表示使用配置文件中的 DB_HOST"""

    confirm_token: str = "yes"
    """恢复前确认所需的输入"""

    snapshot_failure_fatal: bool = False
    """恢复前快照失败时是否中止恢复"""

    staged_swap: bool = True
    """是否先在暂存目录组装文件再整体替换"""

    exclude_patterns: tuple[str, ...] = field(
        default_factory=lambda: tuple(DEFAULT_EXCLUDE_PATTERNS)
    )
    """打包排除列表"""

    fallback_exclude_patterns: tuple[str, ...] = field(
        default_factory=lambda: tuple(DEFAULT_FALLBACK_EXCLUDE_PATTERNS)
    )
    """重试时使用的精简排除列表"""

    mysqldump_bin: str = "mysqldump"
    mysql_bin: str = "mysql"
    tar_bin: str = "tar"
    rclone_bin: str = "rclone"

    log_level: str = "INFO"
    """日志级别"""

    log_file: Optional[str] = None
    """日志文件路径，None 表示只输出到终端"""

    @property
    def wp_dir(self) -> Path:
        return self.home / self.wp_dir_name

    @property
    def config_file(self) -> Path:
        return self.wp_dir / self.config_filename

    @property
    def backup_dir(self) -> Path:
        return self.home / self.backup_dir_name

    @property
    def tmp_dir(self) -> Path:
        return self.home / self.tmp_dir_name

    @property
    def exclude_file(self) -> Path:
        return self.tmp_dir / "wp-backup-exclude.txt"

    @property
    def remote_subpath(self) -> str:
        """远程存储子路径"""
        return f"backups/{self.site_name}"

    @property
    def archive_glob(self) -> str:
        """本地备份文件匹配模式"""
        return f"{self.site_name}_*.tar.gz"

    def with_overrides(self, overrides: Mapping[str, Any]) -> "BackupSettings":
        """返回应用覆盖项后的新配置

        Args:
            overrides: 覆盖项（已通过 Schema 验证）

        Returns:
            新的配置对象
        """
        known = {f.name for f in fields(self)}
        values: dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in known:
                continue
            if key in ("exclude_patterns", "fallback_exclude_patterns"):
                value = tuple(value)
            elif key == "scratch_dir":
                value = Path(os.path.expanduser(value))
            values[key] = value
        return replace(self, **values)


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> BackupSettings:
    """构建运行配置

    顺序：内置默认值 -> 配置覆盖文件 -> 环境变量

    Args:
        env: 环境变量，默认为 os.environ
        home: 主目录，默认由 WPBACKUP_HOME 或用户主目录决定

    Returns:
        配置对象

    Raises:
        ConfigValidationError: 配置覆盖文件或 WPBACKUP_LOG_LEVEL 不符合 Schema
        ValueError: 配置覆盖文件不是合法的 JSON
    """
    env = os.environ if env is None else env
    home_path = Path(home) if home is not None else Path(get_wpbackup_home(env))

    settings = BackupSettings(
        home=home_path,
        scratch_dir=Path(get_wpbackup_scratch_path(env)),
    )

    config_file = Path(get_wpbackup_config_file(str(home_path), env))
    if config_file.is_file():
        data = read_json_file(config_file)
        ConfigValidator().validate(data, source=config_file.name)
        settings = settings.with_overrides(data)
        logger.debug(f"已加载配置覆盖文件: {config_file}")

    if level := env.get("WPBACKUP_LOG_LEVEL"):
        overrides = {"log_level": level.strip().upper()}
        ConfigValidator().validate(overrides, source="WPBACKUP_LOG_LEVEL")
        settings = settings.with_overrides(overrides)

    return settings


__all__ = ["BackupSettings", "load_settings"]
