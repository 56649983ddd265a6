"""wpbackup 配置管理

提供不可变运行配置、配置 Schema 和验证器
"""

from .schema import (
    SETTINGS_SCHEMA,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_FALLBACK_EXCLUDE_PATTERNS,
)
from .settings import BackupSettings, load_settings
from .validator import ConfigValidationError, ConfigValidator

__all__ = [
    "SETTINGS_SCHEMA",
    "DEFAULT_EXCLUDE_PATTERNS",
    "DEFAULT_FALLBACK_EXCLUDE_PATTERNS",
    "BackupSettings",
    "load_settings",
    "ConfigValidationError",
    "ConfigValidator",
]
