"""wpbackup 配置 Schema 定义

配置覆盖文件（.wpbackup.json）的 JSON Schema，以及各配置项默认值
"""

DEFAULT_EXCLUDE_PATTERNS = [
    "*.log",
    "*.tmp",
    "cache/",
    "wp-content/cache/",
    "wp-content/uploads/wp-cache-*",
    "wp-content/debug.log",
    "wp-content/upgrade/",
    "wp-content/backup*",
    "wp-content/advanced-cache.php",
    "wp-content/object-cache.php",
    "wp-content/uploads/snapshots/",
    "wp-content/managewp/backups/",
    "wp-content/updraft/",
]
"""首次打包使用的排除列表（写入 --exclude-from 文件）"""

DEFAULT_FALLBACK_EXCLUDE_PATTERNS = [
    "*.log",
    "cache",
    "*.tmp",
    "wp-content/cache",
    "wp-content/uploads/wp-cache-*",
    "wp-content/debug.log",
    "wp-content/upgrade",
    "wp-content/backup*",
]
"""首次打包失败后重试使用的精简排除列表"""

_STRING_LIST = {"type": "array", "items": {"type": "string", "minLength": 1}}

SETTINGS_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "site_name": {"type": "string", "pattern": "^[A-Za-z0-9._-]+$"},
        "wp_dir_name": {"type": "string", "minLength": 1},
        "config_filename": {"type": "string", "minLength": 1},
        "backup_dir_name": {"type": "string", "minLength": 1},
        "tmp_dir_name": {"type": "string", "minLength": 1},
        "scratch_dir": {"type": "string", "minLength": 1},
        "db_host_override": {"type": ["string", "null"]},
        "confirm_token": {"type": "string", "minLength": 1},
        "snapshot_failure_fatal": {"type": "boolean"},
        "staged_swap": {"type": "boolean"},
        "exclude_patterns": _STRING_LIST,
        "fallback_exclude_patterns": _STRING_LIST,
        "mysqldump_bin": {"type": "string", "minLength": 1},
        "mysql_bin": {"type": "string", "minLength": 1},
        "tar_bin": {"type": "string", "minLength": 1},
        "rclone_bin": {"type": "string", "minLength": 1},
        "log_level": {
            "type": "string",
            "enum": ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR"],
        },
        "log_file": {"type": ["string", "null"]},
    },
}
