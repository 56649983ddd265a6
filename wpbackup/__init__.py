"""wpbackup - WordPress 备份与恢复工具"""

__version__ = "1.0.0"
