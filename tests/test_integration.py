"""使用真实 GNU tar 的备份恢复集成测试

mysqldump / mysql 由假实现代替，tar 通过子进程真实执行
"""

import shutil
import subprocess
import tarfile
from datetime import datetime
from pathlib import Path

import pytest

from fakes import ScriptedPrompter
from test_credentials import WP_CONFIG
from wpbackup.config import BackupSettings
from wpbackup.core.backup import BackupExporter, BackupImporter, SubprocessRunner
from wpbackup.core.backup.commands import CommandResult


def _gnu_tar_available() -> bool:
    tar = shutil.which("tar")
    if not tar:
        return False
    try:
        output = subprocess.run(
            [tar, "--version"], capture_output=True, text=True, check=False
        ).stdout
    except OSError:
        return False
    return "GNU tar" in output


pytestmark = pytest.mark.skipif(not _gnu_tar_available(), reason="需要 GNU tar")

DUMP_SQL = "-- MySQL dump\nINSERT INTO wp_options VALUES ('siteurl');\n"


class DatabaseStubRunner(SubprocessRunner):
    """真实执行 tar，模拟 mysqldump 和 mysql"""

    def __init__(self):
        self.applied: list[str] = []

    async def run(self, args, cwd=None, stdin_path=None, stdout_path=None, stream=False):
        program = Path(args[0]).name
        if program == "mysqldump":
            Path(stdout_path).write_text(DUMP_SQL, encoding="utf-8")
            return CommandResult(args=list(args), returncode=0)
        if program == "mysql":
            self.applied.append(Path(stdin_path).read_text(encoding="utf-8"))
            return CommandResult(args=list(args), returncode=0)
        return await super().run(
            args, cwd=cwd, stdin_path=stdin_path, stdout_path=stdout_path, stream=stream
        )

    def which(self, program):
        if Path(program).name in ("mysqldump", "mysql"):
            return f"/usr/bin/{program}"
        return super().which(program)


@pytest.fixture
def site(tmp_path):
    """创建包含缓存和日志文件的网站"""
    wp_dir = tmp_path / "public_html"
    files = {
        "wp-config.php": WP_CONFIG,
        "index.php": "<?php // index",
        "wp-content/themes/foo/functions.php": "<?php // theme",
        "wp-content/cache/page.html": "cached",
        "wp-content/uploads/2025/photo.jpg": "jpeg",
        "wp-content/debug.log": "debug",
        "error.log": "errors",
        "notes.tmp": "temp",
    }
    for relative, content in files.items():
        path = wp_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return tmp_path


@pytest.fixture
def settings(site):
    return BackupSettings(home=site, scratch_dir=site / "scratch")


def archive_members(path: Path) -> set[str]:
    with tarfile.open(path, "r:gz") as archive:
        return {name.rstrip("/") for name in archive.getnames()}


class TestRealTar:
    """测试真实 tar 的打包和恢复"""

    @pytest.mark.asyncio
    async def test_backup_excludes_patterns(self, settings):
        """测试排除列表生效且数据库导出位于归档根目录"""
        exporter = BackupExporter(
            settings,
            runner=DatabaseStubRunner(),
            clock=lambda: datetime(2025, 8, 25, 4, 23, 51),
        )

        result = await exporter.export()

        assert result.success, result.errors
        members = archive_members(Path(result.archive_path))
        assert "public_html/wp-config.php" in members
        assert "public_html/wp-content/themes/foo/functions.php" in members
        assert "public_html/wp-content/uploads/2025/photo.jpg" in members
        assert "wordpress_db_2025-08-25_04-23-51.sql" in members
        assert not any("wp-content/cache" in m for m in members)
        assert not any(m.endswith(".log") for m in members)
        assert not any(m.endswith(".tmp") for m in members)

        assert not settings.exclude_file.exists()
        assert not list(settings.scratch_dir.glob("*.sql"))

    @pytest.mark.asyncio
    async def test_backup_then_restore(self, settings):
        """测试备份后修改网站，再恢复回备份时的状态"""
        runner = DatabaseStubRunner()
        exporter = BackupExporter(
            settings, runner=runner, clock=lambda: datetime(2025, 8, 25, 4, 23, 51)
        )
        backup = await exporter.export()
        assert backup.success, backup.errors

        wp_dir = settings.wp_dir
        (wp_dir / "index.php").write_text("<?php // hacked", encoding="utf-8")
        (wp_dir / "wp-content" / "themes" / "foo" / "functions.php").unlink()
        (wp_dir / "added-later.php").write_text("new", encoding="utf-8")

        importer = BackupImporter(
            settings,
            prompter=ScriptedPrompter(["", "yes"]),
            runner=runner,
            clock=lambda: datetime(2025, 9, 1, 10, 0, 0),
        )
        result = await importer.restore()

        assert result.success, result.errors
        assert runner.applied == [DUMP_SQL]
        assert (wp_dir / "index.php").read_text(encoding="utf-8") == "<?php // index"
        assert (wp_dir / "wp-content" / "themes" / "foo" / "functions.php").exists()
        assert not (wp_dir / "added-later.php").exists()
        assert not (wp_dir / "wp-content" / "cache").exists()

        snapshot = Path(result.snapshot_path)
        assert snapshot.name == "pre_restore_2025-09-01_10-00-00.tar.gz"
        assert "public_html/added-later.php" in archive_members(snapshot)

        assert not list(settings.scratch_dir.glob("wp_restore_*"))
        assert not list(settings.home.glob(".public_html.*"))
