"""命令行入口单元测试"""

import pytest

from fakes import FakeRunner, ScriptedPrompter, dump_handler, rclone_handler
from test_credentials import WP_CONFIG
from wpbackup.cli import build_parser, run_command
from wpbackup.config import BackupSettings


@pytest.fixture
def settings(tmp_path):
    wp_dir = tmp_path / "public_html"
    wp_dir.mkdir()
    (wp_dir / "wp-config.php").write_text(WP_CONFIG, encoding="utf-8")
    return BackupSettings(home=tmp_path, scratch_dir=tmp_path / "scratch")


def write_archive(call):
    if "-czf" in call.args:
        with open(call.value_after("-czf"), "wb") as f:
            f.write(b"archive")
    return 0


@pytest.fixture
def runner():
    return (
        FakeRunner()
        .on("mysqldump", dump_handler())
        .on("tar", write_archive)
        .on("rclone", rclone_handler(remotes=["ndev", "gdrive"]))
    )


class TestArgumentParsing:
    """测试参数解析"""

    def test_gdrive_value(self):
        args = build_parser("backup").parse_args(["--gdrive=ndev"])
        assert args.remote == "ndev"
        assert not args.show_help

    def test_defaults(self):
        args = build_parser("restore").parse_args([])
        assert args.remote is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "argv",
        [
            ["--verbose"],
            ["extra"],
            ["--gdrive"],
            ["--gdrive", "ndev"],
            ["--gd=ndev"],
            ["--bogus", "--help"],
        ],
    )
    async def test_unknown_argument(self, settings, runner, capsys, argv):
        """测试未知参数退出码为 1"""
        code = await run_command("backup", argv, runner=runner, settings=settings)

        assert code == 1
        out = capsys.readouterr().out
        assert "未知参数" in out
        assert "wp-backup [--gdrive=REMOTE]" in out
        assert not runner.calls


class TestHelp:
    """测试帮助信息"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["backup", "restore"])
    async def test_help_lists_remotes(self, settings, runner, capsys, command):
        code = await run_command(command, ["--help"], runner=runner, settings=settings)

        assert code == 0
        out = capsys.readouterr().out
        assert "--gdrive=REMOTE" in out
        assert "ndev:" in out
        assert "gdrive:" in out

    @pytest.mark.asyncio
    async def test_help_without_rclone(self, settings, capsys):
        runner = FakeRunner(installed=("tar",))

        code = await run_command("restore", ["-h"], runner=runner, settings=settings)

        assert code == 0
        assert "(rclone 未配置)" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_help_ignores_later_arguments(self, settings, runner, capsys):
        """测试 --help 之后的参数不再检查"""
        code = await run_command(
            "backup", ["--help", "--bogus"], runner=runner, settings=settings
        )

        assert code == 0
        assert "未知参数" not in capsys.readouterr().out

    def test_help_stops_before_remote(self):
        from wpbackup.cli import parse_arguments

        args = parse_arguments("restore", ["-h", "--gdrive=ndev"])

        assert args.show_help
        assert args.remote is None

    @pytest.mark.asyncio
    async def test_remote_check_before_help(self, settings):
        """测试带 --gdrive 时先检查 rclone 是否安装"""
        runner = FakeRunner(installed=("tar",))

        code = await run_command(
            "backup", ["--gdrive=ndev", "--help"], runner=runner, settings=settings
        )

        assert code == 1


class TestCommands:
    """测试命令执行的退出码"""

    @pytest.mark.asyncio
    async def test_local_backup(self, settings, runner):
        code = await run_command("backup", [], runner=runner, settings=settings)

        assert code == 0
        assert len(list(settings.backup_dir.glob("wordpress_*.tar.gz"))) == 1

    @pytest.mark.asyncio
    async def test_remote_backup(self, settings, runner):
        code = await run_command(
            "backup", ["--gdrive=ndev"], runner=runner, settings=settings
        )

        assert code == 0
        copies = [c for c in runner.calls_for("rclone") if c.args[1] == "copy"]
        assert copies[0].args[3] == "ndev:backups/wordpress"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["backup", "restore"])
    async def test_unknown_remote(self, settings, runner, command):
        code = await run_command(
            command,
            ["--gdrive=missing"],
            runner=runner,
            prompter=ScriptedPrompter(),
            settings=settings,
        )

        assert code == 1
        assert not runner.calls_for("mysqldump")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["backup", "restore"])
    async def test_rclone_missing(self, settings, command):
        runner = FakeRunner(installed=("mysqldump", "mysql", "tar"))

        code = await run_command(
            command, ["--gdrive=ndev"], runner=runner, settings=settings
        )

        assert code == 1
        assert not runner.calls

    @pytest.mark.asyncio
    async def test_restore_cancelled(self, settings, runner):
        """测试取消恢复退出码为 0"""
        settings.backup_dir.mkdir()
        (settings.backup_dir / "wordpress_2025-08-25_04-23-51.tar.gz").write_bytes(b"x")
        prompter = ScriptedPrompter(["", "no"])

        code = await run_command(
            "restore", [], runner=runner, prompter=prompter, settings=settings
        )

        assert code == 0
        assert not runner.calls

    @pytest.mark.asyncio
    async def test_restore_without_backups(self, settings, runner):
        code = await run_command(
            "restore", [], runner=runner, prompter=ScriptedPrompter(), settings=settings
        )

        assert code == 1

    @pytest.mark.asyncio
    async def test_settings_from_environment(self, settings, runner, tmp_path):
        """测试未传入配置时从环境变量加载"""
        env = {"WPBACKUP_HOME": str(tmp_path), "WPBACKUP_SCRATCH": str(tmp_path / "s")}

        code = await run_command("backup", [], env=env, runner=runner)

        assert code == 0
        assert list((tmp_path / "backups").glob("wordpress_*.tar.gz"))


class TestMain:
    """测试 main.py 命令分派"""

    def test_version(self, capsys):
        from main import main
        from wpbackup import __version__

        assert main(["version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_help(self, capsys):
        from main import main

        assert main([]) == 0
        assert "backup" in capsys.readouterr().out

    def test_unknown_command(self):
        from main import main

        assert main(["upload"]) == 1


class TestErrorKinds:
    """测试命令行层面的错误类型"""

    def test_invalid_argument(self, capsys):
        from wpbackup.cli import parse_arguments
        from wpbackup.core.backup import BackupError, ErrorKind

        with pytest.raises(BackupError) as exc_info:
            parse_arguments("restore", ["--bogus"])

        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT
        assert "wp-restore" in capsys.readouterr().out

    def test_settings_invalid(self, tmp_path):
        from wpbackup.cli import read_settings
        from wpbackup.core.backup import BackupError, ErrorKind

        (tmp_path / ".wpbackup.json").write_text('{"staged_swap": "no"}', encoding="utf-8")

        with pytest.raises(BackupError) as exc_info:
            read_settings({"WPBACKUP_HOME": str(tmp_path)})

        assert exc_info.value.kind == ErrorKind.SETTINGS_INVALID
        assert "staged_swap" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_invalid_settings_exit_code(self, tmp_path, runner):
        (tmp_path / ".wpbackup.json").write_text("{broken", encoding="utf-8")

        code = await run_command(
            "backup", [], env={"WPBACKUP_HOME": str(tmp_path)}, runner=runner
        )

        assert code == 1
        assert not runner.calls

    def test_unknown_log_level(self, tmp_path):
        """测试环境变量中的未知日志级别报告为配置错误"""
        from wpbackup.cli import read_settings
        from wpbackup.core.backup import BackupError, ErrorKind

        with pytest.raises(BackupError) as exc_info:
            read_settings({"WPBACKUP_HOME": str(tmp_path), "WPBACKUP_LOG_LEVEL": "verbose"})

        assert exc_info.value.kind == ErrorKind.SETTINGS_INVALID
        assert "log_level" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_result_logged_at_debug(self, settings, runner):
        """测试执行结果以 DEBUG 级别记录"""
        from loguru import logger

        messages: list[str] = []
        handler_id = logger.add(messages.append, level="DEBUG", format="{level} {message}")
        try:
            code = await run_command("backup", [], runner=runner, settings=settings)
        finally:
            logger.remove(handler_id)

        assert code == 0
        summary = [m for m in messages if "执行结果" in m]
        assert len(summary) == 1
        assert summary[0].startswith("DEBUG")
        assert "'success': True" in summary[0]
