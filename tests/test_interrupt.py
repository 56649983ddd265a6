"""交互提示中断测试

以子进程运行 main.py restore，在等待输入时发送 SIGINT
"""

import os
import signal
import subprocess
import sys
import threading
import time
from pathlib import Path

import pytest

from test_credentials import WP_CONFIG
from wpbackup.core.backup import ConsolePrompter

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def temp_home(tmp_path):
    wp_dir = tmp_path / "public_html"
    wp_dir.mkdir()
    (wp_dir / "wp-config.php").write_text(WP_CONFIG, encoding="utf-8")
    backups = tmp_path / "backups"
    backups.mkdir()
    (backups / "wordpress_2025-08-25_04-23-51.tar.gz").write_bytes(b"archive")
    return tmp_path


class TestConsolePrompter:
    """测试终端输入"""

    @pytest.mark.asyncio
    async def test_answer_is_stripped(self, monkeypatch, capsys):
        monkeypatch.setattr("builtins.input", lambda: "  yes \n")

        answer = await ConsolePrompter().ask("确定吗？")

        assert answer == "yes"
        assert "确定吗？" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_end_of_input(self, monkeypatch):
        def closed():
            raise EOFError

        monkeypatch.setattr("builtins.input", closed)

        assert await ConsolePrompter().ask("请输入:") == ""

    @pytest.mark.asyncio
    async def test_read_error_propagates(self, monkeypatch):
        def broken():
            raise OSError("stdin closed")

        monkeypatch.setattr("builtins.input", broken)

        with pytest.raises(OSError):
            await ConsolePrompter().ask("请输入:")


@pytest.mark.skipif(sys.platform == "win32", reason="需要 POSIX 信号")
class TestInterruptAtPrompt:
    """测试在提示处按 Ctrl-C 时进程退出"""

    def test_sigint_while_waiting_for_filename(self, temp_home):
        env = dict(os.environ)
        env.update(
            WPBACKUP_HOME=str(temp_home),
            WPBACKUP_SCRATCH=str(temp_home / "scratch"),
            PYTHONIOENCODING="utf-8",
            PYTHONUNBUFFERED="1",
        )
        process = subprocess.Popen(
            [sys.executable, str(PROJECT_ROOT / "main.py"), "restore"],
            cwd=str(PROJECT_ROOT),
            env=env,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
        output: list[str] = []
        prompted = threading.Event()

        def collect():
            for raw in process.stdout:
                line = raw.decode("utf-8", errors="replace")
                output.append(line)
                if "直接回车" in line:
                    prompted.set()

        collector = threading.Thread(target=collect, daemon=True)
        collector.start()

        try:
            assert prompted.wait(timeout=30), "".join(output)
            time.sleep(0.5)
            process.send_signal(signal.SIGINT)
            code = process.wait(timeout=10)
        finally:
            if process.poll() is None:
                process.kill()
                process.wait()
            process.stdin.close()

        assert code == 1
        assert "收到中断信号" in "".join(output)
        assert (temp_home / "public_html" / "wp-config.php").exists()
