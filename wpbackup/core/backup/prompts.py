"""交互输入

选择和确认提示通过 Prompter 接口完成，测试时可替换为预设答案
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from typing import Optional


class Prompter(ABC):
    """交互输入接口"""

    @abstractmethod
    def show(self, line: str = "") -> None:
        """向操作员输出一行文本"""

    @abstractmethod
    async def ask(self, message: str) -> str:
        """显示提示并读取一行输入

        Args:
            message: 提示文本

        Returns:
            输入内容（已去除首尾空白），输入结束时返回空字符串
        """


def _deliver(
    future: asyncio.Future, line: str, error: Optional[BaseException]
) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(line)


def _read_line(loop: asyncio.AbstractEventLoop, future: asyncio.Future) -> None:
    """在守护线程中阻塞读取一行，结果交回事件循环"""
    line, error = "", None
    try:
        line = input()
    except EOFError:
        pass
    except Exception as e:
        error = e

    if loop.is_closed():
        return
    loop.call_soon_threadsafe(_deliver, future, line, error)


class ConsolePrompter(Prompter):
    """终端交互

    读取线程为守护线程，Ctrl-C 取消等待后进程可以直接退出
    """

    def show(self, line: str = "") -> None:
        print(line, flush=True)

    async def ask(self, message: str) -> str:
        print(message, flush=True)
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        reader = threading.Thread(
            target=_read_line,
            args=(loop, future),
            name="wpbackup-stdin",
            daemon=True,
        )
        reader.start()
        answer = await future
        return answer.strip()


__all__ = ["Prompter", "ConsolePrompter"]
