"""terminal-runner 异常类。

terminal-runner v0.1.0

异常层次：
- TerminalRunnerError: 基础异常
  - ResolutionError / NotFoundError: 命令名解析失败
  - LaunchError: 操作系统无法启动进程
  - NonZeroExitError: 进程已运行但以非零退出码结束
  - WriteError: 写入 stdin 失败

文本解码失败不是异常：Message.text 返回 None。
"""

from __future__ import annotations

__all__ = [
    "TerminalRunnerError",
    "ResolutionError",
    "NotFoundError",
    "LaunchError",
    "NonZeroExitError",
    "WriteError",
]


class TerminalRunnerError(Exception):
    """terminal-runner 基础异常。"""
    pass


class ResolutionError(TerminalRunnerError):
    """命令名解析错误（查找进程缺失、失败或无输出）。"""
    pass


class NotFoundError(ResolutionError):
    """命令未找到。

    Attributes:
        name: 待解析的命令名
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"command not found: {name}")


class LaunchError(TerminalRunnerError):
    """进程启动失败（路径错误、权限不足、工作目录不存在等）。

    Attributes:
        executable: 可执行文件路径
        reason: 失败原因
    """

    def __init__(self, executable: str, reason: str) -> None:
        self.executable = executable
        self.reason = reason
        super().__init__(f"failed to launch {executable}: {reason}")


class NonZeroExitError(TerminalRunnerError):
    """进程以非零退出码结束。

    Attributes:
        exit_code: 进程退出码（POSIX 上被信号 N 终止时为 -N）
    """

    def __init__(self, exit_code: int) -> None:
        self.exit_code = exit_code
        super().__init__(f"process ended with exit code: {exit_code}")


class WriteError(TerminalRunnerError):
    """写入子进程 stdin 失败（已结束、已关闭或管道断开）。"""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"cannot write to stdin: {reason}")
