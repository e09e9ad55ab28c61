"""terminal-runner - 异步子进程执行引擎。

启动子进程，实时流式转发 stdout/stderr，并通过 future 风格的句柄报告状态和退出码。

环境变量:
    TR_WHICH_PATH: 命令名查找程序 (默认 /usr/bin/which)
    TR_CHUNK_SIZE: 每次读取的最大字节数 (默认 65536)
    TR_TERM_TIMEOUT: terminate() 的优雅退出等待时间 (默认 2.0)
    TR_LOG_DEBUG: 日志调试模式 (默认 false)

用法:
    from terminal_runner import Runner, join_text

    runner = Runner.for_command("ls")
    print(join_text(runner.invoke_and_collect("-la")))
"""

__version__ = "0.1.0"

from .errors import (
    LaunchError,
    NonZeroExitError,
    NotFoundError,
    ResolutionError,
    TerminalRunnerError,
    WriteError,
)
from .runner import Runner
from .runtime import (
    CompletionSignal,
    ExecutableResolver,
    LaunchSpec,
    Message,
    MessageCollector,
    MessageKind,
    ProcessHandle,
    Status,
    StatusKind,
    StreamMultiplexer,
    join_messages,
    join_text,
)

__all__ = [
    "__version__",
    "CompletionSignal",
    "ExecutableResolver",
    "LaunchError",
    "LaunchSpec",
    "Message",
    "MessageCollector",
    "MessageKind",
    "NonZeroExitError",
    "NotFoundError",
    "ProcessHandle",
    "ResolutionError",
    "Runner",
    "Status",
    "StatusKind",
    "StreamMultiplexer",
    "TerminalRunnerError",
    "WriteError",
    "join_messages",
    "join_text",
]
