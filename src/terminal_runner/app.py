"""terminal-runner 命令行入口。

用法:
    python -m terminal_runner [--cwd DIR] [--collect] COMMAND [ARGS...]

解析 COMMAND，运行子进程并实时转发 stdout/stderr，
以子进程的退出码退出。
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from .config import Config, get_config
from .errors import LaunchError, NonZeroExitError, NotFoundError
from .runner import Runner
from .runtime.handle import ProcessHandle
from .runtime.message import Message, join_text

__all__ = ["configure_logging", "build_parser", "run", "main"]

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# shell 惯例退出码
EXIT_NOT_FOUND = 127
EXIT_LAUNCH_FAILED = 126
EXIT_INTERRUPTED = 130  # 128 + SIGINT(2)


def configure_logging(config: Config) -> None:
    """配置日志输出。

    - LOG_DEBUG 模式：DEBUG 级别，输出到临时文件
    - 默认模式：INFO 级别，输出到 stderr

    root logger（第三方库）保持 WARNING，只对 terminal_runner 命名空间启用详细日志。
    """
    log_handlers: list[logging.Handler] = []

    if config.log_debug and config.log_file:
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(file_handler)
        log_level = logging.DEBUG
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(stderr_handler)
        log_level = logging.INFO

    logging.basicConfig(
        level=logging.WARNING,
        handlers=log_handlers,
    )
    logging.getLogger("terminal_runner").setLevel(log_level)


def build_parser() -> argparse.ArgumentParser:
    """构建命令行参数解析器。"""
    parser = argparse.ArgumentParser(
        prog="terminal_runner",
        description="Run a command and stream its output.",
    )
    parser.add_argument("--cwd", default=None, help="working directory for the command")
    parser.add_argument(
        "--collect",
        action="store_true",
        help="print the combined output once the command finishes",
    )
    parser.add_argument("command", help="command name or executable path")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="arguments for the command")
    return parser


def _forward(message: Message) -> None:
    """把一个输出块写到对应的标准流。"""
    stream = sys.stdout.buffer if message.is_output else sys.stderr.buffer
    stream.write(message.data)
    stream.flush()


def _exit_status(code: int) -> int:
    """子进程退出码转为本进程退出码（信号 N 对应 128+N）。"""
    return code if code >= 0 else 128 - code


async def run(options: argparse.Namespace) -> int:
    """运行命令并返回退出码。"""
    try:
        runner = await Runner.open(options.command, cwd=options.cwd)
    except NotFoundError as e:
        print(str(e), file=sys.stderr)
        return EXIT_NOT_FOUND

    logger.debug(f"Running {runner} args={options.args}")

    try:
        if options.collect:
            # 失败时也输出已收集的内容
            handle = ProcessHandle(runner.spec, chunk_size=runner.chunk_size).accumulate()
            handle.launch(options.args)
            messages = await handle.drain_all_async()
            text = join_text(messages)
            if text is not None:
                print(text, end="")
            code = handle.returncode
            if code:
                logger.info(f"process ended with exit code: {code}")
            return _exit_status(code or 0)

        handle = runner.launch_with_callback(options.args, _forward)
        await handle.wait_async()
        return 0
    except LaunchError as e:
        print(str(e), file=sys.stderr)
        return EXIT_LAUNCH_FAILED
    except NonZeroExitError as e:
        logger.info(str(e))
        return _exit_status(e.exit_code)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """主入口点。"""
    config = get_config()
    configure_logging(config)

    options = build_parser().parse_args(argv)
    try:
        code = asyncio.run(run(options))
    except KeyboardInterrupt:
        code = EXIT_INTERRUPTED
    sys.exit(code)
