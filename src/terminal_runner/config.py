"""terminal-runner 环境变量配置管理。

环境变量:
    TR_WHICH_PATH: 解析命令名时使用的查找程序
        - 默认 /usr/bin/which（Windows 上为 where）

    TR_CHUNK_SIZE: 每次从 stdout/stderr 读取的最大字节数
        - 默认 65536
        - 限制在 1 到 16 MiB 之间，无效值使用默认值

    TR_TERM_TIMEOUT: terminate() 发送 SIGTERM 后等待的秒数，超时后 kill
        - 默认 2.0 秒
        - 限制在 0.1-60 秒范围

    TR_LOG_DEBUG: 日志调试模式
        - true/1/yes = 开启 (日志输出到临时文件)
        - false/0/no = 关闭 (默认，日志输出到 stderr)
"""

from __future__ import annotations

import os
import sys
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reload_config",
    "DEFAULT_WHICH_PATH",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_TERM_TIMEOUT",
]

DEFAULT_WHICH_PATH = "where" if sys.platform == "win32" else "/usr/bin/which"
DEFAULT_CHUNK_SIZE = 65536
MAX_CHUNK_SIZE = 16 * 1024 * 1024
DEFAULT_TERM_TIMEOUT = 2.0


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """解析布尔值环境变量。"""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_chunk_size(value: str | None) -> int:
    """解析读取块大小环境变量。"""
    if not value:
        return DEFAULT_CHUNK_SIZE
    try:
        size = int(value)
    except ValueError:
        return DEFAULT_CHUNK_SIZE
    return max(1, min(size, MAX_CHUNK_SIZE))


def _parse_term_timeout(value: str | None) -> float:
    """解析终止等待时间环境变量。"""
    if not value:
        return DEFAULT_TERM_TIMEOUT
    try:
        timeout = float(value)
        return max(0.1, min(timeout, 60.0))  # 限制在 0.1-60 秒范围
    except ValueError:
        return DEFAULT_TERM_TIMEOUT


def _generate_log_file_path() -> str:
    """生成日志文件路径。

    Returns:
        临时目录下的日志文件绝对路径
    """
    log_dir = Path(tempfile.gettempdir()) / "terminal-runner"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"tr_debug_{timestamp}.log"

    return str(log_file.resolve())


@dataclass
class Config:
    """terminal-runner 配置。

    Attributes:
        which_path: 命令名查找程序
        chunk_size: 每次读取的最大字节数
        term_timeout: terminate() 等待优雅退出的秒数
        log_debug: 日志调试模式（输出到临时文件）
        log_file: 日志文件路径（当 log_debug=True 时自动设置）
    """

    which_path: str = DEFAULT_WHICH_PATH
    chunk_size: int = DEFAULT_CHUNK_SIZE
    term_timeout: float = DEFAULT_TERM_TIMEOUT
    log_debug: bool = False
    log_file: str | None = None

    def __repr__(self) -> str:
        return (
            f"Config(which_path={self.which_path}, "
            f"chunk_size={self.chunk_size}, "
            f"term_timeout={self.term_timeout}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file})"
        )


def load_config() -> Config:
    """从环境变量加载配置。"""
    log_debug = _parse_bool(os.environ.get("TR_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    return Config(
        which_path=os.environ.get("TR_WHICH_PATH") or DEFAULT_WHICH_PATH,
        chunk_size=_parse_chunk_size(os.environ.get("TR_CHUNK_SIZE")),
        term_timeout=_parse_term_timeout(os.environ.get("TR_TERM_TIMEOUT")),
        log_debug=log_debug,
        log_file=log_file,
    )


# 全局配置实例（延迟加载）
_config: Config | None = None


def get_config() -> Config:
    """获取全局配置实例。"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """重新加载配置（用于测试）。"""
    global _config
    _config = load_config()
    return _config
