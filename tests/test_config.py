"""Config 模块测试。

测试 TR_* 环境变量解析和配置管理。
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest import mock

from terminal_runner.config import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_TERM_TIMEOUT,
    DEFAULT_WHICH_PATH,
    MAX_CHUNK_SIZE,
    get_config,
    load_config,
    reload_config,
)

_TR_VARS = ("TR_WHICH_PATH", "TR_CHUNK_SIZE", "TR_TERM_TIMEOUT", "TR_LOG_DEBUG")


def _clean_env() -> dict[str, str]:
    """去掉 TR_* 变量后的环境。"""
    return {k: v for k, v in os.environ.items() if k not in _TR_VARS}


class TestDefaults:
    """测试默认值。"""

    def test_defaults(self):
        """未设置任何变量时使用默认值。"""
        with mock.patch.dict(os.environ, _clean_env(), clear=True):
            config = load_config()
            assert config.which_path == DEFAULT_WHICH_PATH
            assert config.chunk_size == DEFAULT_CHUNK_SIZE
            assert config.term_timeout == DEFAULT_TERM_TIMEOUT
            assert config.log_debug is False
            assert config.log_file is None


class TestWhichPath:
    """测试查找程序配置。"""

    def test_custom_which(self):
        """自定义查找程序。"""
        with mock.patch.dict(os.environ, {"TR_WHICH_PATH": "/opt/bin/which"}, clear=False):
            assert load_config().which_path == "/opt/bin/which"

    def test_empty_means_default(self):
        """空值使用默认值。"""
        with mock.patch.dict(os.environ, {"TR_WHICH_PATH": ""}, clear=False):
            assert load_config().which_path == DEFAULT_WHICH_PATH


class TestChunkSize:
    """测试读取块大小解析。"""

    def test_valid(self):
        with mock.patch.dict(os.environ, {"TR_CHUNK_SIZE": "4096"}, clear=False):
            assert load_config().chunk_size == 4096

    def test_invalid_uses_default(self):
        """无效值使用默认值。"""
        with mock.patch.dict(os.environ, {"TR_CHUNK_SIZE": "lots"}, clear=False):
            assert load_config().chunk_size == DEFAULT_CHUNK_SIZE

    def test_clamped(self):
        """超出范围的值被限制。"""
        with mock.patch.dict(os.environ, {"TR_CHUNK_SIZE": "0"}, clear=False):
            assert load_config().chunk_size == 1
        with mock.patch.dict(os.environ, {"TR_CHUNK_SIZE": str(MAX_CHUNK_SIZE * 2)}, clear=False):
            assert load_config().chunk_size == MAX_CHUNK_SIZE


class TestTermTimeout:
    """测试终止等待时间解析。"""

    def test_valid(self):
        with mock.patch.dict(os.environ, {"TR_TERM_TIMEOUT": "5"}, clear=False):
            assert load_config().term_timeout == 5.0

    def test_clamped(self):
        with mock.patch.dict(os.environ, {"TR_TERM_TIMEOUT": "0.001"}, clear=False):
            assert load_config().term_timeout == 0.1
        with mock.patch.dict(os.environ, {"TR_TERM_TIMEOUT": "999"}, clear=False):
            assert load_config().term_timeout == 60.0

    def test_invalid_uses_default(self):
        with mock.patch.dict(os.environ, {"TR_TERM_TIMEOUT": "soon"}, clear=False):
            assert load_config().term_timeout == DEFAULT_TERM_TIMEOUT


class TestLogDebug:
    """测试日志调试模式。"""

    def test_log_debug_creates_log_path(self):
        """开启时生成临时目录下的日志文件路径。"""
        with mock.patch.dict(os.environ, {"TR_LOG_DEBUG": "yes"}, clear=False):
            config = load_config()
            assert config.log_debug is True
            assert config.log_file is not None
            assert Path(config.log_file).name.startswith("tr_debug_")
            assert Path(config.log_file).parent.name == "terminal-runner"

    def test_bool_values(self):
        """布尔值解析。"""
        for value in ("true", "1", "YES", "on"):
            with mock.patch.dict(os.environ, {"TR_LOG_DEBUG": value}, clear=False):
                assert load_config().log_debug is True
        for value in ("false", "0", "no", ""):
            with mock.patch.dict(os.environ, {"TR_LOG_DEBUG": value}, clear=False):
                assert load_config().log_debug is False


class TestGlobalConfig:
    """测试全局配置实例。"""

    def test_get_config_cached(self):
        """get_config 返回同一实例。"""
        assert get_config() is get_config()

    def test_reload_config(self):
        """reload_config 重新读取环境变量。"""
        with mock.patch.dict(os.environ, {"TR_CHUNK_SIZE": "123"}, clear=False):
            assert reload_config().chunk_size == 123
            assert get_config().chunk_size == 123
        reload_config()

    def test_repr(self):
        """repr 包含所有字段。"""
        text = repr(load_config())
        for name in ("which_path", "chunk_size", "term_timeout", "log_debug", "log_file"):
            assert name in text
