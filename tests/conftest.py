"""Pytest 配置和 fixtures。"""

from __future__ import annotations

import os
import shutil
import sys
from pathlib import Path

import pytest

# 项目根目录
PROJECT_ROOT = Path(__file__).parent.parent

# 添加 src 目录到 Python 路径
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

IS_WINDOWS = sys.platform == "win32"


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """临时工作目录。"""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def sh_path() -> Path:
    """sh 的绝对路径。"""
    path = shutil.which("sh")
    if path is None or IS_WINDOWS:
        pytest.skip("sh not available")
    return Path(path)


@pytest.fixture
def cat_path() -> Path:
    """cat 的绝对路径。"""
    path = shutil.which("cat")
    if path is None or IS_WINDOWS:
        pytest.skip("cat not available")
    return Path(path)


@pytest.fixture
def python_path() -> Path:
    """当前解释器路径，用于可精确控制输出的子进程。"""
    return Path(sys.executable)


@pytest.fixture
def which_path() -> str:
    """系统 which 程序路径，不存在时跳过。"""
    from terminal_runner.config import DEFAULT_WHICH_PATH

    if IS_WINDOWS or not os.path.exists(DEFAULT_WHICH_PATH):
        pytest.skip(f"{DEFAULT_WHICH_PATH} not available")
    return DEFAULT_WHICH_PATH
