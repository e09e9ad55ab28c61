"""Runtime module for process launch, output streaming and completion.

This module provides the building blocks used by the Runner façade:
spawning, stdout/stderr multiplexing, termination signaling and
executable resolution.
"""

from __future__ import annotations

from .completion import CompletionSignal
from .handle import ProcessHandle
from .launch_spec import LaunchSpec
from .message import (
    Message,
    MessageCollector,
    MessageKind,
    MessageObserver,
    join_messages,
    join_text,
)
from .multiplexer import StreamMultiplexer
from .resolver import ExecutableResolver
from .status import Status, StatusKind

__all__ = [
    "CompletionSignal",
    "ExecutableResolver",
    "LaunchSpec",
    "Message",
    "MessageCollector",
    "MessageKind",
    "MessageObserver",
    "ProcessHandle",
    "Status",
    "StatusKind",
    "StreamMultiplexer",
    "join_messages",
    "join_text",
]
