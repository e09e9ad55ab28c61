"""Runner façade: fixed launch configuration, one handle per invocation.

Example:
    runner = Runner.for_command("git", cwd=repo)
    messages = runner.invoke_and_collect("status", "--short")
    print(join_text(messages))

    handle = runner.launch("log", on_message=lambda m: print(m.text))
    await handle.wait_async()
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from functools import partial
from pathlib import Path
from typing import Optional, Union

import anyio.to_thread

from .runtime.handle import ProcessHandle
from .runtime.launch_spec import LaunchSpec
from .runtime.message import Message, MessageObserver
from .runtime.resolver import ExecutableResolver

__all__ = ["Runner"]

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def _is_bare_name(command: str) -> bool:
    """True if ``command`` has no directory part and needs resolution."""
    if os.sep in command:
        return False
    if os.altsep and os.altsep in command:
        return False
    return True


class Runner:
    """Launches one executable with a fixed environment and directory.

    Attributes:
        spec: Immutable launch configuration shared by every handle
        chunk_size: Read size passed to each handle (None = config default)
    """

    def __init__(
        self,
        executable: PathLike,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[PathLike] = None,
        *,
        chunk_size: Optional[int] = None,
    ) -> None:
        """Create a runner for an executable path.

        Args:
            executable: Path of the program
            env: Child environment (None = inherit, otherwise replaces it)
            cwd: Working directory for every invocation
            chunk_size: Maximum bytes per read
        """
        self.spec = LaunchSpec(
            Path(executable),
            env=env,
            cwd=Path(cwd) if cwd is not None else None,
        )
        self.chunk_size = chunk_size

    @classmethod
    def for_command(
        cls,
        command: str,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[PathLike] = None,
        *,
        resolver: Optional[ExecutableResolver] = None,
        chunk_size: Optional[int] = None,
    ) -> Runner:
        """Create a runner for a command name, resolving it first.

        Names containing a path separator are used as paths directly.
        Pass a shared ``resolver`` to reuse its cache across runners.

        Raises:
            NotFoundError: If the name cannot be resolved
        """
        cwd_path = Path(cwd) if cwd is not None else None
        if _is_bare_name(command):
            if resolver is None:
                resolver = ExecutableResolver()
            executable: PathLike = resolver.resolve(command, env, cwd_path)
        else:
            executable = command
        logger.debug(f"Runner for {command} uses {executable}")
        return cls(executable, env, cwd_path, chunk_size=chunk_size)

    @classmethod
    async def open(
        cls,
        command: str,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[PathLike] = None,
        *,
        resolver: Optional[ExecutableResolver] = None,
        chunk_size: Optional[int] = None,
    ) -> Runner:
        """Async variant of for_command(); resolution runs in a worker thread.

        Raises:
            NotFoundError: If the name cannot be resolved
        """
        return await anyio.to_thread.run_sync(
            partial(
                cls.for_command,
                command,
                env,
                cwd,
                resolver=resolver,
                chunk_size=chunk_size,
            )
        )

    def launch_with_callback(
        self,
        args: Sequence[str],
        on_message: Optional[MessageObserver],
    ) -> ProcessHandle:
        """Start the process and return its running handle immediately.

        Raises:
            LaunchError: If the OS cannot start the process
        """
        handle = ProcessHandle(self.spec, on_message, chunk_size=self.chunk_size)
        return handle.launch(args)

    def launch(
        self,
        *args: str,
        on_message: Optional[MessageObserver] = None,
    ) -> ProcessHandle:
        """Varargs form of launch_with_callback()."""
        return self.launch_with_callback(args, on_message)

    def invoke_and_collect(
        self,
        *args: str,
        timeout: Optional[float] = None,
    ) -> list[Message]:
        """Run to completion and return every message in delivery order.

        Raises:
            LaunchError: If the OS cannot start the process
            NonZeroExitError: If the process exits non-zero
            TimeoutError: If ``timeout`` seconds pass first; the process is
                terminated before this is raised
        """
        handle = self._collecting_handle(args)
        try:
            messages = handle.drain_all(timeout)
        except TimeoutError:
            logger.debug(f"Collect timed out after {timeout}s, terminating pid={handle.pid}")
            handle.terminate()
            raise
        handle.wait_blocking()
        return messages

    async def invoke_and_collect_async(self, *args: str) -> list[Message]:
        """Async variant of invoke_and_collect()."""
        handle = self._collecting_handle(args)
        messages = await handle.drain_all_async()
        await handle.wait_async()
        return messages

    def _collecting_handle(self, args: Sequence[str]) -> ProcessHandle:
        handle = ProcessHandle(self.spec, chunk_size=self.chunk_size).accumulate()
        return handle.launch(args)

    def __repr__(self) -> str:
        return (
            f"Runner(executable={self.spec.executable}, "
            f"cwd={self.spec.cwd}, "
            f"env={'inherit' if self.spec.env is None else 'custom'})"
        )
