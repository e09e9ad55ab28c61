"""Process handle: one launched child process and its lifecycle.

A ProcessHandle spawns the child with piped stdin/stdout/stderr, streams
output through a StreamMultiplexer and publishes the exit status through a
CompletionSignal.

Termination protocol (watcher thread):
1. Wait for the OS process to exit
2. Wait for the multiplexer to drain both streams
3. Set Completed(code) and detach the output observer
4. Fire the completion signal, running every termination callback once

Output delivery therefore always happens before Completed is visible.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from collections.abc import Callable, Sequence
from typing import Optional

from ..config import get_config
from ..errors import LaunchError, NonZeroExitError, WriteError
from .completion import CompletionSignal
from .launch_spec import LaunchSpec
from .message import Message, MessageCollector, MessageObserver
from .multiplexer import StreamMultiplexer
from .status import Status

__all__ = ["ProcessHandle"]

logger = logging.getLogger(__name__)


class ProcessHandle:
    """Future-like handle over one process invocation.

    Example:
        handle = ProcessHandle(spec, on_message=print).launch(["-la"])
        handle.on_termination(lambda status: print(status))
        handle.wait_blocking()
    """

    def __init__(
        self,
        spec: LaunchSpec,
        on_message: Optional[MessageObserver] = None,
        *,
        chunk_size: Optional[int] = None,
    ) -> None:
        """Create an idle handle.

        Args:
            spec: Launch configuration shared with the owning runner
            on_message: Observer called with every output chunk
            chunk_size: Maximum bytes per read (default from config)
        """
        self.spec = spec
        self._chunk_size = chunk_size if chunk_size is not None else get_config().chunk_size
        self._lock = threading.Lock()
        self._stdin_lock = threading.Lock()
        self._status = Status.idle()
        self._observer: Optional[MessageObserver] = on_message
        self._collector: Optional[MessageCollector] = None
        self._process: Optional[subprocess.Popen[bytes]] = None
        self._multiplexer: Optional[StreamMultiplexer] = None
        self._watcher: Optional[threading.Thread] = None
        self._completion: CompletionSignal[Status] = CompletionSignal()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def status(self) -> Status:
        with self._lock:
            return self._status

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    @property
    def returncode(self) -> Optional[int]:
        """Exit code once completed, else None."""
        return self.status.exit_code

    def __repr__(self) -> str:
        return (
            f"ProcessHandle(executable={self.spec.executable}, "
            f"pid={self.pid}, status={self.status})"
        )

    # ------------------------------------------------------------------
    # Launch
    # ------------------------------------------------------------------

    def accumulate(self) -> ProcessHandle:
        """Collect every message for drain_all(). Must be called before launch.

        Replaces any observer passed to the constructor.

        Raises:
            RuntimeError: If the handle is no longer idle
        """
        with self._lock:
            if not self._status.is_idle:
                raise RuntimeError("accumulate() must be called before launch")
            self._collector = MessageCollector()
            self._observer = self._collector
        return self

    def launch(self, args: Sequence[str] = ()) -> ProcessHandle:
        """Start the process and begin streaming its output.

        Args:
            args: Arguments passed after the executable, each as-is

        Returns:
            This handle, now running

        Raises:
            LaunchError: If the handle was already launched or the OS
                refused to start the process
        """
        executable = str(self.spec.executable)
        with self._lock:
            if not self._status.is_idle:
                raise LaunchError(executable, f"handle already {self._status}")

            argv = self.spec.build_argv(args)
            try:
                process = subprocess.Popen(
                    argv,
                    stdin=subprocess.PIPE,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    **self.spec.popen_kwargs(),
                )
            except (OSError, ValueError) as e:
                raise LaunchError(executable, str(e)) from e

            label = f"pid-{process.pid}"
            multiplexer = StreamMultiplexer(
                process.stdout,  # type: ignore[arg-type]
                process.stderr,  # type: ignore[arg-type]
                self._deliver,
                chunk_size=self._chunk_size,
                name=label,
            )
            self._process = process
            self._multiplexer = multiplexer
            multiplexer.start()
            self._status = self._status.advance(Status.running())

        logger.debug(
            f"Started subprocess pid={process.pid} "
            f"argv={argv[0]} cwd={self.spec.cwd}"
        )

        self._watcher = threading.Thread(
            target=self._watch,
            name=f"{label}-watcher",
            daemon=True,
        )
        self._watcher.start()
        return self

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def write(self, data: bytes) -> None:
        """Write bytes to the child's stdin and flush.

        Raises:
            WriteError: If not running, stdin is closed, or the pipe broke
        """
        status = self.status
        if not status.is_running:
            raise WriteError(f"process is {status}")
        process = self._process
        assert process is not None and process.stdin is not None

        with self._stdin_lock:
            if process.stdin.closed:
                raise WriteError("stdin is closed")
            try:
                process.stdin.write(data)
                process.stdin.flush()
            except (OSError, ValueError) as e:
                raise WriteError(str(e)) from e

    def close_input(self) -> None:
        """Close the child's stdin so it sees EOF. Safe to call repeatedly."""
        process = self._process
        if process is None or process.stdin is None:
            return
        with self._stdin_lock:
            if process.stdin.closed:
                return
            try:
                process.stdin.close()
            except OSError as e:
                # Child already gone; buffered bytes cannot be delivered.
                logger.debug(f"Error closing stdin pid={process.pid}: {e}")

    def on_termination(self, callback: Callable[[Status], None]) -> None:
        """Run ``callback(final_status)`` exactly once.

        If the process already completed, the callback runs immediately
        on the calling thread.
        """
        self._completion.subscribe(callback)

    def terminate(self, timeout: Optional[float] = None) -> None:
        """Stop the process: SIGTERM, then SIGKILL after ``timeout``.

        Only the direct child is signalled. Output produced before exit is
        still delivered and termination callbacks fire as usual. No-op if
        not running.

        Args:
            timeout: Seconds to wait after SIGTERM (default from config)
        """
        process = self._process
        if process is None or self.status.is_completed:
            return
        if timeout is None:
            timeout = get_config().term_timeout

        pid = process.pid
        logger.debug(f"Terminating subprocess pid={pid}")
        try:
            process.terminate()
            try:
                process.wait(timeout=timeout)
                logger.debug(
                    f"Subprocess terminated gracefully pid={pid} "
                    f"returncode={process.returncode}"
                )
                return
            except subprocess.TimeoutExpired:
                pass

            logger.debug(f"Force killing subprocess pid={pid}")
            process.kill()
        except ProcessLookupError:
            logger.debug(f"Subprocess already exited pid={pid}")

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------

    def wait_blocking(self, timeout: Optional[float] = None) -> None:
        """Block until completed.

        Raises:
            NonZeroExitError: If the exit code is not 0
            TimeoutError: If ``timeout`` seconds pass first
        """
        self._raise_for_status(self._completion.wait(timeout))

    async def wait_async(self) -> None:
        """Await completion without blocking the event loop.

        Raises:
            NonZeroExitError: If the exit code is not 0
        """
        self._raise_for_status(await self._completion.wait_async())

    def drain_all(self, timeout: Optional[float] = None) -> list[Message]:
        """Block until completed and return every collected message.

        Requires accumulate() before launch. The exit code is not checked;
        inspect ``status`` or call wait_blocking() for that.
        """
        collector = self._require_collector()
        self._completion.wait(timeout)
        return collector.messages

    async def drain_all_async(self) -> list[Message]:
        """Async variant of drain_all()."""
        collector = self._require_collector()
        await self._completion.wait_async()
        return collector.messages

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_collector(self) -> MessageCollector:
        if self._collector is None:
            raise RuntimeError("accumulate() must be called before launch")
        return self._collector

    @staticmethod
    def _raise_for_status(status: Status) -> None:
        if status.exit_code != 0:
            raise NonZeroExitError(status.exit_code)  # type: ignore[arg-type]

    def _deliver(self, message: Message) -> None:
        """Forward a chunk to the observer; dropped once detached."""
        with self._lock:
            observer = self._observer
        if observer is not None:
            observer(message)

    def _watch(self) -> None:
        """Completion watcher: exit, drain, publish."""
        process = self._process
        multiplexer = self._multiplexer
        assert process is not None and multiplexer is not None

        returncode = process.wait()
        multiplexer.wait_drained()

        with self._lock:
            self._status = self._status.advance(Status.completed(returncode))
            self._observer = None
            final = self._status

        self.close_input()
        logger.debug(
            f"Subprocess completed pid={process.pid} "
            f"returncode={returncode}"
        )
        self._completion.fire(final)
