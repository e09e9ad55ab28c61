"""Concurrent reader for a child's stdout and stderr.

Each source gets its own reader thread doing blocking reads until EOF, so a
quiet stream never holds up a busy one. Readers post chunks to one queue;
a single dispatcher thread hands them to the delivery function in arrival
order, so the observer is never called concurrently.

Key design points:
- One Message per non-empty read; chunk sizes are whatever the OS returns
- Intra-stream order is preserved, no ordering between the two streams
- Drained means both sources hit EOF and every queued chunk was delivered
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from collections.abc import Callable
from typing import IO, Optional, Union

from ..config import DEFAULT_CHUNK_SIZE
from .message import Message, MessageKind

__all__ = ["StreamMultiplexer"]

logger = logging.getLogger(__name__)

# Queue items: a chunk, or the kind of a source that reached EOF
_Item = Union[Message, MessageKind]


class StreamMultiplexer:
    """Reads two byte streams of one process and delivers tagged chunks.

    Example:
        mux = StreamMultiplexer(proc.stdout, proc.stderr, on_message)
        mux.start()
        ...
        mux.wait_drained()
    """

    def __init__(
        self,
        stdout: IO[bytes],
        stderr: IO[bytes],
        deliver: Callable[[Message], None],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        name: str = "process",
    ) -> None:
        """Set up the multiplexer without starting any thread.

        Args:
            stdout: Readable end of the child's stdout pipe
            stderr: Readable end of the child's stderr pipe
            deliver: Called once per chunk, from the dispatcher thread
            chunk_size: Maximum bytes per read
            name: Label used in thread names and log lines
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive: {chunk_size}")
        self._sources = {
            MessageKind.OUTPUT: stdout,
            MessageKind.ERROR: stderr,
        }
        self._deliver = deliver
        self._chunk_size = chunk_size
        self._name = name
        self._queue: queue.Queue[_Item] = queue.Queue()
        self._drained = threading.Event()
        self._started = False
        self._threads: list[threading.Thread] = []

    @property
    def drained(self) -> bool:
        return self._drained.is_set()

    def start(self) -> None:
        """Start both readers and the dispatcher."""
        if self._started:
            raise RuntimeError("multiplexer already started")
        self._started = True

        for kind, stream in self._sources.items():
            reader = threading.Thread(
                target=self._read_source,
                args=(kind, stream),
                name=f"{self._name}-{kind.value}-reader",
                daemon=True,
            )
            self._threads.append(reader)

        self._threads.append(
            threading.Thread(
                target=self._dispatch,
                name=f"{self._name}-dispatcher",
                daemon=True,
            )
        )
        for thread in self._threads:
            thread.start()

    def wait_drained(self, timeout: Optional[float] = None) -> bool:
        """Block until both sources are drained. Returns False on timeout."""
        return self._drained.wait(timeout)

    def _read_source(self, kind: MessageKind, stream: IO[bytes]) -> None:
        """Read one source until EOF, posting each chunk."""
        try:
            fd = stream.fileno()
            while True:
                chunk = os.read(fd, self._chunk_size)
                if not chunk:
                    break
                self._queue.put(Message(kind, chunk))
        except (OSError, ValueError) as e:
            logger.warning(f"Read from {kind.value} failed for {self._name}: {e}")
        finally:
            try:
                stream.close()
            except OSError as e:
                logger.debug(f"Error closing {kind.value} for {self._name}: {e}")
            self._queue.put(kind)

    def _dispatch(self) -> None:
        """Deliver queued chunks until both sources have detached."""
        attached = set(self._sources)
        while attached:
            item = self._queue.get()
            if isinstance(item, MessageKind):
                attached.discard(item)
                logger.debug(f"Detached {item.value} for {self._name}")
                continue
            try:
                self._deliver(item)
            except Exception as e:
                logger.warning(f"Error in message observer for {self._name}: {e}")

        self._drained.set()
        logger.debug(f"Streams drained for {self._name}")
