"""Single-assignment completion signal.

One CompletionSignal backs every way of learning that a process finished:
subscribed callbacks, blocking waits on a thread, and awaits on an asyncio
loop. The signal is latched, so a waiter or subscriber that arrives after
the signal fired still observes the value.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Generic, Optional, TypeVar

__all__ = ["CompletionSignal"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CompletionSignal(Generic[T]):
    """Fires once with a value; every subscriber sees it exactly once.

    Example:
        signal = CompletionSignal[int]()
        signal.subscribe(lambda code: print("exit", code))
        threading.Thread(target=signal.fire, args=(0,)).start()
        code = signal.wait()
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._value: Optional[T] = None
        self._callbacks: list[Callable[[T], None]] = []

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    @property
    def value(self) -> Optional[T]:
        """The fired value, or None while pending."""
        with self._lock:
            return self._value

    def fire(self, value: T) -> None:
        """Publish the value and run every pending callback.

        Callbacks run on the calling thread, outside the lock. A failing
        callback is logged and does not stop the others.

        Raises:
            RuntimeError: If the signal already fired
        """
        with self._lock:
            if self._event.is_set():
                raise RuntimeError("completion signal already fired")
            self._value = value
            callbacks = self._callbacks
            self._callbacks = []
            self._event.set()

        for callback in callbacks:
            self._invoke(callback, value)

    def subscribe(self, callback: Callable[[T], None]) -> None:
        """Run ``callback(value)`` once the signal fires.

        If it already fired, the callback runs immediately on the
        calling thread.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
            value = self._value
        self._invoke(callback, value)

    def unsubscribe(self, callback: Callable[[T], None]) -> bool:
        """Drop a pending callback. Returns False if it was not pending."""
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
                return True
        return False

    def wait(self, timeout: Optional[float] = None) -> T:
        """Block the calling thread until the signal fires.

        Raises:
            TimeoutError: If ``timeout`` seconds pass first
        """
        if not self._event.wait(timeout):
            raise TimeoutError(f"not completed within {timeout}s")
        with self._lock:
            return self._value  # type: ignore[return-value]

    async def wait_async(self) -> T:
        """Suspend the current task until the signal fires.

        No thread is parked: the firing thread hands the value to this
        task's loop with call_soon_threadsafe. Cancelling the awaiting task
        removes its subscription.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()

        def _resolve(value: T) -> None:
            if future.done():
                return
            future.set_result(value)

        def _on_fire(value: T) -> None:
            try:
                loop.call_soon_threadsafe(_resolve, value)
            except RuntimeError:
                # Loop already closed; nobody is left to resume.
                logger.debug("Completion fired after event loop closed")

        self.subscribe(_on_fire)
        try:
            return await future
        finally:
            self.unsubscribe(_on_fire)

    def _invoke(self, callback: Callable[[T], None], value: T) -> None:
        try:
            callback(value)
        except Exception as e:
            logger.warning(f"Error in completion callback {callback!r}: {e}")
