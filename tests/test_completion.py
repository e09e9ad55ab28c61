"""CompletionSignal unit tests.

Test coverage:
- Exactly-once delivery to subscribers before and after firing
- Blocking wait (already fired, fired later, timeout)
- Async wait (already fired, fired from another thread, cancellation)
- Failing callbacks do not block the others
"""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from terminal_runner.runtime.completion import CompletionSignal


class TestSubscribe:
    """Test callback subscription."""

    def test_callbacks_fire_once(self):
        signal: CompletionSignal[int] = CompletionSignal()
        seen: list[int] = []
        signal.subscribe(seen.append)
        signal.subscribe(seen.append)

        signal.fire(5)

        assert seen == [5, 5]

    def test_late_subscribe_fires_immediately(self):
        signal: CompletionSignal[int] = CompletionSignal()
        signal.fire(3)

        seen: list[int] = []
        signal.subscribe(seen.append)

        assert seen == [3]

    def test_fire_twice_raises(self):
        signal: CompletionSignal[int] = CompletionSignal()
        signal.fire(1)
        with pytest.raises(RuntimeError):
            signal.fire(2)
        assert signal.value == 1

    def test_unsubscribe(self):
        signal: CompletionSignal[int] = CompletionSignal()
        seen: list[int] = []
        signal.subscribe(seen.append)

        assert signal.unsubscribe(seen.append)
        assert not signal.unsubscribe(seen.append)
        signal.fire(1)

        assert seen == []

    def test_failing_callback_does_not_stop_others(self):
        signal: CompletionSignal[int] = CompletionSignal()
        seen: list[int] = []

        def broken(_: int) -> None:
            raise ValueError("boom")

        signal.subscribe(broken)
        signal.subscribe(seen.append)
        signal.fire(9)

        assert seen == [9]

    def test_concurrent_subscribe_and_fire(self):
        """Every subscriber runs exactly once, whichever side of fire() it lands."""
        signal: CompletionSignal[int] = CompletionSignal()
        counts = [0] * 200
        lock = threading.Lock()
        start = threading.Barrier(5)

        def make_callback(index: int):
            def callback(_: int) -> None:
                with lock:
                    counts[index] += 1
            return callback

        def subscriber(offset: int) -> None:
            start.wait()
            for i in range(offset, 200, 4):
                signal.subscribe(make_callback(i))

        threads = [threading.Thread(target=subscriber, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        start.wait()
        signal.fire(0)
        for thread in threads:
            thread.join()

        assert counts == [1] * 200


class TestBlockingWait:
    """Test wait()."""

    def test_wait_after_fire(self):
        signal: CompletionSignal[str] = CompletionSignal()
        signal.fire("done")
        assert signal.wait(timeout=0) == "done"

    def test_wait_before_fire(self):
        signal: CompletionSignal[str] = CompletionSignal()
        timer = threading.Timer(0.05, signal.fire, args=("done",))
        timer.start()
        try:
            assert signal.wait(timeout=5) == "done"
        finally:
            timer.cancel()

    def test_wait_timeout(self):
        signal: CompletionSignal[str] = CompletionSignal()
        started = time.monotonic()
        with pytest.raises(TimeoutError):
            signal.wait(timeout=0.05)
        assert time.monotonic() - started >= 0.04
        assert not signal.is_set


class TestAsyncWait:
    """Test wait_async()."""

    @pytest.mark.asyncio
    async def test_wait_async_after_fire(self):
        signal: CompletionSignal[int] = CompletionSignal()
        signal.fire(4)
        assert await signal.wait_async() == 4

    @pytest.mark.asyncio
    async def test_wait_async_fired_from_thread(self):
        signal: CompletionSignal[int] = CompletionSignal()
        timer = threading.Timer(0.05, signal.fire, args=(2,))
        timer.start()
        try:
            assert await asyncio.wait_for(signal.wait_async(), timeout=5) == 2
        finally:
            timer.cancel()

    @pytest.mark.asyncio
    async def test_many_async_waiters(self):
        signal: CompletionSignal[int] = CompletionSignal()
        waiters = [asyncio.ensure_future(signal.wait_async()) for _ in range(10)]
        await asyncio.sleep(0)

        threading.Thread(target=signal.fire, args=(1,)).start()
        results = await asyncio.wait_for(asyncio.gather(*waiters), timeout=5)

        assert results == [1] * 10

    @pytest.mark.asyncio
    async def test_cancelled_waiter_unsubscribes(self):
        signal: CompletionSignal[int] = CompletionSignal()

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(signal.wait_async(), timeout=0.05)

        assert signal._callbacks == []
        signal.fire(1)
