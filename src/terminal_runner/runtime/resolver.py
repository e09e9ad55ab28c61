"""Bare command name to absolute path resolution, cached per resolver.

Resolution runs a ``which``-style lookup program and keeps the first line
of its output. Results are written once per name and never evicted for the
resolver's lifetime.

Concurrent first-time lookups of the same name are single-flight: the first
caller runs the lookup while later callers wait for its result. The lock
only guards the cache and the in-flight table, so lookups for different
names run in parallel.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import Future
from pathlib import Path
from typing import Optional

from ..config import get_config
from ..errors import LaunchError, NonZeroExitError, NotFoundError
from .handle import ProcessHandle
from .launch_spec import LaunchSpec
from .message import join_text

__all__ = ["ExecutableResolver", "Lookup"]

logger = logging.getLogger(__name__)

# lookup(name, env, cwd) -> absolute path; raises NotFoundError
Lookup = Callable[[str, Optional[Mapping[str, str]], Optional[Path]], Path]


class ExecutableResolver:
    """Resolves command names through a lookup subprocess, with a cache.

    Example:
        resolver = ExecutableResolver()
        path = resolver.resolve("ls")        # runs /usr/bin/which ls
        path = resolver.resolve("ls")        # cache hit, no subprocess
    """

    def __init__(
        self,
        which_path: Optional[str] = None,
        lookup: Optional[Lookup] = None,
    ) -> None:
        """Create an empty resolver.

        Args:
            which_path: Lookup program (default from config)
            lookup: Replacement lookup function, mostly for tests
        """
        self.which_path = which_path or get_config().which_path
        self._lookup: Lookup = lookup if lookup is not None else self._run_which
        self._lock = threading.Lock()
        self._cache: dict[str, Path] = {}
        self._inflight: dict[str, Future[Path]] = {}

    def resolve(
        self,
        name: str,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> Path:
        """Return the absolute path for ``name``.

        Args:
            name: Bare command name, e.g. "git"
            env: Environment for the lookup process (None = inherit)
            cwd: Working directory for the lookup process

        Raises:
            NotFoundError: If the lookup fails or prints nothing usable
        """
        with self._lock:
            cached = self._cache.get(name)
            if cached is not None:
                logger.debug(f"Resolver cache hit: {name} -> {cached}")
                return cached

            pending = self._inflight.get(name)
            if pending is None:
                owner = True
                pending = Future()
                self._inflight[name] = pending
            else:
                owner = False

        if not owner:
            logger.debug(f"Waiting for in-flight lookup of {name}")
            try:
                return pending.result()
            except Exception as e:
                # One exception object per waiter
                raise NotFoundError(name) from e

        try:
            path = self._lookup(name, env, cwd)
        except BaseException as e:
            with self._lock:
                self._inflight.pop(name, None)
            pending.set_exception(e)
            raise

        with self._lock:
            path = self._cache.setdefault(name, path)
            self._inflight.pop(name, None)
        pending.set_result(path)
        logger.debug(f"Resolved {name} -> {path}")
        return path

    def cached(self, name: str) -> Optional[Path]:
        """Cached path for ``name`` without running a lookup."""
        with self._lock:
            return self._cache.get(name)

    def clear(self) -> None:
        """Forget every cached path."""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._cache

    def _run_which(
        self,
        name: str,
        env: Optional[Mapping[str, str]],
        cwd: Optional[Path],
    ) -> Path:
        """Run the lookup program and parse its first output line."""
        spec = LaunchSpec(Path(self.which_path), env=env, cwd=cwd)
        handle = ProcessHandle(spec).accumulate()
        try:
            handle.launch([name])
            messages = handle.drain_all()
            handle.wait_blocking()
        except (LaunchError, NonZeroExitError) as e:
            logger.debug(f"Lookup of {name} failed: {e}")
            raise NotFoundError(name) from e

        text = join_text(messages)
        first_line = text.split("\n", 1)[0].strip() if text else ""
        if not first_line or not os.path.isabs(first_line):
            raise NotFoundError(name)
        return Path(first_line)
