"""Keyed in-memory cache with single-flight population.

This module provides a thin, typed wrapper over :class:`cachetools.Cache`
with `get`/`add`/`remove` and atomic get-or-compute operations. Committed
values live in an unbounded cachetools mapping (entries leave only through
explicit removal); computations that are still running are tracked in a
separate per-key table of :class:`concurrent.futures.Future` cells so that
concurrent callers for the same key share one computation.

The same instance can be used from worker threads and from asyncio tasks at
the same time. A single lock guards both tables and is never held while a
factory runs, so work for one key never blocks callers of another key.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
from concurrent.futures import Future
from typing import Awaitable, Callable, Dict, Generic, Optional, Tuple, TypeVar

from cachetools import Cache  # type: ignore[import-untyped]

V = TypeVar("V")

logger = logging.getLogger(__name__)


class _Abandoned(Exception):
    """Raised to waiters when the computing caller left without a result."""


def _fresh(exc: BaseException) -> BaseException:
    # Waiters share one exception object; drop frames left by other raisers
    return exc.with_traceback(None)


class KeyedCache(Generic[V]):
    """String-keyed cache with at-most-one computation per key.

    Notes
    -----
    The blocking :meth:`get_or_add` waits on a thread primitive. Calling it
    from inside a running event loop while a coroutine on that same loop is
    computing the key would deadlock; use :meth:`get_or_add_async` there.
    """

    def __init__(self) -> None:
        self._cache: Cache[str, V] = Cache(maxsize=math.inf)
        self._pending: Dict[str, Future] = {}
        self._lock = threading.Lock()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get(self, key: str, default: Optional[V] = None) -> Optional[V]:
        """Return the stored value for `key`, or `default` if missing."""
        with self._lock:
            return self._cache.get(key, default)

    def add(self, key: str, value: V) -> None:
        """Insert or overwrite `key` with `value`.

        A computation still running for `key` keeps serving its current
        waiters but no longer stores its result.
        """
        with self._lock:
            self._cache[key] = value
            self._pending.pop(key, None)

    def remove(self, key: str) -> None:
        """Delete `key` if present; missing keys are ignored."""
        with self._lock:
            self._cache.pop(key, None)
            self._pending.pop(key, None)

    def clear(self) -> None:
        """Drop every committed entry and detach running computations."""
        with self._lock:
            self._cache.clear()
            self._pending.clear()

    def get_or_add(self, key: str, factory: Callable[[], V]) -> V:
        """Return the value for `key`, computing it with `factory` on a miss.

        Parameters
        ----------
        key: str
            Cache key.
        factory: Callable[[], V]
            Called at most once across all concurrent callers for `key`.

        Returns
        -------
        V
            The committed value. Every racer receives the same object.

        Raises
        ------
        Exception
            Whatever `factory` raised. Nothing is stored in that case and
            the next call computes again.
        """
        while True:
            cell, leader, value = self._lookup_or_claim(key)
            if cell is None:
                return value  # type: ignore[return-value]
            if not leader:
                try:
                    return cell.result()
                except _Abandoned:
                    continue
                except Exception as exc:
                    raise _fresh(exc)
            try:
                value = factory()
            except Exception as exc:
                self._abort(key, cell, exc)
                raise
            except BaseException:
                self._abort(key, cell, _Abandoned(key))
                raise
            self._commit(key, cell, value)
            return value

    async def get_or_add_async(
        self, key: str, factory: Callable[[], Awaitable[V]]
    ) -> V:
        """Awaitable variant of :meth:`get_or_add`.

        The hit path returns without suspending. On a miss the caller either
        awaits `factory()` itself or awaits the computation another caller
        (thread or task) already started for `key`. Cancelling a waiter does
        not affect that computation; cancelling the computing task leaves the
        key empty and hands the work to the next waiter.
        """
        while True:
            cell, leader, value = self._lookup_or_claim(key)
            if cell is None:
                return value  # type: ignore[return-value]
            if not leader:
                try:
                    return await asyncio.wrap_future(cell)
                except _Abandoned:
                    continue
                except Exception as exc:
                    raise _fresh(exc)
            try:
                value = await factory()
            except Exception as exc:
                self._abort(key, cell, exc)
                raise
            except BaseException:
                self._abort(key, cell, _Abandoned(key))
                raise
            self._commit(key, cell, value)
            return value

    def _lookup_or_claim(self, key: str) -> Tuple[Optional[Future], bool, Optional[V]]:
        """Return ``(cell, is_leader, value)``; `cell` is None on a hit."""
        with self._lock:
            if key in self._cache:
                return None, False, self._cache[key]
            cell = self._pending.get(key)
            if cell is not None:
                return cell, False, None
            cell = Future()
            # A running future refuses cancel(), so waiters can never cancel it
            cell.set_running_or_notify_cancel()
            self._pending[key] = cell
            return cell, True, None

    def _commit(self, key: str, cell: Future, value: V) -> None:
        with self._lock:
            # A cell detached by add/remove/clear only serves its own waiters
            if self._pending.get(key) is cell:
                self._cache[key] = value
                del self._pending[key]
        cell.set_result(value)

    def _abort(self, key: str, cell: Future, exc: BaseException) -> None:
        with self._lock:
            if self._pending.get(key) is cell:
                del self._pending[key]
        logger.debug(
            "keyed_cache.compute_failed",
            extra={"key": key, "error": repr(exc)},
        )
        cell.set_exception(exc)
