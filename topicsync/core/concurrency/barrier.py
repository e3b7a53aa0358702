"""Join barrier for fan-out stages.

A JoinBarrier counts pending child operations: call enter() before launching
a child, leave() when it finishes (successfully or not), and notify() to run
a continuation once every enter() has been matched. Continuations run on the
barrier's event loop no matter which thread calls leave().

Barriers are one-shot. Once a continuation has fired the barrier is closed
and enter() raises, so two logically independent stages can never share an
instance and fire each other's continuations.
"""

import asyncio
import functools
import logging
import threading
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from topicsync.domain.entities import ChildResult
from topicsync.domain.exceptions import SyncError

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


class JoinBarrier:
    """Counting completion tracker with enter/leave/notify.

    Example:
        barrier = JoinBarrier(name="details")
        for topic_id in topic_ids:
            barrier.enter()
            start_fetch(topic_id, done=barrier.leave)
        barrier.notify(lambda: print("all details fetched"))
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        name: str = "barrier",
    ) -> None:
        """Create an open barrier with nothing pending.

        Args:
            loop: Event loop continuations are scheduled on. Defaults to the
                loop running when notify() is first called.
            name: Label used in log and error messages.
        """
        self.name = name
        self._loop = loop
        self._pending = 0
        self._closed = False
        self._callbacks: list[Callable[[], Any]] = []
        self._lock = threading.Lock()

    @property
    def pending(self) -> int:
        """Number of entered children that have not left yet."""
        return self._pending

    @property
    def closed(self) -> bool:
        """True once a continuation has been dispatched."""
        return self._closed

    def enter(self) -> None:
        """Register one more pending child.

        Raises:
            RuntimeError: If the barrier has already closed.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError(f"{self.name}: enter() called on a closed barrier")
            self._pending += 1

    def leave(self) -> None:
        """Mark one pending child as finished. Safe to call from any thread.

        Raises:
            RuntimeError: If there is no matching enter().
        """
        with self._lock:
            if self._pending == 0:
                raise RuntimeError(f"{self.name}: leave() without matching enter()")
            self._pending -= 1
            ready = self._take_ready_callbacks()
        self._dispatch(ready)

    def notify(self, callback: Callable[[], Any]) -> None:
        """Register a continuation to run once nothing is pending.

        The continuation is invoked exactly once, on the barrier's loop. If
        nothing is pending when it is registered, it is scheduled right away.

        Args:
            callback: Zero-argument callable.

        Raises:
            RuntimeError: If no loop was given and none is running.
        """
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        with self._lock:
            self._callbacks.append(callback)
            ready = self._take_ready_callbacks()
        self._dispatch(ready)

    async def wait(self) -> None:
        """Suspend until every entered child has left."""
        loop = asyncio.get_running_loop()
        if self._loop is None:
            self._loop = loop
        done = loop.create_future()

        def _release() -> None:
            if not done.done():
                done.set_result(None)

        self.notify(_release)
        await done

    def _take_ready_callbacks(self) -> list[Callable[[], Any]]:
        # Caller holds self._lock
        if self._pending or not self._callbacks:
            return []
        ready, self._callbacks = self._callbacks, []
        self._closed = True
        return ready

    def _dispatch(self, callbacks: list[Callable[[], Any]]) -> None:
        if not callbacks:
            return
        logger.debug("%s: barrier closed, dispatching %d continuation(s)", self.name, len(callbacks))
        loop = self._loop
        if loop is None:
            raise RuntimeError(f"{self.name}: no event loop to dispatch continuations on")
        for callback in callbacks:
            loop.call_soon_threadsafe(callback)


async def fan_out(
    keys: Iterable[K],
    fetch: Callable[[K], Awaitable[V]],
    *,
    on_result: Callable[[ChildResult], None] | None = None,
    stage: str = "fan-out",
) -> list[ChildResult]:
    """Run one child per key concurrently under a fresh barrier.

    Children race freely. Each finished child is turned into a ChildResult
    and handed to ``on_result`` as it arrives, before the barrier is left.
    A child raising SyncError becomes a failed result; any other exception is
    re-raised once every child has finished.

    Args:
        keys: One child is started per key.
        fetch: Coroutine function producing a child's value.
        on_result: Optional per-child callback (runs on the event loop).
        stage: Label for logs and for ChildResult.stage.

    Returns:
        One ChildResult per key, in completion order.
    """
    barrier = JoinBarrier(name=stage)
    results: list[ChildResult] = []
    unexpected: list[BaseException] = []
    tasks: list[asyncio.Future] = []

    def _finish(key: K, task: asyncio.Future) -> None:
        try:
            if task.cancelled():
                unexpected.append(asyncio.CancelledError(f"{stage}: {key!r} was cancelled"))
                return
            try:
                value = task.result()
            except SyncError as e:
                logger.warning("%s: %r failed: %s", stage, key, e.message)
                result = ChildResult(key=key, error=e, stage=stage)
            except Exception as e:
                unexpected.append(e)
                return
            else:
                result = ChildResult(key=key, value=value, stage=stage)
            results.append(result)
            if on_result is not None:
                try:
                    on_result(result)
                except Exception as e:
                    unexpected.append(e)
        finally:
            barrier.leave()

    for key in keys:
        barrier.enter()
        task = asyncio.ensure_future(fetch(key))
        task.add_done_callback(functools.partial(_finish, key))
        tasks.append(task)

    await barrier.wait()

    if unexpected:
        raise unexpected[0]
    return results
