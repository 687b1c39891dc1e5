"""
Bounded FIFO request queue serializing all access to the storage gateway.

Producers (poll tasks, API handlers, the aggregation scheduler) call
``submit()`` from their own tasks and receive an ``asyncio.Future``. A
single drain task pulls operations off the queue one at a time, awaits
each to completion, and resolves or rejects its future before starting
the next one. Operations therefore start and finish in submission order
and never overlap.

Admission control is fail-fast: when ``max_size`` operations are already
waiting, ``submit()`` raises ``QueueFullError`` instead of blocking or
growing the backlog. The operation currently executing does not count
towards the limit.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-003)
- 2026-10-13: Skip operations whose caller cancelled before their turn (STORY-004)

TODO:
- None
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from plugmon.config import DEFAULT_QUEUE_MAX_SIZE
from plugmon.errors import QueueFullError

logger = logging.getLogger(__name__)


@dataclass
class _Request:
    """A queued operation and the future its caller is waiting on."""

    operation: Callable[..., Awaitable[Any]]
    args: tuple[Any, ...]
    kwargs: dict[str, Any]
    future: asyncio.Future = field(repr=False)


class RequestQueue:
    """Serializes coroutine operations through one drain task.

    Args:
        max_size: Maximum number of operations waiting to run.
    """

    def __init__(self, max_size: int = DEFAULT_QUEUE_MAX_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._max_size = max_size
        self._pending: deque[_Request] = deque()
        self._drain_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def max_size(self) -> int:
        """Capacity of the queue."""
        return self._max_size

    @property
    def pending(self) -> int:
        """Number of operations waiting to run (excludes the running one)."""
        return len(self._pending)

    @property
    def is_draining(self) -> bool:
        """Whether a drain task is currently active."""
        return self._drain_task is not None

    def submit(
        self,
        operation: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> asyncio.Future:
        """Queue ``operation(*args, **kwargs)`` for serialized execution.

        Must be called from a running event loop. Starts a drain task if
        none is active.

        Args:
            operation: Coroutine function to run.
            *args: Positional arguments for *operation*.
            **kwargs: Keyword arguments for *operation*.

        Returns:
            Future resolved with the operation's return value, or
            rejected with the exception it raised.

        Raises:
            QueueFullError: If ``max_size`` operations are already waiting.
        """
        if len(self._pending) >= self._max_size:
            raise QueueFullError(self._max_size)

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._pending.append(_Request(operation, args, kwargs, future))

        if self._drain_task is None:
            self._drain_task = loop.create_task(self._drain(), name="request-queue-drain")
        return future

    async def run(
        self,
        operation: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Submit an operation and wait for its result."""
        return await self.submit(operation, *args, **kwargs)

    async def join(self) -> None:
        """Wait until every queued operation has run."""
        while self._drain_task is not None:
            await asyncio.shield(self._drain_task)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _drain(self) -> None:
        """Run queued operations one at a time until the queue is empty."""
        try:
            while self._pending:
                request = self._pending.popleft()
                if request.future.cancelled():
                    logger.debug("Skipping cancelled request %r", request)
                    continue

                try:
                    result = await request.operation(*request.args, **request.kwargs)
                except Exception as exc:
                    if not request.future.done():
                        request.future.set_exception(exc)
                else:
                    if not request.future.done():
                        request.future.set_result(result)
        finally:
            self._drain_task = None
