import asyncio
import logging
from typing import Awaitable, Optional, Set

from tovalley_chat.core.config import settings


logger = logging.getLogger(__name__)


async def best_effort(label: str, aw: Awaitable) -> bool:
    """
    Failure-isolation boundary for side effects that must never fail the caller.

    Returns True when ``aw`` completed, False when it raised (the error is logged).
    """
    try:
        await aw
        return True
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("%s failed; suppressed", label)
        return False


class BackgroundPublisher:
    """Bounded fire-and-forget runner for bus publishes."""

    def __init__(self, limit: Optional[int] = None, timeout: Optional[float] = None) -> None:
        self._limit = limit if limit is not None else settings.publish_limit
        self._timeout = timeout if timeout is not None else settings.publish_timeout_seconds
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, label: str, aw: Awaitable) -> bool:
        if len(self._tasks) >= self._limit:
            logger.warning("Dropping %s: %d publishes already in flight", label, len(self._tasks))
            if asyncio.iscoroutine(aw):
                aw.close()
            return False
        task = asyncio.create_task(best_effort(label, asyncio.wait_for(aw, self._timeout)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def drain(self) -> None:
        """Wait for every in-flight publish, used on shutdown."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))


_publisher = None


def get_publisher() -> BackgroundPublisher:
    global _publisher
    if _publisher is None:
        _publisher = BackgroundPublisher()
    return _publisher
