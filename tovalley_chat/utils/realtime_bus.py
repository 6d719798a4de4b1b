import asyncio
import logging
from typing import Awaitable, Callable

import redis.asyncio as redis

from tovalley_chat.core.config import settings
from tovalley_chat.database.connection import get_redis


logger = logging.getLogger(__name__)


class NoopBus:

    enabled = False

    async def publish(self, channel: str, message: str) -> None:
        return

    async def subscribe(self, channel: str, on_message: Callable[[str], Awaitable[None]]):
        class _Sub:
            async def run(self):
                await asyncio.Future()

            async def cancel(self):
                return
        return _Sub()


class RedisBus:

    enabled = True

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    async def publish(self, channel: str, message: str) -> None:
        await self._redis.publish(channel, message)

    async def subscribe(self, channel: str, on_message: Callable[[str], Awaitable[None]]):
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(channel)

        class _Sub:
            _running = True

            async def run(self_inner):
                while self_inner._running:
                    try:
                        msg = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                    except redis.ConnectionError:
                        logger.warning("Lost subscription to %s, retrying", channel)
                        await asyncio.sleep(0.5)
                        continue
                    if msg and msg.get("type") == "message":
                        data = msg.get("data")
                        if isinstance(data, bytes):
                            data = data.decode("utf-8")
                        try:
                            await on_message(data)
                        except asyncio.CancelledError:
                            raise
                        except Exception:
                            logger.exception("Handler for %s failed; message dropped", channel)

            async def cancel(self_inner):
                self_inner._running = False
                try:
                    await pubsub.unsubscribe(channel)
                    await pubsub.aclose()
                except redis.RedisError:
                    logger.debug("Unsubscribe from %s failed", channel, exc_info=True)

        return _Sub()


_bus = None


def get_bus():
    global _bus
    if _bus is not None:
        return _bus
    client = get_redis()
    _bus = RedisBus(client) if client is not None else NoopBus()
    return _bus


def reset_bus() -> None:
    global _bus
    _bus = None


def notification_channel(member_id: str) -> str:
    return f"{settings.notification_topic}:{member_id}"
