import asyncio
import json

import pytest
from bson import ObjectId
from fakeredis import FakeAsyncRedis
from mongomock_motor import AsyncMongoMockClient

from tovalley_chat.services.chat_service import build_chat_service
from tovalley_chat.utils.background import BackgroundPublisher


class RecordingBus:

    enabled = True

    def __init__(self) -> None:
        self.published = []

    async def publish(self, channel: str, message: str) -> None:
        self.published.append((channel, json.loads(message)))

    def on(self, channel: str):
        return [payload for ch, payload in self.published if ch == channel]


class FailingBus(RecordingBus):

    async def publish(self, channel: str, message: str) -> None:
        raise ConnectionError("bus is down")


class LoopbackBus(RecordingBus):
    """Delivers publishes straight to in-process subscribers."""

    def __init__(self) -> None:
        super().__init__()
        self.handlers = {}

    async def publish(self, channel: str, message: str) -> None:
        await super().publish(channel, message)
        for handler in list(self.handlers.get(channel, [])):
            await handler(message)

    async def subscribe(self, channel: str, on_message):
        handlers = self.handlers.setdefault(channel, [])
        handlers.append(on_message)

        class _Sub:
            async def run(self):
                await asyncio.Future()

            async def cancel(self):
                if on_message in handlers:
                    handlers.remove(on_message)
        return _Sub()


@pytest.fixture
def db():
    return AsyncMongoMockClient()["tovalley_test"]


@pytest.fixture
async def redis_client():
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture
def publisher():
    return BackgroundPublisher(limit=100, timeout=1.0)


@pytest.fixture
def chat_service(db, redis_client, bus, publisher):
    return build_chat_service(db, redis_client, bus, publisher)


@pytest.fixture
async def members(db):
    """Three members keyed by nickname -> id."""
    ids = {}
    for nickname in ("valley", "river", "stone"):
        oid = ObjectId()
        await db["members"].insert_one({"_id": oid, "nickname": nickname})
        ids[nickname] = str(oid)
    return ids
