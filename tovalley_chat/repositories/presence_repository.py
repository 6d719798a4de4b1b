import logging
from typing import Optional, Set

import redis.asyncio as redis


logger = logging.getLogger(__name__)


def room_key(chat_room_id: str) -> str:
    return f"chat:room:{chat_room_id}:participants"


def member_key(member_id: str) -> str:
    return f"chat:member:{member_id}:rooms"


class PresenceRepository:
    """
    Which members currently have which chat rooms open.

    Records live only in Redis and carry no TTL; losing them is harmless
    and only makes every send look like the recipient is away.
    """

    def __init__(self, client: Optional[redis.Redis]) -> None:
        self._redis = client

    async def join(self, member_id: str, chat_room_id: str) -> None:
        if self._redis is None:
            return
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.sadd(room_key(chat_room_id), member_id)
            pipe.sadd(member_key(member_id), chat_room_id)
            await pipe.execute()

    async def leave_all(self, member_id: str) -> None:
        if self._redis is None:
            return
        rooms = await self._redis.smembers(member_key(member_id))
        async with self._redis.pipeline(transaction=True) as pipe:
            for chat_room_id in rooms:
                pipe.srem(room_key(chat_room_id), member_id)
            pipe.delete(member_key(member_id))
            await pipe.execute()
        if rooms:
            logger.debug("Member %s left %d chat room(s)", member_id, len(rooms))

    async def participants_of(self, chat_room_id: str) -> Set[str]:
        if self._redis is None:
            return set()
        return set(await self._redis.smembers(room_key(chat_room_id)))

    async def other_participant(self, chat_room_id: str, member_id: str) -> Optional[str]:
        for participant in await self.participants_of(chat_room_id):
            if participant != member_id:
                return participant
        return None

    async def is_fully_attended(self, chat_room_id: str, expected_size: int = 2) -> bool:
        if self._redis is None:
            return False
        return await self._redis.scard(room_key(chat_room_id)) == expected_size
