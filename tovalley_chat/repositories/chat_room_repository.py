from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from tovalley_chat.models.chat_room import ChatRoomDocument
from tovalley_chat.utils.clock import now, to_chat_zone


def pair_key(member_a: str, member_b: str) -> str:
    return ":".join(sorted([member_a, member_b]))


class ChatRoomRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["chat_rooms"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("pair_key", ASCENDING)], unique=True)
        await self.collection.create_index([("participants", ASCENDING), ("_id", DESCENDING)])

    async def find_by_id(self, chat_room_id: str) -> Optional[ChatRoomDocument]:
        oid = self._to_object_id(chat_room_id)
        if oid is None:
            return None
        return self._normalize(await self.collection.find_one({"_id": oid}))

    async def find_by_members(self, member_a: str, member_b: str) -> Optional[ChatRoomDocument]:
        return self._normalize(await self.collection.find_one({"pair_key": pair_key(member_a, member_b)}))

    async def find_by_id_and_member(self, chat_room_id: str, member_id: str) -> Optional[ChatRoomDocument]:
        oid = self._to_object_id(chat_room_id)
        if oid is None:
            return None
        return self._normalize(await self.collection.find_one({"_id": oid, "participants": member_id}))

    async def create(self, sender_id: str, recipient_id: str) -> Tuple[bool, ChatRoomDocument]:
        """Insert a room for the pair, or return the room that won a concurrent insert."""
        doc: ChatRoomDocument = {
            "pair_key": pair_key(sender_id, recipient_id),
            "participants": sorted([sender_id, recipient_id]),
            "sender_id": sender_id,
            "recipient_id": recipient_id,
            "created_at": now(),
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            existing = await self.find_by_members(sender_id, recipient_id)
            if existing is None:
                raise
            return False, existing
        doc["_id"] = str(result.inserted_id)
        return True, doc

    async def list_for_member(self, member_id: str, page: int = 0, size: int = 20) -> Tuple[List[ChatRoomDocument], bool]:
        cursor = (
            self.collection.find({"participants": member_id})
            .sort([("_id", DESCENDING)])
            .skip(page * size)
            .limit(size + 1)
        )
        items = await cursor.to_list(length=size + 1)
        has_next = len(items) > size
        return [self._normalize(it) for it in items[:size]], has_next

    def _normalize(self, doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if doc is None:
            return None
        doc["_id"] = str(doc["_id"])
        if doc.get("created_at") is not None:
            doc["created_at"] = to_chat_zone(doc["created_at"])
        return doc

    def _to_object_id(self, oid_hex: str) -> Optional[ObjectId]:
        try:
            return ObjectId(oid_hex)
        except (InvalidId, TypeError):
            return None
