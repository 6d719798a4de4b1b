from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from tovalley_chat.models.chat_message import ChatMessageDocument
from tovalley_chat.utils.clock import to_chat_zone


UNREAD = 1
READ = 0


class MessageRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["chat_messages"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("chat_room_id", ASCENDING), ("created_at", DESCENDING)])
        await self.collection.create_index([("chat_room_id", ASCENDING), ("read_count", ASCENDING)])

    async def append(
        self,
        chat_room_id: str,
        sender_id: str,
        content: str,
        created_at,
        read_count: int,
    ) -> ChatMessageDocument:
        doc: ChatMessageDocument = {
            "chat_room_id": chat_room_id,
            "sender_id": sender_id,
            "content": content,
            "created_at": created_at,
            "read_count": read_count,
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def list_by_room(
        self,
        chat_room_id: str,
        page: int = 0,
        size: int = 50,
    ) -> Tuple[List[ChatMessageDocument], bool]:
        """Newest first. Returns the page and whether another page exists."""
        sort = [("created_at", DESCENDING), ("_id", DESCENDING)]
        cursor = self.collection.find({"chat_room_id": chat_room_id}).sort(sort).skip(page * size).limit(size + 1)
        items = await cursor.to_list(length=size + 1)
        has_next = len(items) > size
        return [self._normalize(it) for it in items[:size]], has_next

    async def latest_in_room(self, chat_room_id: str) -> Optional[ChatMessageDocument]:
        cursor = self.collection.find({"chat_room_id": chat_room_id}).sort(
            [("created_at", DESCENDING), ("_id", DESCENDING)]
        ).limit(1)
        items = await cursor.to_list(length=1)
        return self._normalize(items[0]) if items else None

    async def count_unread(self, chat_room_id: str, member_id: str) -> int:
        return await self.collection.count_documents(self._unread_for(chat_room_id, member_id))

    async def mark_read(self, chat_room_id: str, member_id: str) -> int:
        result = await self.collection.update_many(
            self._unread_for(chat_room_id, member_id),
            {"$set": {"read_count": READ}},
        )
        return result.modified_count or 0

    def _unread_for(self, chat_room_id: str, member_id: str) -> Dict[str, Any]:
        # messages addressed to member_id that are still unread
        return {"chat_room_id": chat_room_id, "read_count": UNREAD, "sender_id": {"$ne": member_id}}

    def _normalize(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        doc["_id"] = str(doc.get("_id"))
        doc["created_at"] = to_chat_zone(doc["created_at"])
        return doc
