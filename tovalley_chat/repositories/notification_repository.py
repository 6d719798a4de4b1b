from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from tovalley_chat.models.chat_notification import ChatNotificationDocument
from tovalley_chat.utils.clock import to_chat_zone


class NotificationRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["chat_notifications"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("recipient_id", ASCENDING), ("created_at", DESCENDING)])

    async def save(
        self,
        sender_id: str,
        sender_nickname: str,
        recipient_id: str,
        chat_room_id: str,
        content: str,
        created_at,
    ) -> ChatNotificationDocument:
        doc: ChatNotificationDocument = {
            "sender_id": sender_id,
            "sender_nickname": sender_nickname,
            "recipient_id": recipient_id,
            "chat_room_id": chat_room_id,
            "content": content,
            "created_at": created_at,
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def list_for_recipient(self, recipient_id: str, limit: int = 50) -> List[ChatNotificationDocument]:
        cursor = self.collection.find({"recipient_id": recipient_id}).sort("created_at", DESCENDING).limit(limit)
        items = await cursor.to_list(length=limit)
        for it in items:
            it["_id"] = str(it.get("_id"))
            it["created_at"] = to_chat_zone(it["created_at"])
        return items
