from datetime import datetime
from typing import TypedDict


class ChatNotificationDocument(TypedDict, total=False):
    _id: str
    sender_id: str
    sender_nickname: str
    recipient_id: str
    chat_room_id: str
    content: str
    created_at: datetime
