from datetime import datetime
from typing import TypedDict


class ChatMessageDocument(TypedDict, total=False):
    _id: str
    chat_room_id: str
    sender_id: str
    content: str
    created_at: datetime
    # 0 = read by everyone, 1 = not yet read by the recipient
    read_count: int
