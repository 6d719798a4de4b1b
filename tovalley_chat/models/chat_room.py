from datetime import datetime
from typing import List, TypedDict


class ChatRoomDocument(TypedDict, total=False):
    _id: str
    # sorted "<id>:<id>", unique per unordered member pair
    pair_key: str
    participants: List[str]
    sender_id: str
    recipient_id: str
    created_at: datetime
