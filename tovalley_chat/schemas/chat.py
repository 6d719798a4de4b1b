from datetime import datetime
from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")


class Slice(BaseModel, Generic[T]):
    """One page of results; no total count."""

    content: List[T]
    page: int
    size: int
    has_next: bool


class CreateChatRoomRequest(BaseModel):

    recipient_nick: str = Field(min_length=1)


class CreateChatRoomResult(BaseModel):

    model_config = ConfigDict(frozen=True)

    created: bool
    chat_room_id: str


class SendMessageRequest(BaseModel):

    chat_room_id: str
    content: str = Field(min_length=1)


class ChatRoomView(BaseModel):

    model_config = ConfigDict(frozen=True)

    chat_room_id: str
    other_member_id: str
    other_member_nickname: Optional[str] = None
    created_at: datetime
    unread_message_count: int = 0
    last_message: Optional[str] = None
    last_message_time: Optional[datetime] = None


class ChatMessageView(BaseModel):

    model_config = ConfigDict(frozen=True)

    chat_message_id: str
    sender_id: str
    content: str
    created_at: datetime
    read_count: int
    my_message: bool


class ChatMessageListView(BaseModel):

    model_config = ConfigDict(frozen=True)

    member_id: str
    chat_room_id: str
    chat_messages: Slice[ChatMessageView]


class MessageEvent(BaseModel):
    """Published on the chat topic for live delivery."""

    type: Literal["TALK"] = "TALK"
    chat_message_id: str
    chat_room_id: str
    sender_id: str
    content: str
    created_at: datetime
    read_count: int


class ReadEvent(BaseModel):
    """Published on the chat topic when a member catches up on a room."""

    type: Literal["READ"] = "READ"
    chat_room_id: str
    reader_id: str
    target_id: str
    read_at: datetime


class NotificationEvent(BaseModel):
    """Published on the recipient's notification channel."""

    type: Literal["CHAT"] = "CHAT"
    chat_room_id: str
    recipient_id: str
    sender_nickname: str
    created_at: datetime
    content: str


class ChatNotificationView(BaseModel):

    notification_id: str
    chat_room_id: str
    sender_nickname: str
    content: str
    created_at: datetime
