"""Custom exceptions for the chat core."""
from typing import Any, Dict, Optional

from fastapi import HTTPException


class ToValleyException(HTTPException):
    """Base exception, surfaced to the caller as a failed request."""
    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class MemberNotFound(ToValleyException):
    def __init__(self, message: str = "Member does not exist"):
        super().__init__(status_code=404, detail=message)


class ChatRoomNotFound(ToValleyException):
    def __init__(self, chat_room_id: str):
        super().__init__(status_code=404, detail=f"Chat room {chat_room_id} does not exist")


class NotChatRoomMember(ToValleyException):
    """Raised when a member touches a room they do not belong to."""
    def __init__(self):
        super().__init__(status_code=403, detail="Member is not a participant of this chat room")


class InvalidChatMembers(ToValleyException):
    """Room creation needs exactly two distinct members."""
    def __init__(self, message: str = "A chat room needs exactly two distinct members"):
        super().__init__(status_code=422, detail=message)
