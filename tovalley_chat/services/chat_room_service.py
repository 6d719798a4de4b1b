import logging
from typing import Any, Dict, List, Optional, Tuple

from tovalley_chat.core.exceptions import (
    ChatRoomNotFound,
    InvalidChatMembers,
    MemberNotFound,
    NotChatRoomMember,
)
from tovalley_chat.repositories.chat_room_repository import ChatRoomRepository
from tovalley_chat.repositories.member_repository import MemberRepository
from tovalley_chat.schemas.chat import CreateChatRoomResult


logger = logging.getLogger(__name__)


class ChatRoomService:
    """Room membership: creation, lookup and authorization."""

    def __init__(self, room_repo: ChatRoomRepository, member_repo: MemberRepository) -> None:
        self._room_repo = room_repo
        self._member_repo = member_repo

    async def create_or_get_room(self, sender_id: str, recipient_nick: str) -> CreateChatRoomResult:
        """
        Return the existing room between sender and the member called
        recipient_nick, or create it.
        - Room lookup is symmetric: whoever created it, the same pair finds it
        - Both members must exist and be distinct
        """
        recipient = await self._member_repo.find_by_nickname(recipient_nick)
        if recipient and recipient["_id"] != sender_id:
            existing = await self._room_repo.find_by_members(sender_id, recipient["_id"])
            if existing:
                return CreateChatRoomResult(created=False, chat_room_id=existing["_id"])

        members = await self._member_repo.find_by_id_or_nickname(sender_id, recipient_nick)
        sender, recipient = self._split_members(members, sender_id, recipient_nick)

        created, room = await self._room_repo.create(sender["_id"], recipient["_id"])
        if created:
            logger.info("Created chat room %s for members %s and %s", room["_id"], sender["_id"], recipient["_id"])
        return CreateChatRoomResult(created=created, chat_room_id=room["_id"])

    def _split_members(
        self, members: List[Dict[str, Any]], sender_id: str, recipient_nick: str
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        sender = next((m for m in members if m["_id"] == sender_id), None)
        if sender is None:
            raise MemberNotFound("Sender does not exist")
        if not any(m.get("nickname") == recipient_nick for m in members):
            raise MemberNotFound(f"No member is called {recipient_nick}")
        if len(members) != 2:
            raise InvalidChatMembers()
        recipient = next(m for m in members if m["_id"] != sender_id)
        return sender, recipient

    async def find_room_with_members(self, chat_room_id: str) -> Dict[str, Any]:
        """The room document plus ``members``: member id -> member document."""
        room = await self._room_repo.find_by_id(chat_room_id)
        if room is None:
            raise ChatRoomNotFound(chat_room_id)
        members: Dict[str, Dict[str, Any]] = {}
        for member_id in room["participants"]:
            member = await self._member_repo.find_by_id(member_id)
            if member is None:
                raise MemberNotFound(f"Member {member_id} of chat room {chat_room_id} does not exist")
            members[member_id] = member
        return {**room, "members": members}

    async def list_rooms_for_member(self, member_id: str, page: int = 0, size: int = 20):
        return await self._room_repo.list_for_member(member_id, page=page, size=size)

    async def is_member_of_room(self, member_id: str, chat_room_id: str) -> bool:
        return await self._room_repo.find_by_id_and_member(chat_room_id, member_id) is not None

    async def ensure_member_of_room(self, member_id: str, chat_room_id: str) -> None:
        if not await self.is_member_of_room(member_id, chat_room_id):
            raise NotChatRoomMember()

    async def find_member(self, member_id: str) -> Optional[Dict[str, Any]]:
        return await self._member_repo.find_by_id(member_id)


def other_member_id(room: Dict[str, Any], member_id: str) -> str:
    return room["recipient_id"] if room["sender_id"] == member_id else room["sender_id"]
