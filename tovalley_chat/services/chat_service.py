import logging
from typing import Any, Dict, List

from redis.exceptions import RedisError

from tovalley_chat.core.config import settings
from tovalley_chat.repositories.chat_room_repository import ChatRoomRepository
from tovalley_chat.repositories.member_repository import MemberRepository
from tovalley_chat.repositories.message_repository import READ, UNREAD, MessageRepository
from tovalley_chat.repositories.notification_repository import NotificationRepository
from tovalley_chat.repositories.presence_repository import PresenceRepository
from tovalley_chat.schemas.chat import (
    ChatMessageListView,
    ChatMessageView,
    ChatNotificationView,
    ChatRoomView,
    CreateChatRoomResult,
    MessageEvent,
    ReadEvent,
    SendMessageRequest,
    Slice,
)
from tovalley_chat.services.chat_room_service import ChatRoomService, other_member_id
from tovalley_chat.services.notification_service import NotificationService
from tovalley_chat.utils.background import BackgroundPublisher, best_effort
from tovalley_chat.utils.clock import now


logger = logging.getLogger(__name__)


class ChatService:

    def __init__(
        self,
        room_service: ChatRoomService,
        message_repo: MessageRepository,
        presence_repo: PresenceRepository,
        notification_service: NotificationService,
        bus,
        publisher: BackgroundPublisher,
    ) -> None:
        self._room_service = room_service
        self._message_repo = message_repo
        self._presence_repo = presence_repo
        self._notification_service = notification_service
        self._bus = bus
        self._publisher = publisher

    async def create_or_get_room(self, sender_id: str, recipient_nick: str) -> CreateChatRoomResult:
        return await self._room_service.create_or_get_room(sender_id, recipient_nick)

    async def send_message(self, sender_id: str, request: SendMessageRequest) -> ChatMessageView:
        chat_room_id = request.chat_room_id
        await self._room_service.ensure_member_of_room(sender_id, chat_room_id)

        all_present = await self._all_members_present(chat_room_id)
        saved = await self._message_repo.append(
            chat_room_id=chat_room_id,
            sender_id=sender_id,
            content=request.content,
            created_at=now(),
            read_count=READ if all_present else UNREAD,
        )

        if not all_present:
            await best_effort(
                f"chat notification for room {chat_room_id}",
                self._notification_service.on_message_sent(saved, sender_id, chat_room_id),
            )

        event = MessageEvent(
            chat_message_id=saved["_id"],
            chat_room_id=chat_room_id,
            sender_id=sender_id,
            content=saved["content"],
            created_at=saved["created_at"],
            read_count=saved["read_count"],
        )
        self._publisher.submit(
            f"chat message {saved['_id']}",
            self._bus.publish(settings.chat_topic, event.model_dump_json()),
        )
        return self._to_message_view(saved, sender_id)

    async def _all_members_present(self, chat_room_id: str) -> bool:
        try:
            return await self._presence_repo.is_fully_attended(
                chat_room_id, expected_size=settings.max_participants_per_room
            )
        except RedisError:
            # presence is advisory; without it every message counts as unread
            logger.warning("Presence lookup failed for room %s", chat_room_id, exc_info=True)
            return False

    async def get_room_list(self, member_id: str, page: int = 0, size: int = 20) -> Slice[ChatRoomView]:
        rooms, has_next = await self._room_service.list_rooms_for_member(member_id, page=page, size=size)
        views = [await self._to_room_view(room, member_id) for room in rooms]
        return Slice[ChatRoomView](
            content=sort_by_last_message_time(views),
            page=page,
            size=size,
            has_next=has_next,
        )

    async def _to_room_view(self, room: Dict[str, Any], member_id: str) -> ChatRoomView:
        counterpart_id = other_member_id(room, member_id)
        counterpart = await self._room_service.find_member(counterpart_id)
        unread = await self._message_repo.count_unread(room["_id"], member_id)
        last = await self._message_repo.latest_in_room(room["_id"])
        return ChatRoomView(
            chat_room_id=room["_id"],
            other_member_id=counterpart_id,
            other_member_nickname=counterpart.get("nickname") if counterpart else None,
            created_at=room["created_at"],
            unread_message_count=unread,
            last_message=last["content"] if last else None,
            last_message_time=last["created_at"] if last else None,
        )

    async def get_messages(self, member_id: str, chat_room_id: str, page: int = 0, size: int = 50) -> ChatMessageListView:
        await self._room_service.ensure_member_of_room(member_id, chat_room_id)
        messages, has_next = await self._message_repo.list_by_room(chat_room_id, page=page, size=size)
        return ChatMessageListView(
            member_id=member_id,
            chat_room_id=chat_room_id,
            chat_messages=Slice[ChatMessageView](
                content=[self._to_message_view(m, member_id) for m in messages],
                page=page,
                size=size,
                has_next=has_next,
            ),
        )

    async def open_room(self, member_id: str, chat_room_id: str) -> int:
        """
        Member starts viewing a room: catch up on unread messages, record
        presence and tell the counterpart if they are watching too.
        Returns how many messages were marked read.
        """
        await self._room_service.ensure_member_of_room(member_id, chat_room_id)
        marked = await self._message_repo.mark_read(chat_room_id, member_id)

        try:
            await self._presence_repo.join(member_id, chat_room_id)
            other_id = await self._presence_repo.other_participant(chat_room_id, member_id)
        except RedisError:
            logger.warning("Presence update failed for member %s in room %s", member_id, chat_room_id, exc_info=True)
            return marked

        if other_id is not None:
            event = ReadEvent(chat_room_id=chat_room_id, reader_id=member_id, target_id=other_id, read_at=now())
            self._publisher.submit(
                f"read receipt for room {chat_room_id}",
                self._bus.publish(settings.chat_topic, event.model_dump_json()),
            )
        return marked

    async def mark_read(self, member_id: str, chat_room_id: str) -> int:
        await self._room_service.ensure_member_of_room(member_id, chat_room_id)
        return await self._message_repo.mark_read(chat_room_id, member_id)

    async def disconnect(self, member_id: str) -> None:
        try:
            await self._presence_repo.leave_all(member_id)
        except RedisError:
            # records left behind only make the room look attended until Redis is wiped
            logger.warning("Presence cleanup failed for member %s", member_id, exc_info=True)

    async def participants_of(self, member_id: str, chat_room_id: str) -> List[str]:
        await self._room_service.ensure_member_of_room(member_id, chat_room_id)
        return sorted(await self._presence_repo.participants_of(chat_room_id))

    async def get_notifications(self, member_id: str, limit: int = 50) -> List[ChatNotificationView]:
        items = await self._notification_service.list_for_recipient(member_id, limit=limit)
        return [
            ChatNotificationView(
                notification_id=it["_id"],
                chat_room_id=it["chat_room_id"],
                sender_nickname=it["sender_nickname"],
                content=it["content"],
                created_at=it["created_at"],
            )
            for it in items
        ]

    def _to_message_view(self, message: Dict[str, Any], viewer_id: str) -> ChatMessageView:
        return ChatMessageView(
            chat_message_id=message["_id"],
            sender_id=message["sender_id"],
            content=message["content"],
            created_at=message["created_at"],
            read_count=message["read_count"],
            my_message=message["sender_id"] == viewer_id,
        )


def sort_by_last_message_time(rooms: List[ChatRoomView]) -> List[ChatRoomView]:
    """Most recent conversation first; rooms without messages go last."""
    with_messages = [r for r in rooms if r.last_message_time is not None]
    without_messages = [r for r in rooms if r.last_message_time is None]
    with_messages.sort(key=lambda r: r.last_message_time, reverse=True)
    return with_messages + without_messages


def build_chat_service(db, redis_client, bus, publisher: BackgroundPublisher) -> ChatService:
    room_service = ChatRoomService(ChatRoomRepository(db), MemberRepository(db))
    notification_service = NotificationService(room_service, NotificationRepository(db), bus, publisher)
    return ChatService(
        room_service,
        MessageRepository(db),
        PresenceRepository(redis_client),
        notification_service,
        bus,
        publisher,
    )
