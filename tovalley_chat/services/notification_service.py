import logging
from typing import Any, Dict

from tovalley_chat.repositories.notification_repository import NotificationRepository
from tovalley_chat.schemas.chat import NotificationEvent
from tovalley_chat.services.chat_room_service import ChatRoomService, other_member_id
from tovalley_chat.utils.background import BackgroundPublisher
from tovalley_chat.utils.clock import now
from tovalley_chat.utils.realtime_bus import notification_channel


logger = logging.getLogger(__name__)


class NotificationService:
    """Records and announces messages for a recipient who is not in the room."""

    def __init__(
        self,
        room_service: ChatRoomService,
        notification_repo: NotificationRepository,
        bus,
        publisher: BackgroundPublisher,
    ) -> None:
        self._room_service = room_service
        self._notification_repo = notification_repo
        self._bus = bus
        self._publisher = publisher

    async def on_message_sent(self, message: Dict[str, Any], sender_id: str, chat_room_id: str) -> NotificationEvent:
        room = await self._room_service.find_room_with_members(chat_room_id)
        recipient_id = other_member_id(room, sender_id)
        sender = room["members"][sender_id]

        await self._notification_repo.save(
            sender_id=sender_id,
            sender_nickname=sender["nickname"],
            recipient_id=recipient_id,
            chat_room_id=chat_room_id,
            content=message["content"],
            created_at=message["created_at"],
        )

        event = NotificationEvent(
            chat_room_id=chat_room_id,
            recipient_id=recipient_id,
            sender_nickname=sender["nickname"],
            created_at=now(),
            content=message["content"],
        )
        self._publisher.submit(
            f"chat notification for member {recipient_id}",
            self._bus.publish(notification_channel(recipient_id), event.model_dump_json()),
        )
        return event

    async def list_for_recipient(self, recipient_id: str, limit: int = 50):
        return await self._notification_repo.list_for_recipient(recipient_id, limit=limit)
