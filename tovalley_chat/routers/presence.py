from fastapi import APIRouter, Depends

from tovalley_chat.routers.chat_rooms import get_chat_service
from tovalley_chat.services.chat_service import ChatService
from tovalley_chat.utils.dependencies import get_current_member_id


router = APIRouter(prefix="/presence", tags=["chat"])


@router.get("/rooms/{chat_room_id}")
async def presence(chat_room_id: str, member_id: str = Depends(get_current_member_id), service: ChatService = Depends(get_chat_service)):
    """Members currently viewing the room. Advisory only; empty when Redis is not configured."""
    participants = await service.participants_of(member_id, chat_room_id)
    return {"chat_room_id": chat_room_id, "participants": participants}
