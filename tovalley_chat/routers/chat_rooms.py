from typing import List

from fastapi import APIRouter, Depends, Query

from tovalley_chat.database.connection import get_redis, mongo_db_dependency
from tovalley_chat.schemas.chat import (
    ChatMessageListView,
    ChatNotificationView,
    ChatRoomView,
    CreateChatRoomRequest,
    CreateChatRoomResult,
    Slice,
)
from tovalley_chat.services.chat_service import ChatService, build_chat_service
from tovalley_chat.utils.background import get_publisher
from tovalley_chat.utils.dependencies import get_current_member_id
from tovalley_chat.utils.realtime_bus import get_bus


router = APIRouter(prefix="/chat", tags=["chat"])


def get_chat_service(db = Depends(mongo_db_dependency)) -> ChatService:
    return build_chat_service(db, get_redis(), get_bus(), get_publisher())


@router.post("/rooms", response_model=CreateChatRoomResult)
async def create_or_get_room(body: CreateChatRoomRequest, member_id: str = Depends(get_current_member_id), service: ChatService = Depends(get_chat_service)):
    return await service.create_or_get_room(member_id, body.recipient_nick)


@router.get("/rooms", response_model=Slice[ChatRoomView])
async def list_rooms(page: int = Query(0, ge=0), size: int = Query(20, ge=1, le=100), member_id: str = Depends(get_current_member_id), service: ChatService = Depends(get_chat_service)):
    return await service.get_room_list(member_id, page=page, size=size)


@router.get("/rooms/{chat_room_id}/messages", response_model=ChatMessageListView)
async def list_messages(chat_room_id: str, page: int = Query(0, ge=0), size: int = Query(50, ge=1, le=200), member_id: str = Depends(get_current_member_id), service: ChatService = Depends(get_chat_service)):
    return await service.get_messages(member_id, chat_room_id, page=page, size=size)


@router.post("/rooms/{chat_room_id}/read")
async def mark_read(chat_room_id: str, member_id: str = Depends(get_current_member_id), service: ChatService = Depends(get_chat_service)):
    count = await service.mark_read(member_id, chat_room_id)
    return {"updated": count}


@router.get("/notifications", response_model=List[ChatNotificationView])
async def list_notifications(limit: int = Query(50, ge=1, le=200), member_id: str = Depends(get_current_member_id), service: ChatService = Depends(get_chat_service)):
    return await service.get_notifications(member_id, limit=limit)
