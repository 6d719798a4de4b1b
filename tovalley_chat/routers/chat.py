import asyncio
import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from jose import JWTError
from pydantic import ValidationError

from tovalley_chat.core.config import settings
from tovalley_chat.core.exceptions import ToValleyException
from tovalley_chat.routers.chat_rooms import get_chat_service
from tovalley_chat.schemas.chat import SendMessageRequest
from tovalley_chat.services.chat_service import ChatService
from tovalley_chat.utils.realtime_bus import get_bus, notification_channel
from tovalley_chat.utils.security import decode_access_token
from tovalley_chat.utils.websocket_manager import ConnectionManager


logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])
manager = ConnectionManager()


@router.websocket("/ws/chat")
async def chat_socket(websocket: WebSocket, service: ChatService = Depends(get_chat_service)):
    # token travels as ?token=... since browsers cannot set headers on websockets
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4401)
        return
    try:
        member_id = str(decode_access_token(token)["sub"])
    except JWTError:
        await websocket.close(code=4401)
        return

    await manager.connect(member_id, websocket)
    bus = get_bus()

    async def forward_chat(raw: str) -> None:
        event = json.loads(raw)
        if not manager.is_viewing(websocket, event.get("chat_room_id")):
            return
        if event.get("type") == "READ" and event.get("target_id") != member_id:
            return
        await websocket.send_text(raw)

    subscribers = [
        await bus.subscribe(settings.chat_topic, forward_chat),
        await bus.subscribe(notification_channel(member_id), websocket.send_text),
    ]
    tasks = [asyncio.create_task(sub.run()) for sub in subscribers]

    try:
        while True:
            data = await websocket.receive_text()
            try:
                frame = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "ERROR", "detail": "Frames must be JSON"})
                continue

            try:
                if frame.get("type") == "ENTER":
                    chat_room_id = str(frame.get("chat_room_id"))
                    marked = await service.open_room(member_id, chat_room_id)
                    manager.enter_room(websocket, chat_room_id)
                    await websocket.send_json({"type": "ENTERED", "chat_room_id": chat_room_id, "marked_read": marked})
                elif frame.get("type") == "TALK":
                    request = SendMessageRequest.model_validate(frame)
                    saved = await service.send_message(member_id, request)
                    await websocket.send_json({"type": "ACK", "chat_message_id": saved.chat_message_id, "chat_room_id": request.chat_room_id})
                else:
                    await websocket.send_json({"type": "ERROR", "detail": f"Unknown frame type {frame.get('type')!r}"})
            except ValidationError as e:
                await websocket.send_json({"type": "ERROR", "detail": e.errors(include_url=False, include_context=False)})
            except ToValleyException as e:
                await websocket.send_json({"type": "ERROR", "status": e.status_code, "detail": e.detail})
    except WebSocketDisconnect:
        logger.debug("Member %s disconnected", member_id)
    finally:
        for sub in subscribers:
            await sub.cancel()
        for task in tasks:
            task.cancel()
        if manager.disconnect(member_id, websocket):
            await service.disconnect(member_id)
