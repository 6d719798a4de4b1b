import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tovalley_chat.core.logging import setup_logging
from tovalley_chat.database.connection import (
    close_mongo_connection,
    close_redis,
    connect_to_mongo,
    get_database,
    get_redis,
)
from tovalley_chat.repositories.chat_room_repository import ChatRoomRepository
from tovalley_chat.repositories.message_repository import MessageRepository
from tovalley_chat.repositories.notification_repository import NotificationRepository
from tovalley_chat.routers.chat import router as chat_router
from tovalley_chat.routers.chat_rooms import router as chat_rooms_router
from tovalley_chat.routers.presence import router as presence_router
from tovalley_chat.utils.background import get_publisher
from tovalley_chat.utils.realtime_bus import reset_bus


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):

    setup_logging()
    await connect_to_mongo()
    db = get_database()
    await ChatRoomRepository(db).ensure_indexes()
    await MessageRepository(db).ensure_indexes()
    await NotificationRepository(db).ensure_indexes()
    if get_redis() is None:
        logger.warning("REDIS_URL is not set: presence is disabled and events are not published")
    try:
        yield
    finally:
        await get_publisher().drain()
        reset_bus()
        await close_redis()
        await close_mongo_connection()


app = FastAPI(title="ToValley chat", lifespan=lifespan)


app.include_router(chat_rooms_router)
app.include_router(chat_router)
app.include_router(presence_router)
