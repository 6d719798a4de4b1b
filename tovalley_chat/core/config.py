"""Application configuration using Pydantic."""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    mongo_url: str = 'mongodb://localhost:27017'
    mongo_db_name: str = 'tovalley'
    redis_url: Optional[str] = None

    jwt_secret_key: str = 'change-me'
    jwt_algorithm: str = 'HS256'

    # all chat timestamps are produced in this civil zone
    time_zone: str = 'Asia/Seoul'

    chat_topic: str = 'chat'
    notification_topic: str = 'notification'
    max_participants_per_room: int = 2

    publish_limit: int = 1000
    publish_timeout_seconds: float = 5.0

    log_level: str = 'INFO'

    model_config = {
        'env_file': '.env',
        'extra': 'ignore'
    }


settings = Settings()
