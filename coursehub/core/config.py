from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db_name: str = "coursehub"

    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7

    cors_origins: List[str] = ["http://localhost:5173"]
    log_level: str = "INFO"

    # seconds a chat peer may take to accept a frame before it is dropped
    chat_send_timeout: float = 5.0


settings = Settings()
