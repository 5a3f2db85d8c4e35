from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from verse_chat.domain.value_objects.enums import StoreBackend


class Settings(BaseSettings):
    STORE_BACKEND: StoreBackend = StoreBackend.MEMORY

    POSTGRES_USER: str = "verse"
    POSTGRES_PASSWORD: str = "verse"
    POSTGRES_DB: str = "verse"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300

    # user ids made known to the in-memory user directory at startup
    MEMORY_SEED_USERS: list[int] = []
    # accept any positive user id on auth; off means only seeded users exist
    MEMORY_AUTO_REGISTER_USERS: bool = True

    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"

    CORS_ORIGINS: list[str] = ["*"]

    WS_PATH: str = "/ws"
    WS_HEARTBEAT_SECONDS: int = 30

    MESSAGE_MAX_LENGTH: int = 1000

    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "info"

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
