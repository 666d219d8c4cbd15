from __future__ import annotations

from pathlib import Path

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_BASE_URL: str = "http://localhost:8080"
    WS_BASE_URL: str | None = None

    HTTP_TIMEOUT: float = 5.0

    HISTORY_PAGE_SIZE: int = 50
    UNREAD_POLL_INTERVAL: float = 30.0

    RECONNECT_ENABLED: bool = False
    RECONNECT_BASE_DELAY: float = 1.0
    RECONNECT_MAX_DELAY: float = 30.0
    RECONNECT_MAX_ATTEMPTS: int | None = None

    SORT_MESSAGES_BY_CREATED_AT: bool = False

    CREDENTIALS_FILE: Path = Path("~/.neurohelp/credentials.json")
    CREDENTIALS_KEY: str = "userToken"

    LOG_LEVEL: str = "WARNING"

    @property
    def ws_base_url(self) -> str:
        from neurohelp_chat.infrastructure.ws.urls import build_ws_base

        return self.WS_BASE_URL or build_ws_base(self.API_BASE_URL)

    @property
    def credentials_path(self) -> Path:
        return self.CREDENTIALS_FILE.expanduser()

    model_config = ConfigDict(
        env_file=".env",
        env_prefix="NEUROHELP_",
        extra="ignore",
    )


settings = Settings()
