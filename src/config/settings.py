from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized configuration loaded from environment variables or .env."""

    google_client_id: Optional[str] = Field(None, alias="GOOGLE_CLIENT_ID")
    google_client_secret: Optional[str] = Field(None, alias="GOOGLE_CLIENT_SECRET")
    google_refresh_token: Optional[str] = Field(None, alias="GOOGLE_REFRESH_TOKEN")
    google_token_uri: str = Field("https://oauth2.googleapis.com/token", alias="GOOGLE_TOKEN_URI")

    drive_api_base: str = Field("https://www.googleapis.com/drive/v3", alias="DRIVE_API_BASE")

    openai_api_key: Optional[str] = Field(None, alias="OPENAI_API_KEY")
    openai_api_base: Optional[str] = Field(None, alias="OPENAI_API_BASE")

    http_timeout_seconds: float = Field(30.0, alias="HTTP_TIMEOUT_SECONDS")
    default_purpose: str = Field("assistants", alias="DEFAULT_PURPOSE")
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ALLOW_ORIGINS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def has_refresh_config(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret and self.google_refresh_token)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()  # type: ignore[arg-type]
