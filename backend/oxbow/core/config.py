from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Oxbow"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    FUNCTIONS_PREFIX: str = "/functions/v1"

    DATABASE_URL: str = "sqlite:///./oxbow.db"

    # LLM provider (OpenAI-compatible)
    OPENAI_API_KEY: str | None = None
    LLM_BASE_URL: str | None = None
    MODEL_MIRROR: str = "gpt-5.1"
    MODEL_PREVIEW: str = "gpt-5-mini"
    MODEL_FOCUS_THEME: str = "gpt-4o-mini"
    MODEL_TRANSCRIPTION: str = "whisper-1"

    MIRROR_MAX_COMPLETION_TOKENS: int = 10000
    PREVIEW_MAX_COMPLETION_TOKENS: int = 2000
    FOCUS_THEME_MAX_TOKENS: int = 10

    MIRROR_TIMEOUT_SECONDS: float = 240.0
    PREVIEW_TIMEOUT_SECONDS: float = 60.0
    TRANSCRIPTION_TIMEOUT_SECONDS: float = 60.0

    # Mirror admission and retry policy
    MIRROR_THRESHOLD: int = 10
    MENS_GROUP_NAME: str = "Mens Group"
    MENS_GROUP_THRESHOLD: int = 6
    MIRROR_MAX_RETRIES: int = 1
    MIRROR_RETRY_DELAY_SECONDS: float = 2.0
    MIRROR_RATE_LIMIT_HOURS: int = 24

    # Push notifications
    EXPO_PUSH_URL: str = "https://exp.host/--/api/v2/push/send"
    PUSH_TIMEOUT_SECONDS: float = 30.0
    REMINDER_TIMEZONE: str = "America/Denver"
    REMINDER_GROUP_NAME: str = "Mens Group"


settings = Settings()  # type: ignore
