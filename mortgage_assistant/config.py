"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM Provider (OpenAI-compatible: Mistral, OpenAI, etc.)
    llm_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("llm_api_key", "mistral_api_key"),
    )
    llm_base_url: str = "https://api.mistral.ai/v1"
    llm_model: str = "mistral-large-latest"
    llm_temperature: float = 0.7
    llm_max_retries: int = 3
    llm_timeout: float = 30.0

    # Conversation
    context_window: int = 10  # turns sent after the system turn
    session_ttl_seconds: int = 86400  # 24 hours

    # Pacing for replies that arrive in one piece
    stream_chunk_size: int = 10
    stream_chunk_delay: float = 0.01

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
