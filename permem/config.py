"""Client configuration: fixed defaults, resolution, and environment settings."""

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_URL = "http://localhost:3333"
DEFAULT_MAX_CONTEXT_LENGTH = 8000
DEFAULT_EXTRACT_THRESHOLD = 0.7


class ResolvedConfig(BaseModel):
    """Configuration of a client instance with all defaults applied."""

    model_config = ConfigDict(frozen=True)

    url: str = DEFAULT_URL
    api_key: Optional[str] = None
    max_context_length: int = DEFAULT_MAX_CONTEXT_LENGTH
    extract_threshold: float = DEFAULT_EXTRACT_THRESHOLD


def resolve_config(
    url: Optional[str] = None,
    api_key: Optional[str] = None,
    max_context_length: Optional[int] = None,
    extract_threshold: Optional[float] = None,
) -> ResolvedConfig:
    """
    Merge caller-supplied values over the fixed defaults.

    Empty values (None, "", 0) fall back to the default. Nothing is range
    checked: the server is the only validator.

    Args:
        url: Base URL of the Permem server.
        api_key: API key sent as the x-api-key header.
        max_context_length: Model context window in tokens.
        extract_threshold: Fraction of the context window that triggers extraction.

    Returns:
        A frozen ResolvedConfig.
    """
    return ResolvedConfig(
        url=url or DEFAULT_URL,
        api_key=api_key or None,
        max_context_length=max_context_length or DEFAULT_MAX_CONTEXT_LENGTH,
        extract_threshold=extract_threshold or DEFAULT_EXTRACT_THRESHOLD,
    )


class Settings(BaseSettings):
    """Settings loaded from PERMEM_* environment variables and .env."""

    model_config = SettingsConfigDict(
        env_prefix="PERMEM_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )

    url: Optional[str] = None
    api_key: Optional[str] = None
    max_context_length: Optional[int] = None
    extract_threshold: Optional[float] = None

    # Chat example
    user_id: str = "cli-chat-user"
    chat_model: str = "gpt-4o-mini"
    extract_message_threshold: int = 10

    def client_config(self) -> ResolvedConfig:
        """Resolve the client configuration described by these settings."""
        return resolve_config(
            url=self.url,
            api_key=self.api_key,
            max_context_length=self.max_context_length,
            extract_threshold=self.extract_threshold,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
