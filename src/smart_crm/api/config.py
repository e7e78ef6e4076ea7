"""Configuration for the Smart CRM HTTP service."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """HTTP service settings loaded from environment variables."""

    # Backend-as-a-service
    SUPABASE_URL: str
    SUPABASE_ANON_KEY: str
    SUPABASE_FUNCTIONS_URL: str = ""
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # OpenAI (optional; AI-enhanced matching falls back without it)
    OPENAI_API_KEY: str = ""
    OPENAI_CHAT_MODEL: str = "gpt-4.1-mini"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Logging
    JSON_LOGS: bool = False
    LOG_LEVEL: str = "INFO"

    @property
    def functions_url(self) -> str:
        return self.SUPABASE_FUNCTIONS_URL or f"{self.SUPABASE_URL.rstrip('/')}/functions/v1"


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
