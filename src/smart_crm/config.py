"""
Configuration management for Smart CRM.

Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)


def _functions_url() -> str:
    explicit = os.getenv('SUPABASE_FUNCTIONS_URL', '')
    if explicit:
        return explicit
    base = os.getenv('SUPABASE_URL', '')
    return f"{base.rstrip('/')}/functions/v1" if base else ''


class Config:
    """Configuration settings loaded from environment."""

    # Backend-as-a-service
    SUPABASE_URL: str = os.getenv('SUPABASE_URL', '')
    SUPABASE_ANON_KEY: str = os.getenv('SUPABASE_ANON_KEY', '')
    SUPABASE_FUNCTIONS_URL: str = _functions_url()
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv('HTTP_TIMEOUT_SECONDS', '30'))

    # OpenAI (AI-enhanced matching only)
    OPENAI_API_KEY: str = os.getenv('OPENAI_API_KEY', '')
    OPENAI_CHAT_MODEL: str = os.getenv('OPENAI_CHAT_MODEL', 'gpt-4.1-mini')

    # Search
    SEARCH_DEBOUNCE_MS: int = int(os.getenv('SEARCH_DEBOUNCE_MS', '300'))
    SEARCH_MIN_QUERY_LENGTH: int = int(os.getenv('SEARCH_MIN_QUERY_LENGTH', '2'))

    # Tours
    TOUR_PROGRESS_PATH: str = os.getenv(
        'TOUR_PROGRESS_PATH', str(Path.home() / '.smartcrm' / 'tour_progress.json')
    )

    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate that required configuration is present.

        Returns:
            List of missing required configuration keys
        """
        missing = []
        if not cls.SUPABASE_URL:
            missing.append('SUPABASE_URL')
        if not cls.SUPABASE_ANON_KEY:
            missing.append('SUPABASE_ANON_KEY')
        return missing


# Singleton config instance
config = Config()
