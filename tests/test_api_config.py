"""Tests for HTTP service configuration."""

import os
from unittest.mock import patch

from smart_crm.api.config import Settings


class TestApiConfig:
    def test_config_loads_from_env(self):
        env = {
            "SUPABASE_URL": "https://project.supabase.co",
            "SUPABASE_ANON_KEY": "anon-key",
            "OPENAI_API_KEY": "sk-test-key",
            "JSON_LOGS": "true",
        }
        with patch.dict(os.environ, env, clear=False):
            settings = Settings()
            assert settings.SUPABASE_URL == "https://project.supabase.co"
            assert settings.SUPABASE_ANON_KEY == "anon-key"
            assert settings.OPENAI_API_KEY == "sk-test-key"
            assert settings.JSON_LOGS is True

    def test_functions_url_defaults_to_project(self):
        env = {
            "SUPABASE_URL": "https://project.supabase.co/",
            "SUPABASE_ANON_KEY": "anon-key",
            "SUPABASE_FUNCTIONS_URL": "",
        }
        with patch.dict(os.environ, env, clear=False):
            settings = Settings()
            assert settings.functions_url == "https://project.supabase.co/functions/v1"
            assert settings.LOG_LEVEL == "INFO"

    def test_functions_url_override(self):
        env = {
            "SUPABASE_URL": "https://project.supabase.co",
            "SUPABASE_ANON_KEY": "anon-key",
            "SUPABASE_FUNCTIONS_URL": "http://localhost:54321/functions/v1",
        }
        with patch.dict(os.environ, env, clear=False):
            assert Settings().functions_url == "http://localhost:54321/functions/v1"
