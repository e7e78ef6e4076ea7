"""Tests for the FastAPI app startup/shutdown and route wiring."""

from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient


def _settings(openai_key: str = "sk-test") -> MagicMock:
    return MagicMock(
        SUPABASE_URL="https://project.supabase.co",
        SUPABASE_ANON_KEY="anon-key",
        HTTP_TIMEOUT_SECONDS=5.0,
        OPENAI_API_KEY=openai_key,
        OPENAI_CHAT_MODEL="gpt-4.1-mini",
        JSON_LOGS=False,
        LOG_LEVEL="INFO",
        functions_url="https://project.supabase.co/functions/v1",
    )


class TestAppRouteWiring:
    @patch("smart_crm.api.main.get_settings")
    @patch("smart_crm.api.main.BackendClient")
    @patch("smart_crm.api.main.FunctionsClient")
    @patch("smart_crm.api.main.OpenAIClient")
    def test_health_route_registered(self, mock_openai, mock_functions, mock_backend, mock_settings):
        mock_settings.return_value = _settings()
        backend = AsyncMock()
        backend.verify_connectivity = AsyncMock(return_value=True)
        mock_backend.return_value = backend
        mock_functions.return_value = AsyncMock()
        mock_openai.return_value = AsyncMock()

        from smart_crm.api.main import app

        with TestClient(app) as client:
            resp = client.get("/health", headers={"x-request-id": "trace-1"})
            assert resp.status_code == 200
            assert resp.headers["x-request-id"] == "trace-1"

        backend.close.assert_awaited_once()

    @patch("smart_crm.api.main.get_settings")
    @patch("smart_crm.api.main.BackendClient")
    @patch("smart_crm.api.main.FunctionsClient")
    @patch("smart_crm.api.main.OpenAIClient")
    def test_openai_optional(self, mock_openai, mock_functions, mock_backend, mock_settings):
        mock_settings.return_value = _settings(openai_key="")
        mock_backend.return_value = AsyncMock()
        mock_functions.return_value = AsyncMock()

        from smart_crm.api.main import app

        with TestClient(app):
            assert app.state.openai is None
        mock_openai.assert_not_called()

    @patch("smart_crm.api.main.get_settings")
    @patch("smart_crm.api.main.BackendClient")
    @patch("smart_crm.api.main.FunctionsClient")
    @patch("smart_crm.api.main.OpenAIClient")
    def test_contacts_route_requires_auth(self, mock_openai, mock_functions, mock_backend, mock_settings):
        mock_settings.return_value = _settings()
        mock_backend.return_value = AsyncMock()
        mock_functions.return_value = AsyncMock()
        mock_openai.return_value = AsyncMock()

        from smart_crm.api.main import app

        with TestClient(app) as client:
            resp = client.get("/contacts")
            assert resp.status_code == 401
            assert resp.headers["x-request-id"]


class TestRun:
    @patch("smart_crm.api.main.get_settings")
    @patch("uvicorn.run")
    def test_serves_configured_port(self, mock_run, mock_settings):
        mock_settings.return_value = MagicMock(HOST="127.0.0.1", PORT=9001)

        from smart_crm.api.main import run

        run()

        mock_run.assert_called_once_with("smart_crm.api.main:app", host="127.0.0.1", port=9001)
