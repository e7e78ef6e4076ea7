"""
Tests for the errors module.
"""

import httpx
import pytest

from smart_crm.errors import (
    BackendAuthError,
    BackendConnectionError,
    BackendError,
    BackendNotFoundError,
    BackendQueryError,
    ClientError,
    ContactNotFoundError,
    ContactValidationError,
    FunctionError,
    FunctionRateLimitError,
    OpenAIError,
    OpenAIModelError,
    OpenAIRateLimitError,
    PartialSuccessResult,
    SmartCRMError,
    ValidationError,
    friendly_message,
    wrap_backend_error,
    wrap_function_error,
    wrap_openai_error,
)
from smart_crm.result import Result, capture


def _http_error(status: int, text: str = "error") -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://project.supabase.co/rest/v1/contacts")
    response = httpx.Response(status, text=text, request=request)
    return httpx.HTTPStatusError(text, request=request, response=response)


class TestErrorHierarchy:
    """Test error class hierarchy."""

    def test_base_error_with_context(self):
        error = SmartCRMError("Something went wrong", context={"table": "contacts", "count": 2})

        assert error.message == "Something went wrong"
        assert error.context == {"table": "contacts", "count": 2}
        assert str(error) == "Something went wrong | context={'table': 'contacts', 'count': 2}"

    def test_base_error_without_context(self):
        error = SmartCRMError("Simple error")

        assert error.context == {}
        assert str(error) == "Simple error"

    def test_client_error_inheritance(self):
        assert isinstance(BackendAuthError("x"), BackendError)
        assert isinstance(BackendError("x"), ClientError)
        assert isinstance(FunctionRateLimitError("x"), FunctionError)
        assert isinstance(OpenAIRateLimitError("x"), OpenAIError)
        assert isinstance(ContactValidationError("x"), ValidationError)


class TestErrorWrapping:
    """Test error wrapping utilities."""

    @pytest.mark.parametrize(
        "status,error_type",
        [(401, BackendAuthError), (403, BackendAuthError), (404, BackendNotFoundError), (409, BackendQueryError)],
    )
    def test_wrap_backend_status(self, status, error_type):
        wrapped = wrap_backend_error(_http_error(status), {"table": "contacts"})

        assert isinstance(wrapped, error_type)
        assert wrapped.context["status_code"] == status
        assert wrapped.context["table"] == "contacts"

    def test_wrap_backend_connection(self):
        wrapped = wrap_backend_error(httpx.ConnectError("connection refused"))
        assert isinstance(wrapped, BackendConnectionError)

    def test_wrap_backend_passthrough(self):
        original = BackendNotFoundError("gone")
        assert wrap_backend_error(original) is original

    def test_wrap_function_rate_limit(self):
        assert isinstance(wrap_function_error(_http_error(429)), FunctionRateLimitError)
        assert isinstance(wrap_function_error(Exception("Rate limit exceeded")), FunctionRateLimitError)
        assert type(wrap_function_error(Exception("boom"))) is FunctionError

    def test_wrap_openai(self):
        assert isinstance(wrap_openai_error(Exception("Rate limit exceeded")), OpenAIRateLimitError)
        assert isinstance(wrap_openai_error(Exception("content policy violation")), OpenAIModelError)
        wrapped = wrap_openai_error(ValueError("Something else"))
        assert type(wrapped) is OpenAIError
        assert wrapped.context["error_type"] == "ValueError"


class TestFriendlyMessage:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (FunctionRateLimitError("429"), "Too many requests. Please try again later."),
            (Exception("Invalid API key provided"), "AI service is not configured. Check your API key settings."),
            (BackendConnectionError("offline"), "Network error. Check your connection and try again."),
            (BackendNotFoundError("row missing"), "The requested record could not be found."),
            (ContactNotFoundError("Contact not found"), "Contact not found"),
            ("Duplicate email", "Duplicate email"),
        ],
    )
    def test_patterns(self, error, expected):
        assert friendly_message(error) == expected


class TestPartialSuccessResult:
    """Test partial success result tracking."""

    def test_counts_and_ids(self):
        result = PartialSuccessResult()
        result.add_success(item_id="c1")
        result.add_success(item_id="c2")
        result.add_failure(BackendQueryError("insert failed"), item_id="c3")

        assert result.success_count == 2
        assert result.failure_count == 1
        assert result.partial_success is True
        assert result.all_succeeded is False

        data = result.to_dict()
        assert data["succeeded_ids"] == ["c1", "c2"]
        assert data["failed_ids"] == ["c3"]
        assert data["errors"][0]["item_id"] == "c3"

    def test_empty(self):
        result = PartialSuccessResult()
        assert result.all_succeeded is True
        assert result.total_count == 0


class TestResult:
    def test_fail_with_string(self):
        result = Result.fail("nope")
        assert isinstance(result.error, SmartCRMError)
        assert result.error_message == "nope"
        assert result.unwrap_or([]) == []

    def test_unwrap_raises_stored_error(self):
        with pytest.raises(BackendAuthError):
            Result.fail(BackendAuthError("login")).unwrap()

    def test_to_dict(self):
        body = Result.fail(FunctionRateLimitError("Rate limit exceeded")).to_dict()
        assert body == {
            "success": False,
            "error": "Rate limit exceeded",
            "message": "Too many requests. Please try again later.",
            "error_type": "FunctionRateLimitError",
        }

    @pytest.mark.asyncio
    async def test_capture_typed_error(self):
        async def failing():
            raise BackendQueryError("bad filter")

        result = await capture(failing(), "test.failed")
        assert result.error_message == "bad filter"

    @pytest.mark.asyncio
    async def test_capture_lets_other_errors_propagate(self):
        async def broken():
            raise KeyError("bug")

        with pytest.raises(KeyError):
            await capture(broken(), "test.failed")
