"""
Custom exceptions and error handling for Smart CRM.

Provides:
- Typed exception hierarchy for remote-call and domain failures
- Error context preservation for debugging
- Friendly, user-facing messages derived from error text
- Partial success handling for batch operations
"""

from dataclasses import dataclass, field
from typing import Any


class SmartCRMError(Exception):
    """Base exception for all Smart CRM errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


# =============================================================================
# Client Errors
# =============================================================================


class ClientError(SmartCRMError):
    """Base class for remote collaborator errors."""

    pass


class BackendError(ClientError):
    """Error from backend-as-a-service table or auth operations."""

    pass


class BackendConnectionError(BackendError):
    """Failed to reach the backend."""

    pass


class BackendAuthError(BackendError):
    """Session token missing, expired, or rejected."""

    pass


class BackendNotFoundError(BackendError):
    """Requested row or resource does not exist."""

    pass


class BackendQueryError(BackendError):
    """Backend rejected a query or write."""

    pass


class FunctionError(ClientError):
    """Error from a serverless AI-generation endpoint."""

    pass


class FunctionRateLimitError(FunctionError):
    """Serverless endpoint reported a rate limit."""

    pass


class OpenAIError(ClientError):
    """Error from OpenAI API calls."""

    pass


class OpenAIRateLimitError(OpenAIError):
    """Rate limit exceeded on OpenAI API."""

    pass


class OpenAIModelError(OpenAIError):
    """Model refused request or returned invalid response."""

    pass


# =============================================================================
# Domain Errors
# =============================================================================


class ValidationError(SmartCRMError):
    """Input validation failed."""

    pass


class ContactValidationError(ValidationError):
    """Contact data failed validation before any remote call."""

    pass


class ContactNotFoundError(SmartCRMError):
    """Contact id is not present in the loaded collection."""

    pass


class PayloadError(SmartCRMError):
    """AI endpoint payload could not be parsed into a typed result."""

    pass


class ExportError(SmartCRMError):
    """Export format or columns were invalid."""

    pass


# =============================================================================
# Partial Success Handling
# =============================================================================


@dataclass
class ItemResult:
    """Result for a single item in a batch operation."""

    item_id: str | None
    success: bool
    error: SmartCRMError | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class PartialSuccessResult:
    """
    Result of a batch operation that may partially succeed.

    A failed batch is recorded and the remaining batches still run.
    """

    succeeded: list[ItemResult] = field(default_factory=list)
    failed: list[ItemResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total_count(self) -> int:
        return self.success_count + self.failure_count

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0

    @property
    def partial_success(self) -> bool:
        return self.success_count > 0 and self.failure_count > 0

    def add_success(
        self,
        item_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Record a successful item."""
        self.succeeded.append(
            ItemResult(item_id=item_id, success=True, data=data or {})
        )

    def add_failure(
        self,
        error: SmartCRMError,
        item_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Record a failed item."""
        self.failed.append(
            ItemResult(item_id=item_id, success=False, error=error, data=data or {})
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'success_count': self.success_count,
            'failure_count': self.failure_count,
            'total_count': self.total_count,
            'all_succeeded': self.all_succeeded,
            'succeeded_ids': [r.item_id for r in self.succeeded if r.item_id],
            'failed_ids': [r.item_id for r in self.failed if r.item_id],
            'errors': [
                {'item_id': r.item_id, 'error': str(r.error)}
                for r in self.failed
                if r.error
            ],
        }


# =============================================================================
# Error Handling Utilities
# =============================================================================


def _status_of(exc: Exception) -> int | None:
    response = getattr(exc, 'response', None)
    return getattr(response, 'status_code', None)


def _base_context(exc: Exception, context: dict[str, Any] | None) -> dict[str, Any]:
    ctx = dict(context or {})
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__
    status = _status_of(exc)
    if status is not None:
        ctx['status_code'] = status
    return ctx


def wrap_backend_error(exc: Exception, context: dict[str, Any] | None = None) -> BackendError:
    """
    Wrap a backend transport or HTTP exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging (table, operation)

    Returns:
        Typed BackendError subclass
    """
    if isinstance(exc, BackendError):
        return exc

    error_str = str(exc).lower()
    ctx = _base_context(exc, context)
    status = _status_of(exc)

    if status in (401, 403) or 'jwt' in error_str:
        return BackendAuthError(f"Backend rejected session: {exc}", context=ctx)
    if status == 404:
        return BackendNotFoundError(f"Backend resource not found: {exc}", context=ctx)
    if status is None and (
        'connect' in error_str or 'timeout' in error_str or 'timed out' in error_str
    ):
        return BackendConnectionError(f"Backend connection failed: {exc}", context=ctx)
    return BackendQueryError(f"Backend query error: {exc}", context=ctx)


def wrap_function_error(exc: Exception, context: dict[str, Any] | None = None) -> FunctionError:
    """
    Wrap a serverless endpoint exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging (function name)

    Returns:
        Typed FunctionError subclass
    """
    if isinstance(exc, FunctionError):
        return exc

    error_str = str(exc).lower()
    ctx = _base_context(exc, context)

    if _status_of(exc) == 429 or 'rate limit' in error_str or 'rate_limit' in error_str:
        return FunctionRateLimitError(f"Function rate limit exceeded: {exc}", context=ctx)
    return FunctionError(f"Function call failed: {exc}", context=ctx)


def wrap_openai_error(exc: Exception, context: dict[str, Any] | None = None) -> OpenAIError:
    """
    Wrap an OpenAI exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging

    Returns:
        Typed OpenAIError subclass
    """
    error_str = str(exc).lower()
    ctx = _base_context(exc, context)

    if 'rate limit' in error_str or 'rate_limit' in error_str:
        return OpenAIRateLimitError(
            f"OpenAI rate limit exceeded: {exc}",
            context=ctx,
        )
    elif 'content policy' in error_str or 'refused' in error_str:
        return OpenAIModelError(
            f"OpenAI model refused request: {exc}",
            context=ctx,
        )
    else:
        return OpenAIError(
            f"OpenAI API error: {exc}",
            context=ctx,
        )


# =============================================================================
# User-facing Messages
# =============================================================================

RATE_LIMIT_MESSAGE = 'Too many requests. Please try again later.'
API_KEY_MESSAGE = 'AI service is not configured. Check your API key settings.'
NETWORK_MESSAGE = 'Network error. Check your connection and try again.'
NOT_FOUND_MESSAGE = 'The requested record could not be found.'


def friendly_message(error: Exception | str) -> str:
    """
    Pick a user-facing message by pattern-matching the error text.

    Falls back to the error's own message when nothing matches.
    """
    if isinstance(error, SmartCRMError):
        raw = error.message
    else:
        raw = str(error)
    text = raw.lower()

    if 'rate limit' in text or 'rate_limit' in text or isinstance(
        error, (FunctionRateLimitError, OpenAIRateLimitError)
    ):
        return RATE_LIMIT_MESSAGE
    if 'api key' in text or 'api_key' in text:
        return API_KEY_MESSAGE
    if (
        isinstance(error, BackendConnectionError)
        or 'network' in text
        or 'connect' in text
        or 'timeout' in text
    ):
        return NETWORK_MESSAGE
    if 'not found' in text or isinstance(error, (BackendNotFoundError, ContactNotFoundError)):
        # "Contact not found" is already user-facing
        if isinstance(error, ContactNotFoundError):
            return raw
        return NOT_FOUND_MESSAGE
    return raw
