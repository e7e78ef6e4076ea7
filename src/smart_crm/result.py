"""
Typed success/failure result returned by every data-fetching operation.

Callers branch on ``result.success`` instead of relying on exceptions or
side-channel error flags.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Generic, TypeVar

import structlog
from pydantic import ValidationError as PydanticValidationError

from .errors import PayloadError, SmartCRMError, friendly_message

logger = structlog.get_logger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class Result(Generic[T]):
    """Tagged result: ``success`` decides whether ``data`` or ``error`` is set."""

    success: bool
    data: T | None = None
    error: SmartCRMError | None = None

    @classmethod
    def ok(cls, data: T) -> 'Result[T]':
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: SmartCRMError | str) -> 'Result[T]':
        if isinstance(error, str):
            error = SmartCRMError(error)
        return cls(success=False, error=error)

    @property
    def error_message(self) -> str | None:
        """Plain message of the failure (without debug context)."""
        return self.error.message if self.error else None

    def unwrap(self) -> T:
        """Return the data, raising the stored error on failure."""
        if not self.success:
            raise self.error or SmartCRMError('Operation failed')
        return self.data  # type: ignore[return-value]

    def unwrap_or(self, default: T) -> T:
        return self.data if self.success else default  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        """Serialize the failure side for HTTP responses."""
        if self.success:
            return {'success': True}
        return {
            'success': False,
            'error': self.error_message,
            'message': friendly_message(self.error) if self.error else None,
            'error_type': type(self.error).__name__ if self.error else None,
        }


async def capture(
    awaitable: Awaitable[T],
    event: str,
    **fields: Any,
) -> Result[T]:
    """
    Await an operation and fold its outcome into a Result.

    Typed Smart CRM errors and malformed records become failures (logged
    under ``event``); anything else propagates.
    """
    try:
        return Result.ok(await awaitable)
    except SmartCRMError as e:
        logger.warning(event, error=e.message, error_type=type(e).__name__, **fields)
        return Result.fail(e)
    except PydanticValidationError as e:
        logger.warning(event, error=str(e), error_type='PayloadError', **fields)
        return Result.fail(
            PayloadError(
                f'Malformed record: {e.error_count()} validation error(s)',
                context={'title': e.title},
            )
        )
