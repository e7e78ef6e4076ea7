"""Service factories and Result-to-HTTP mapping for route handlers."""

from typing import Any, TypeVar

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from smart_crm.errors import (
    BackendAuthError,
    BackendConnectionError,
    BackendNotFoundError,
    ClientError,
    ContactNotFoundError,
    ExportError,
    FunctionRateLimitError,
    OpenAIRateLimitError,
    PayloadError,
    SmartCRMError,
    ValidationError,
)
from smart_crm.intelligence.service import SalesIntelligenceService
from smart_crm.result import Result
from smart_crm.services.contacts import ContactRepository
from smart_crm.services.drafts import DraftService
from smart_crm.services.matches import MatchService
from smart_crm.services.products import ProductService
from smart_crm.services.view_preferences import ViewPreferencesService

from .auth import Session, require_session

T = TypeVar("T")

# First match wins; subclasses before their bases
_STATUS_BY_ERROR: list[tuple[type[SmartCRMError], int]] = [
    (BackendAuthError, 401),
    (ContactNotFoundError, 404),
    (BackendNotFoundError, 404),
    (ValidationError, 422),
    (ExportError, 400),
    (FunctionRateLimitError, 429),
    (OpenAIRateLimitError, 429),
    (BackendConnectionError, 503),
    (PayloadError, 502),
    (ClientError, 502),
]


class ResultFailure(Exception):
    """Raised by route handlers to turn a failed Result into an error response."""

    def __init__(self, result: Result[Any]):
        super().__init__(result.error_message)
        self.result = result

    @property
    def status_code(self) -> int:
        for error_type, status in _STATUS_BY_ERROR:
            if isinstance(self.result.error, error_type):
                return status
        return 500


def unwrap(result: Result[T]) -> T:
    """Return the data of a successful Result or raise ResultFailure."""
    if not result.success:
        raise ResultFailure(result)
    return result.data  # type: ignore[return-value]


async def result_failure_handler(request: Request, exc: ResultFailure) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.result.to_dict())


async def smart_crm_error_handler(request: Request, exc: SmartCRMError) -> JSONResponse:
    """Answer typed errors raised outside a Result, such as during authentication."""
    return await result_failure_handler(request, ResultFailure(Result.fail(exc)))


# =============================================================================
# Service factories
# =============================================================================


def get_contact_repository(session: Session = Depends(require_session)) -> ContactRepository:
    return ContactRepository(session.backend, session.user_id)


def get_product_service(session: Session = Depends(require_session)) -> ProductService:
    return ProductService(session.backend, session.user_id)


def get_match_service(
    request: Request, session: Session = Depends(require_session)
) -> MatchService:
    return MatchService(session.backend, session.user_id, openai=request.app.state.openai)


def get_draft_service(session: Session = Depends(require_session)) -> DraftService:
    return DraftService(session.backend, session.user_id)


def get_view_preferences(session: Session = Depends(require_session)) -> ViewPreferencesService:
    return ViewPreferencesService(session.backend, session.user_id)


def get_intelligence(session: Session = Depends(require_session)) -> SalesIntelligenceService:
    return SalesIntelligenceService(session.functions)
