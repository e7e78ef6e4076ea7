"""FastAPI application for the Smart CRM backend-for-frontend."""

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request

from smart_crm.clients.backend_client import BackendClient
from smart_crm.clients.functions_client import FunctionsClient
from smart_crm.clients.openai_client import OpenAIClient
from smart_crm.errors import SmartCRMError
from smart_crm.logging import configure_logging, logging_context

from .config import get_settings
from .dependencies import ResultFailure, result_failure_handler, smart_crm_error_handler
from .routes.contacts import router as contacts_router
from .routes.health import router as health_router
from .routes.intelligence import router as intelligence_router
from .routes.preferences import router as preferences_router
from .routes.products import router as products_router
from .routes.views import router as views_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize shared clients at startup, clean up at shutdown."""
    settings = get_settings()
    configure_logging(json_output=settings.JSON_LOGS, log_level=settings.LOG_LEVEL)

    logger.info("lifespan.startup", backend_url=settings.SUPABASE_URL)

    backend = BackendClient(
        url=settings.SUPABASE_URL,
        api_key=settings.SUPABASE_ANON_KEY,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    functions = FunctionsClient(
        base_url=settings.functions_url,
        api_key=settings.SUPABASE_ANON_KEY,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )

    # OpenAI is optional; AI-enhanced matching falls back to rule-based analysis
    openai: OpenAIClient | None = None
    if settings.OPENAI_API_KEY:
        openai = OpenAIClient(api_key=settings.OPENAI_API_KEY, chat_model=settings.OPENAI_CHAT_MODEL)
    else:
        logger.warning("lifespan.openai_disabled")

    app.state.backend = backend
    app.state.functions = functions
    app.state.openai = openai

    logger.info("lifespan.ready")
    yield

    logger.info("lifespan.shutdown")
    await backend.close()
    await functions.close()
    if openai is not None:
        await openai.close()


app = FastAPI(
    title="smart-crm",
    description="Contacts, views, product matching, outreach drafts and sales intelligence",
    lifespan=lifespan,
)


@app.middleware("http")
async def trace_requests(request: Request, call_next):
    trace_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    with logging_context(trace_id=trace_id):
        response = await call_next(request)
    response.headers["x-request-id"] = trace_id
    return response


app.add_exception_handler(ResultFailure, result_failure_handler)
app.add_exception_handler(SmartCRMError, smart_crm_error_handler)

app.include_router(health_router)
app.include_router(contacts_router)
app.include_router(views_router)
app.include_router(products_router)
app.include_router(intelligence_router)
app.include_router(preferences_router)


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("smart_crm.api.main:app", host=settings.HOST, port=settings.PORT)
