"""Bearer session authentication for the Smart CRM API."""

from dataclasses import dataclass

import structlog
from fastapi import Header, HTTPException, Request

from smart_crm.clients.backend_client import BackendClient
from smart_crm.clients.functions_client import FunctionsClient
from smart_crm.errors import BackendAuthError, BackendNotFoundError
from smart_crm.logging import bind_user_id

logger = structlog.get_logger(__name__)


@dataclass
class Session:
    """The signed-in user plus clients bound to their access token."""

    user_id: str
    access_token: str
    backend: BackendClient
    functions: FunctionsClient


async def require_session(
    request: Request,
    authorization: str | None = Header(default=None),
) -> Session:
    """
    Resolve the user behind the bearer token, or answer 401.

    Only a rejected token is a 401; backend outages propagate and are
    answered with their mapped status.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid or missing bearer token")
    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        raise HTTPException(status_code=401, detail="Invalid or missing bearer token")

    backend = request.app.state.backend.with_session(token)
    try:
        user = await backend.get_user()
    except (BackendAuthError, BackendNotFoundError) as e:
        logger.warning("auth.rejected", error=e.message, error_type=type(e).__name__)
        raise HTTPException(status_code=401, detail="You must be logged in")

    bind_user_id(user["id"])
    return Session(
        user_id=user["id"],
        access_token=token,
        backend=backend,
        functions=request.app.state.functions.with_session(token),
    )
