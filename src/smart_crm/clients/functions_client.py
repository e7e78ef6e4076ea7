"""HTTP client for the serverless AI-generation endpoints."""

from typing import Any

import httpx
import structlog

from ..errors import FunctionError, wrap_function_error

logger = structlog.get_logger(__name__)

KNOWN_FUNCTIONS = (
    'adaptive-playbook',
    'discovery-questions',
    'deal-health-analysis',
    'communication-optimization',
    'lead-nurturing',
    'skills-api',
)


class FunctionsClient:
    """
    Invokes serverless functions by name.

    Response handling:
    - 2xx: decoded JSON payload is returned
    - 429 or a "rate limit" message: FunctionRateLimitError
    - any other non-2xx or transport failure: FunctionError

    Nothing is retried; the caller surfaces the failure to the user.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        if not base_url:
            raise ValueError('SUPABASE_FUNCTIONS_URL is required')
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.access_token = access_token
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    def with_session(self, access_token: str) -> 'FunctionsClient':
        return FunctionsClient(
            base_url=self.base_url,
            api_key=self.api_key,
            access_token=access_token,
            http_client=self._http,
        )

    async def invoke(
        self,
        name: str,
        body: dict[str, Any] | None = None,
        method: str = 'POST',
    ) -> Any:
        """
        Invoke a function and return its decoded JSON payload.

        Args:
            name: Function name (e.g. 'deal-health-analysis')
            body: JSON request body (ignored for GET)
            method: HTTP method

        Raises:
            FunctionError: The function failed or answered non-2xx
        """
        url = f'{self.base_url}/{name}'
        headers = {
            'apikey': self.api_key,
            'Authorization': f'Bearer {self.access_token or self.api_key}',
            'Content-Type': 'application/json',
        }
        ctx = {'function': name, 'method': method}

        logger.debug('functions.invoke', **ctx)
        try:
            response = await self._http.request(
                method,
                url,
                json=body if method.upper() != 'GET' else None,
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            ctx['status_code'] = e.response.status_code
            ctx['detail'] = e.response.text[:500]
            logger.warning('functions.invoke_failed', **ctx)
            raise wrap_function_error(e, ctx) from e
        except httpx.TransportError as e:
            logger.warning('functions.transport_failed', error=str(e), **ctx)
            raise FunctionError(f'Network error calling {name}: {e}', context=ctx) from e

        if not response.content:
            return None
        try:
            payload = response.json()
        except ValueError as e:
            raise FunctionError(f'Invalid JSON from {name}', context=ctx) from e

        # Functions report handled failures in-band as {"error": "..."}
        if isinstance(payload, dict) and payload.get('error') and len(payload) == 1:
            raise wrap_function_error(Exception(str(payload['error'])), ctx)
        return payload

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()
