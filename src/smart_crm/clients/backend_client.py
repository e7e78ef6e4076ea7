"""
Backend-as-a-service client for Smart CRM.

Handles:
- PostgREST-style table CRUD (select/insert/update/upsert/delete)
- Column filters (eq, neq, gt, gte, lt, lte, in, ilike, is, or)
- Exact row counts via Content-Range
- Resolving the authenticated user from a session token

Calls are never retried: a failure is raised as a typed BackendError and is
terminal for the current user action.
"""

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from ..errors import BackendAuthError, BackendConnectionError, wrap_backend_error

logger = structlog.get_logger(__name__)


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return 'null'
    if hasattr(value, 'value'):  # str enums
        return str(value.value)
    return str(value)


@dataclass(frozen=True)
class Filter:
    """A single column predicate rendered as a PostgREST query parameter."""

    column: str
    operator: str
    value: Any

    @classmethod
    def eq(cls, column: str, value: Any) -> 'Filter':
        return cls(column, 'eq', value)

    @classmethod
    def neq(cls, column: str, value: Any) -> 'Filter':
        return cls(column, 'neq', value)

    @classmethod
    def gte(cls, column: str, value: Any) -> 'Filter':
        return cls(column, 'gte', value)

    @classmethod
    def lte(cls, column: str, value: Any) -> 'Filter':
        return cls(column, 'lte', value)

    @classmethod
    def gt(cls, column: str, value: Any) -> 'Filter':
        return cls(column, 'gt', value)

    @classmethod
    def lt(cls, column: str, value: Any) -> 'Filter':
        return cls(column, 'lt', value)

    @classmethod
    def in_(cls, column: str, values: list[Any]) -> 'Filter':
        return cls(column, 'in', list(values))

    @classmethod
    def ilike(cls, column: str, pattern: str) -> 'Filter':
        return cls(column, 'ilike', pattern)

    @classmethod
    def is_null(cls, column: str) -> 'Filter':
        return cls(column, 'is', None)

    @classmethod
    def any_of(cls, *filters: 'Filter') -> 'Filter':
        """Disjunction of simple filters (PostgREST ``or``)."""
        return cls('or', 'or', list(filters))

    def to_param(self) -> tuple[str, str]:
        if self.operator == 'or':
            inner = ','.join(
                f'{f.column}.{f.operator}.{f._render_value()}' for f in self.value
            )
            return ('or', f'({inner})')
        return (self.column, f'{self.operator}.{self._render_value()}')

    def _render_value(self) -> str:
        if self.operator == 'in':
            quoted = ','.join(f'"{_encode_value(v)}"' for v in self.value)
            return f'({quoted})'
        if self.operator == 'ilike':
            # '*' is the URL-safe wildcard; callers may pass '%'
            return str(self.value).replace('%', '*')
        return _encode_value(self.value)


@dataclass
class QueryResult:
    """Rows returned by a table operation, plus the exact count when requested."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    count: int | None = None

    @property
    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None


def _parse_content_range(header: str | None) -> int | None:
    # "0-24/573" or "*/0"
    if not header or '/' not in header:
        return None
    total = header.rsplit('/', 1)[1]
    return int(total) if total.isdigit() else None


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get('message') or body.get('msg') or body.get('error') or body)
    return str(body)


class BackendClient:
    """
    Async client for the hosted backend's table and auth APIs.

    One instance owns the HTTP connection pool; ``with_session`` derives
    clients bound to a user's session token that share the pool.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        access_token: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the backend client.

        Args:
            url: Project base URL (e.g. https://xyz.supabase.co)
            api_key: Public anon key sent as ``apikey``
            access_token: User session token; anon key is used when absent
            timeout: Request timeout in seconds
            http_client: Pre-built client (tests inject a MockTransport)
        """
        if not url:
            raise ValueError('SUPABASE_URL is required')
        if not api_key:
            raise ValueError('SUPABASE_ANON_KEY is required')
        self.url = url.rstrip('/')
        self.api_key = api_key
        self.access_token = access_token
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    def with_session(self, access_token: str) -> 'BackendClient':
        """Return a client that authenticates as the given session."""
        return BackendClient(
            url=self.url,
            api_key=self.api_key,
            access_token=access_token,
            http_client=self._http,
        )

    # =========================================================================
    # Transport
    # =========================================================================

    def _headers(self) -> dict[str, str]:
        return {
            'apikey': self.api_key,
            'Authorization': f'Bearer {self.access_token or self.api_key}',
            'Content-Type': 'application/json',
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        context: dict[str, Any] | None = None,
    ) -> httpx.Response:
        ctx = {'method': method, 'path': path, **(context or {})}
        try:
            response = await self._http.request(
                method,
                f'{self.url}{path}',
                params=params,
                json=json,
                headers={**self._headers(), **(headers or {})},
            )
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            ctx['detail'] = _error_detail(e.response)
            logger.warning(
                'backend.request_failed',
                status_code=e.response.status_code,
                **ctx,
            )
            raise wrap_backend_error(e, ctx) from e
        except httpx.TransportError as e:
            logger.warning('backend.transport_failed', error=str(e), **ctx)
            raise BackendConnectionError(
                f'Backend connection failed: {e}', context=ctx
            ) from e

    @staticmethod
    def _rows(response: httpx.Response) -> list[dict[str, Any]]:
        if not response.content:
            return []
        body = response.json()
        if isinstance(body, list):
            return body
        return [body] if body else []

    @staticmethod
    def _filter_params(filters: list[Filter] | None) -> list[tuple[str, str]]:
        return [f.to_param() for f in (filters or [])]

    # =========================================================================
    # Table Operations
    # =========================================================================

    async def select(
        self,
        table: str,
        filters: list[Filter] | None = None,
        columns: str = '*',
        order: list[tuple[str, bool]] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        count: bool = False,
    ) -> QueryResult:
        """
        Read rows from a table.

        Args:
            table: Table name
            filters: Column predicates (conjunctive)
            columns: PostgREST select list, including embedded resources
            order: (column, ascending) pairs
            limit: Page size
            offset: Page start
            count: Request an exact total count

        Returns:
            QueryResult with rows and optional total count
        """
        params = [('select', columns), *self._filter_params(filters)]
        if order:
            params.append(
                ('order', ','.join(f"{col}.{'asc' if asc else 'desc'}" for col, asc in order))
            )
        if limit is not None:
            params.append(('limit', str(limit)))
        if offset is not None:
            params.append(('offset', str(offset)))

        headers = {'Prefer': 'count=exact'} if count else None
        response = await self._request(
            'GET',
            f'/rest/v1/{table}',
            params=params,
            headers=headers,
            context={'table': table, 'operation': 'select'},
        )
        return QueryResult(
            rows=self._rows(response),
            count=_parse_content_range(response.headers.get('content-range')) if count else None,
        )

    async def insert(
        self,
        table: str,
        rows: dict[str, Any] | list[dict[str, Any]],
    ) -> QueryResult:
        """Insert one or many rows and return the stored representation."""
        response = await self._request(
            'POST',
            f'/rest/v1/{table}',
            json=rows,
            headers={'Prefer': 'return=representation'},
            context={'table': table, 'operation': 'insert'},
        )
        return QueryResult(rows=self._rows(response))

    async def upsert(
        self,
        table: str,
        rows: dict[str, Any] | list[dict[str, Any]],
        on_conflict: str,
    ) -> QueryResult:
        """Insert rows, merging into existing ones that collide on ``on_conflict``."""
        response = await self._request(
            'POST',
            f'/rest/v1/{table}',
            params=[('on_conflict', on_conflict)],
            json=rows,
            headers={'Prefer': 'resolution=merge-duplicates,return=representation'},
            context={'table': table, 'operation': 'upsert', 'on_conflict': on_conflict},
        )
        return QueryResult(rows=self._rows(response))

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        filters: list[Filter],
    ) -> QueryResult:
        """Update the rows matching ``filters``."""
        if not filters:
            raise ValueError('update requires at least one filter')
        response = await self._request(
            'PATCH',
            f'/rest/v1/{table}',
            params=self._filter_params(filters),
            json=values,
            headers={'Prefer': 'return=representation'},
            context={'table': table, 'operation': 'update'},
        )
        return QueryResult(rows=self._rows(response))

    async def delete(self, table: str, filters: list[Filter]) -> QueryResult:
        """Delete the rows matching ``filters``."""
        if not filters:
            raise ValueError('delete requires at least one filter')
        response = await self._request(
            'DELETE',
            f'/rest/v1/{table}',
            params=self._filter_params(filters),
            headers={'Prefer': 'return=representation'},
            context={'table': table, 'operation': 'delete'},
        )
        return QueryResult(rows=self._rows(response))

    # =========================================================================
    # Auth
    # =========================================================================

    async def get_user(self) -> dict[str, Any]:
        """
        Resolve the user behind the current session token.

        Raises:
            BackendAuthError: No session token, or the backend rejected it
        """
        if not self.access_token:
            raise BackendAuthError('You must be logged in')
        response = await self._request(
            'GET', '/auth/v1/user', context={'operation': 'get_user'}
        )
        user = response.json()
        if not isinstance(user, dict) or not user.get('id'):
            raise BackendAuthError('You must be logged in')
        return user

    async def verify_connectivity(self) -> bool:
        """Check the REST endpoint answers."""
        try:
            await self._request('GET', '/rest/v1/', context={'operation': 'health'})
            return True
        except Exception as e:
            logger.warning('backend.health_failed', error=str(e))
            return False

    async def close(self) -> None:
        """Close the connection pool if this instance owns it."""
        if self._owns_http:
            await self._http.aclose()
