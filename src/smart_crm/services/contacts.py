"""
Contact repository over the backend ``contacts`` table.

Provides:
- Paged listing with server-side filters and sorting
- Free-text search over name, email and company
- Single-record get/create/update/delete
- Validated bulk creation for imports
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel, Field

from ..clients.backend_client import BackendClient, Filter
from ..errors import ContactNotFoundError, ContactValidationError, ValidationError
from ..models.contact import Contact, ContactCreate, validate_contact
from ..result import Result, capture

logger = structlog.get_logger(__name__)

CONTACTS_TABLE = 'contacts'
DEFAULT_PAGE_SIZE = 50
MAX_BULK_CREATE = 100


class ContactQuery(BaseModel):
    """Server-side filters for listing contacts."""

    search: str | None = None
    interest_level: str | None = None
    status: str | None = None
    industry: str | None = None
    has_ai_score: bool | None = None
    score_min: int | None = None
    score_max: int | None = None


class ContactPage(BaseModel):
    contacts: list[Contact] = Field(default_factory=list)
    total: int = 0
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0
    has_more: bool = False


def _search_filter(query: str) -> Filter:
    term = query.strip().lower()
    return Filter.any_of(
        Filter.ilike('name', f'%{term}%'),
        Filter.ilike('email', f'%{term}%'),
        Filter.ilike('company', f'%{term}%'),
    )


def _query_filters(query: ContactQuery) -> list[Filter]:
    filters: list[Filter] = []
    if query.search:
        filters.append(_search_filter(query.search))
    # 'all' is the UI's "no filter" sentinel
    if query.interest_level and query.interest_level != 'all':
        filters.append(Filter.eq('interest_level', query.interest_level))
    if query.status and query.status != 'all':
        filters.append(Filter.eq('status', query.status))
    if query.industry and query.industry != 'all':
        filters.append(Filter.eq('industry', query.industry))
    if query.has_ai_score is True:
        filters.append(Filter('ai_score', 'not.is', None))
    elif query.has_ai_score is False:
        filters.append(Filter.is_null('ai_score'))
    if query.score_min is not None:
        filters.append(Filter.gte('ai_score', query.score_min))
    if query.score_max is not None:
        filters.append(Filter.lte('ai_score', query.score_max))
    return filters


class ContactRepository:
    """
    CRUD operations for contacts, scoped to one user when ``user_id`` is set.

    Every public method returns a Result; backend failures never escape.
    """

    def __init__(self, backend: BackendClient, user_id: str | None = None):
        self.backend = backend
        self.user_id = user_id

    def _scope(self) -> list[Filter]:
        return [Filter.eq('user_id', self.user_id)] if self.user_id else []

    # =========================================================================
    # Reads
    # =========================================================================

    async def list(
        self,
        query: ContactQuery | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
        sort_by: str | None = None,
        sort_order: str = 'desc',
    ) -> Result[ContactPage]:
        """
        Load one page of contacts.

        Without ``sort_by`` the newest contacts come first.
        """
        return await capture(
            self._list(query or ContactQuery(), limit, offset, sort_by, sort_order),
            'contacts.list.failed',
        )

    async def _list(
        self,
        query: ContactQuery,
        limit: int,
        offset: int,
        sort_by: str | None,
        sort_order: str,
    ) -> ContactPage:
        order = [(sort_by, sort_order == 'asc')] if sort_by else [('created_at', False)]
        result = await self.backend.select(
            CONTACTS_TABLE,
            filters=self._scope() + _query_filters(query),
            order=order,
            limit=limit,
            offset=offset,
            count=True,
        )
        contacts = [Contact.model_validate(row) for row in result.rows]
        total = result.count if result.count is not None else offset + len(contacts)
        logger.debug('contacts.list', count=len(contacts), total=total, offset=offset)
        return ContactPage(
            contacts=contacts,
            total=total,
            limit=limit,
            offset=offset,
            has_more=total > offset + len(contacts),
        )

    async def search(self, query: str, limit: int = DEFAULT_PAGE_SIZE) -> Result[ContactPage]:
        """Case-insensitive substring search over name, email and company."""
        return await self.list(ContactQuery(search=query), limit=limit)

    async def get(self, contact_id: str) -> Result[Contact]:
        return await capture(self._get(contact_id), 'contacts.get.failed', contact_id=contact_id)

    async def _get(self, contact_id: str) -> Contact:
        result = await self.backend.select(
            CONTACTS_TABLE,
            filters=[Filter.eq('id', contact_id), *self._scope()],
            limit=1,
        )
        if not result.first:
            raise ContactNotFoundError(f'Contact with ID {contact_id} not found')
        return Contact.model_validate(result.first)

    # =========================================================================
    # Writes
    # =========================================================================

    async def create(self, data: ContactCreate) -> Result[Contact]:
        """Validate, then insert. Validation failures never reach the backend."""
        return await capture(self._create(data), 'contacts.create.failed')

    async def _create(self, data: ContactCreate) -> Contact:
        validate_contact(data)
        row = data.to_row()
        if self.user_id:
            row['user_id'] = self.user_id
        result = await self.backend.insert(CONTACTS_TABLE, row)
        if not result.first:
            raise ContactValidationError('Backend returned no contact after insert')
        contact = Contact.model_validate(result.first)
        logger.info('contacts.created', contact_id=contact.id)
        return contact

    async def update(self, contact_id: str, updates: dict[str, Any]) -> Result[Contact]:
        return await capture(
            self._update(contact_id, updates), 'contacts.update.failed', contact_id=contact_id
        )

    async def _update(self, contact_id: str, updates: dict[str, Any]) -> Contact:
        if not updates:
            raise ValidationError('No updates provided')
        values = {k: v for k, v in updates.items() if k not in ('id', 'user_id', 'created_at')}
        values['updated_at'] = datetime.now(timezone.utc).isoformat()
        result = await self.backend.update(
            CONTACTS_TABLE,
            values,
            filters=[Filter.eq('id', contact_id), *self._scope()],
        )
        if not result.first:
            raise ContactNotFoundError(f'Contact with ID {contact_id} not found')
        return Contact.model_validate(result.first)

    async def delete(self, contact_id: str) -> Result[str]:
        return await capture(self._delete(contact_id), 'contacts.delete.failed', contact_id=contact_id)

    async def _delete(self, contact_id: str) -> str:
        result = await self.backend.delete(
            CONTACTS_TABLE, filters=[Filter.eq('id', contact_id), *self._scope()]
        )
        if not result.rows:
            raise ContactNotFoundError(f'Contact with ID {contact_id} not found')
        logger.info('contacts.deleted', contact_id=contact_id)
        return contact_id

    async def bulk_create(self, contacts: list[ContactCreate]) -> Result[list[Contact]]:
        """
        Insert up to 100 contacts in one request.

        Every record is validated first; one invalid record rejects the batch.
        """
        return await capture(self._bulk_create(contacts), 'contacts.bulk_create.failed')

    async def _bulk_create(self, contacts: list[ContactCreate]) -> list[Contact]:
        if not contacts:
            raise ValidationError('No contacts provided')
        if len(contacts) > MAX_BULK_CREATE:
            raise ValidationError(f'Batch size cannot exceed {MAX_BULK_CREATE} contacts')

        problems: list[str] = []
        rows: list[dict[str, Any]] = []
        for index, contact in enumerate(contacts, start=1):
            try:
                validate_contact(contact)
            except ContactValidationError as e:
                problems.append(f"Contact {index}: {', '.join(e.context.get('problems', []))}")
                continue
            row = contact.to_row()
            if self.user_id:
                row['user_id'] = self.user_id
            rows.append(row)

        if problems:
            raise ContactValidationError(
                f"Batch validation failed: {'; '.join(problems)}",
                context={'problems': problems},
            )

        result = await self.backend.insert(CONTACTS_TABLE, rows)
        created = [Contact.model_validate(row) for row in result.rows]
        logger.info('contacts.bulk_created', count=len(created))
        return created
