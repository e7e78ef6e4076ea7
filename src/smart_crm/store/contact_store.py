"""
Contact state container.

Holds the contacts currently loaded for the UI and keeps that list in step
with the backend. Every action returns a Result; on failure ``error`` carries
the failure message and the loaded list is left untouched.
"""

from datetime import datetime, timezone
from typing import Any

import structlog

from ..config import config
from ..errors import ContactNotFoundError, ContactValidationError
from ..models.contact import Contact, ContactCreate, validate_contact
from ..result import Result
from ..services.contacts import ContactQuery, ContactRepository
from ..views.filtering import matches_query

logger = structlog.get_logger(__name__)


class ContactStore:
    """
    Loaded contacts plus loading, error and selection state.

    Args:
        repository: Contact repository bound to the signed-in user
        min_query_length: Queries shorter than this are filtered locally
    """

    def __init__(
        self,
        repository: ContactRepository,
        min_query_length: int | None = None,
    ):
        self.repository = repository
        self.min_query_length = (
            min_query_length if min_query_length is not None else config.SEARCH_MIN_QUERY_LENGTH
        )

        self.contacts: list[Contact] = []
        self.total_count = 0
        self.has_more = False
        self.is_loading = False
        self.error: str | None = None
        self.selected_contact: Contact | None = None

    def _begin(self) -> None:
        self.is_loading = True
        self.error = None

    def _finish(self, result: Result[Any]) -> None:
        self.is_loading = False
        if not result.success:
            self.error = result.error_message

    def _index_of(self, contact_id: str) -> int | None:
        return next((i for i, c in enumerate(self.contacts) if c.id == contact_id), None)

    # =========================================================================
    # Loading
    # =========================================================================

    async def fetch_contacts(
        self, filters: ContactQuery | None = None, limit: int = 50, offset: int = 0
    ) -> Result[list[Contact]]:
        self._begin()
        page = await self.repository.list(filters, limit=limit, offset=offset)
        self._finish(page)
        if not page.success:
            return Result.fail(page.error)
        self.contacts = list(page.data.contacts)
        self.total_count = page.data.total
        self.has_more = page.data.has_more
        return Result.ok(self.contacts)

    async def search_contacts(self, query: str) -> Result[list[Contact]]:
        """
        Search contacts by name, email or company.

        An empty query is a no-op. Short queries and failed remote searches
        are answered from the loaded list.
        """
        query = query.strip()
        if not query:
            return Result.ok(self.contacts)

        if len(query) < self.min_query_length:
            return Result.ok(self._filter_loaded(query))

        self._begin()
        page = await self.repository.search(query)
        self._finish(page)
        if not page.success:
            logger.warning('contact_store.search.fallback', query=query, error=page.error_message)
            return Result.ok(self._filter_loaded(query))

        self.contacts = list(page.data.contacts)
        self.total_count = page.data.total
        self.has_more = page.data.has_more
        return Result.ok(self.contacts)

    def _filter_loaded(self, query: str) -> list[Contact]:
        return [c for c in self.contacts if matches_query(c, query)]

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_contact(self, data: ContactCreate) -> Result[Contact]:
        try:
            validate_contact(data)
        except ContactValidationError as e:
            self.error = e.message
            return Result.fail(e)

        self._begin()
        result = await self.repository.create(data)
        self._finish(result)
        if result.success:
            self.contacts.append(result.data)
            self.total_count += 1
            logger.info('contact_store.created', contact_id=result.data.id)
        return result

    async def update_contact(self, contact_id: str, updates: dict[str, Any]) -> Result[Contact]:
        index = self._index_of(contact_id)
        if index is None:
            self.error = 'Contact not found'
            return Result.fail(ContactNotFoundError('Contact not found'))

        self._begin()
        result = await self.repository.update(contact_id, updates)
        self._finish(result)
        if not result.success:
            return result

        merged = self.contacts[index].model_copy(
            update={**dict(result.data), 'updated_at': datetime.now(timezone.utc)}
        )
        self.contacts[index] = merged
        if self.selected_contact and self.selected_contact.id == contact_id:
            self.selected_contact = merged
        return Result.ok(merged)

    async def delete_contact(self, contact_id: str) -> Result[str]:
        self._begin()
        result = await self.repository.delete(contact_id)
        self._finish(result)
        if not result.success:
            return result

        index = self._index_of(contact_id)
        if index is not None:
            del self.contacts[index]
            self.total_count = max(0, self.total_count - 1)
        if self.selected_contact and self.selected_contact.id == contact_id:
            self.selected_contact = None
        return result

    def select_contact(self, contact: Contact | None) -> None:
        self.selected_contact = contact

    async def import_contacts(self, contacts: list[ContactCreate]) -> Result[list[Contact]]:
        """Bulk-insert and append whatever the backend created."""
        self._begin()
        result = await self.repository.bulk_create(contacts)
        self._finish(result)
        if result.success:
            self.contacts.extend(result.data)
            self.total_count += len(result.data)
            logger.info('contact_store.imported', count=len(result.data))
        return result
