"""
Tests for the contact state container.

Tests cover:
- create: validation before any remote call, append-exactly-once, error state
- update: unknown id, merge, selection refresh
- delete: removal, count and selection
- search: empty, short (local), remote, remote-failure fallback
- import: append of created rows
"""

from unittest.mock import AsyncMock

import pytest

from conftest import make_contact
from smart_crm.errors import BackendQueryError, ContactValidationError
from smart_crm.models.contact import ContactCreate
from smart_crm.result import Result
from smart_crm.services.contacts import ContactPage, ContactRepository
from smart_crm.store import ContactStore


@pytest.fixture
def repository():
    return AsyncMock(spec=ContactRepository)


@pytest.fixture
def store(repository, sample_contacts):
    store = ContactStore(repository, min_query_length=2)
    store.contacts = list(sample_contacts)
    store.total_count = len(sample_contacts)
    return store


class TestCreateContact:
    @pytest.mark.asyncio
    async def test_success_appends_exactly_one(self, store, repository):
        created = make_contact(99, name='New Person')
        repository.create.return_value = Result.ok(created)
        before = list(store.contacts)

        result = await store.create_contact(ContactCreate(name='New Person', email='n@p.co'))

        assert result.success
        assert store.contacts == before + [created]
        assert store.total_count == len(before) + 1
        assert store.error is None
        assert store.is_loading is False

    @pytest.mark.asyncio
    async def test_failure_sets_error_and_appends_nothing(self, store, repository):
        repository.create.return_value = Result.fail(BackendQueryError('duplicate email'))
        before = list(store.contacts)

        result = await store.create_contact(ContactCreate(name='Dup', email='d@p.co'))

        assert not result.success
        assert store.error == 'duplicate email'
        assert store.contacts == before
        assert store.total_count == len(before)

    @pytest.mark.asyncio
    async def test_invalid_contact_makes_no_call(self, store, repository):
        result = await store.create_contact(ContactCreate(name='', email='not-an-email'))

        assert isinstance(result.error, ContactValidationError)
        assert store.error == 'Contact validation failed'
        repository.create.assert_not_called()


class TestUpdateContact:
    @pytest.mark.asyncio
    async def test_unknown_id(self, store, repository):
        result = await store.update_contact('missing', {'status': 'customer'})

        assert result.error_message == 'Contact not found'
        assert store.error == 'Contact not found'
        repository.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_merges_and_refreshes_selection(self, store, repository, sample_contacts):
        target = sample_contacts[1]
        store.select_contact(target)
        repository.update.return_value = Result.ok(target.model_copy(update={'status': 'customer'}))

        result = await store.update_contact(target.id, {'status': 'customer'})

        assert result.success
        assert store.contacts[1].status == 'customer'
        assert store.contacts[1].updated_at is not None
        assert store.selected_contact.status == 'customer'

    @pytest.mark.asyncio
    async def test_failure_leaves_list(self, store, repository, sample_contacts):
        repository.update.return_value = Result.fail(BackendQueryError('nope'))

        result = await store.update_contact(sample_contacts[0].id, {'status': 'x'})

        assert not result.success
        assert store.contacts[0].status == sample_contacts[0].status


class TestDeleteContact:
    @pytest.mark.asyncio
    async def test_removes_and_clears_selection(self, store, repository, sample_contacts):
        target = sample_contacts[0]
        store.select_contact(target)
        repository.delete.return_value = Result.ok(target.id)

        result = await store.delete_contact(target.id)

        assert result.success
        assert target.id not in [c.id for c in store.contacts]
        assert store.total_count == len(sample_contacts) - 1
        assert store.selected_contact is None


class TestSearchContacts:
    @pytest.mark.asyncio
    async def test_empty_query_makes_no_call(self, store, repository, sample_contacts):
        result = await store.search_contacts('   ')

        assert result.data == sample_contacts
        repository.search.assert_not_called()

    @pytest.mark.asyncio
    async def test_short_query_filters_locally(self, store, repository):
        result = await store.search_contacts('a')

        repository.search.assert_not_called()
        assert all('a' in (c.name + (c.email or '') + (c.company or '') + (c.role or '')).lower() for c in result.data)

    @pytest.mark.asyncio
    async def test_remote_search_replaces_contacts(self, store, repository):
        found = [make_contact(7, name='Globex Buyer')]
        repository.search.return_value = Result.ok(ContactPage(contacts=found, total=1))

        result = await store.search_contacts('globex')

        repository.search.assert_awaited_once_with('globex')
        assert result.data == found
        assert store.contacts == found
        assert store.total_count == 1

    @pytest.mark.asyncio
    async def test_remote_failure_falls_back_to_local(self, store, repository):
        repository.search.return_value = Result.fail(BackendQueryError('timeout'))

        result = await store.search_contacts('globex')

        assert result.success
        assert [c.company for c in result.data] == ['Globex']
        assert store.error == 'timeout'


class TestFetchAndImport:
    @pytest.mark.asyncio
    async def test_fetch_replaces_state(self, repository):
        store = ContactStore(repository)
        page = ContactPage(contacts=[make_contact(1)], total=30, has_more=True)
        repository.list.return_value = Result.ok(page)

        result = await store.fetch_contacts()

        assert result.success
        assert store.total_count == 30
        assert store.has_more is True

    @pytest.mark.asyncio
    async def test_import_appends_created(self, store, repository, sample_contacts):
        created = [make_contact(10), make_contact(11)]
        repository.bulk_create.return_value = Result.ok(created)

        result = await store.import_contacts([ContactCreate(name='x'), ContactCreate(name='y')])

        assert result.success
        assert store.contacts[-2:] == created
        assert store.total_count == len(sample_contacts) + 2
