"""
Tests for persisted product/contact matches.

Tests cover:
- Single match upsert keyed on product_id,contact_id
- Batching (50 per upsert), partial failure and progress reporting
- Server-side and client-side filtering
- Grouping and summary statistics
"""

import pytest

from conftest import make_contact
from smart_crm.clients.backend_client import Filter, QueryResult
from smart_crm.errors import BackendAuthError, BackendQueryError
from smart_crm.models.product import MatchTier, ProductContactMatch
from smart_crm.services.matches import (
    MatchFilters,
    MatchService,
    filter_matches,
    group_by_tier,
    match_stats,
)


def _match(contact_id: str, score: int, **contact) -> ProductContactMatch:
    return ProductContactMatch.model_validate(
        {
            'product_id': 'prod-1',
            'contact_id': contact_id,
            'match_score': score,
            'contact': {'id': contact_id, **contact},
        }
    )


def _echo(table, rows, on_conflict):
    rows = rows if isinstance(rows, list) else [rows]
    return QueryResult(rows=rows)


# =============================================================================
# Saving
# =============================================================================


class TestCalculateAndSave:
    @pytest.mark.asyncio
    async def test_upserts_on_pair(self, backend, sample_product, user_id):
        backend.upsert.side_effect = _echo
        service = MatchService(backend, user_id)

        result = await service.calculate_and_save(sample_product, make_contact(1))

        assert result.success
        assert result.data.contact_id == 'c1'
        _, kwargs = backend.upsert.call_args
        assert kwargs['on_conflict'] == 'product_id,contact_id'

    @pytest.mark.asyncio
    async def test_requires_user(self, backend, sample_product):
        result = await MatchService(backend, None).calculate_and_save(sample_product, make_contact(1))

        assert not result.success
        assert isinstance(result.error, BackendAuthError)
        backend.upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_ai_enhanced_without_openai_uses_fallback(self, backend, sample_product, user_id):
        backend.upsert.side_effect = _echo
        service = MatchService(backend, user_id, openai=None)

        result = await service.calculate_ai_enhanced_and_save(sample_product, make_contact(1))

        assert result.success
        row = backend.upsert.call_args.args[1]
        assert row['ai_reasoning'].startswith('Fallback analysis')


class TestBatchCalculate:
    @pytest.mark.asyncio
    async def test_batches_of_fifty(self, backend, sample_product, user_id):
        backend.upsert.side_effect = _echo
        contacts = [make_contact(i) for i in range(120)]
        progress = []

        batch = await MatchService(backend, user_id).batch_calculate(
            sample_product, contacts, lambda done, total: progress.append((done, total))
        )

        assert backend.upsert.await_count == 3
        assert [len(call.args[1]) for call in backend.upsert.await_args_list] == [50, 50, 20]
        assert progress == [(50, 120), (100, 120), (120, 120)]
        assert batch.outcome.success_count == 120
        assert len(batch.matches) == 120

    @pytest.mark.asyncio
    async def test_failed_batch_does_not_stop_the_rest(self, backend, sample_product, user_id):
        calls = {'n': 0}

        def flaky(table, rows, on_conflict):
            calls['n'] += 1
            if calls['n'] == 2:
                raise BackendQueryError('Backend query error: duplicate key')
            return QueryResult(rows=rows)

        backend.upsert.side_effect = flaky
        contacts = [make_contact(i) for i in range(120)]

        batch = await MatchService(backend, user_id).batch_calculate(sample_product, contacts)

        assert backend.upsert.await_count == 3
        assert batch.outcome.success_count == 70
        assert batch.outcome.failure_count == 50
        assert batch.outcome.partial_success
        assert batch.outcome.failed[0].item_id == 'c50'

    @pytest.mark.asyncio
    async def test_calculate_for_product_with_no_contacts(self, backend, sample_product, user_id):
        result = await MatchService(backend, user_id).calculate_for_product(sample_product)

        assert result.success
        assert result.data.matches == []
        backend.upsert.assert_not_called()
        _, kwargs = backend.select.call_args
        assert kwargs['filters'] == [Filter.eq('user_id', user_id)]


# =============================================================================
# Reads
# =============================================================================


class TestFetchForProduct:
    @pytest.mark.asyncio
    async def test_score_bounds_are_server_side(self, backend, user_id):
        backend.select.return_value = QueryResult(
            rows=[_match('c1', 90, industry='Technology').model_dump(mode='json')]
        )
        service = MatchService(backend, user_id)

        result = await service.fetch_for_product('prod-1', MatchFilters(min_score=60, max_score=95))

        assert result.success
        _, kwargs = backend.select.call_args
        assert Filter.gte('match_score', 60) in kwargs['filters']
        assert Filter.lte('match_score', 95) in kwargs['filters']
        assert kwargs['order'] == [('match_score', False)]

    @pytest.mark.asyncio
    async def test_malformed_row_is_payload_failure(self, backend, user_id):
        backend.select.return_value = QueryResult(rows=[{'product_id': 'prod-1'}])

        result = await MatchService(backend, user_id).fetch_for_product('prod-1')

        assert not result.success
        assert type(result.error).__name__ == 'PayloadError'


class TestClientSideViews:
    @pytest.fixture
    def matches(self):
        return [
            _match('c1', 92, industry='Financial Technology', company='Acme Corp', status='hot'),
            _match('c2', 65, industry='Healthcare', company='Globex', status='lead'),
            _match('c3', 30, industry=None, company='acme labs', status=None),
        ]

    def test_industry_substring_case_insensitive(self, matches):
        result = filter_matches(matches, MatchFilters(industries=['technology']))
        assert [m.contact_id for m in result] == ['c1']

    def test_company_substring(self, matches):
        result = filter_matches(matches, MatchFilters(companies=['ACME']))
        assert [m.contact_id for m in result] == ['c1', 'c3']

    def test_status_membership(self, matches):
        result = filter_matches(matches, MatchFilters(statuses=['lead', 'hot']))
        assert [m.contact_id for m in result] == ['c1', 'c2']

    def test_tier(self, matches):
        result = filter_matches(matches, MatchFilters(tier=MatchTier.MEDIUM))
        assert [m.contact_id for m in result] == ['c2']

    def test_group_by_tier(self, matches):
        groups = group_by_tier(matches)
        assert [len(groups[t]) for t in (MatchTier.HIGH, MatchTier.MEDIUM, MatchTier.LOW)] == [1, 1, 1]

    def test_stats(self, matches):
        stats = match_stats(matches)
        assert stats.total == 3
        assert (stats.high_fit, stats.medium_fit, stats.low_fit) == (1, 1, 1)
        # (92 + 65 + 30) / 3 = 62.33
        assert stats.average_score == 62

    def test_stats_empty(self):
        assert match_stats([]).average_score == 0
