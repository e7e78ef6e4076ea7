"""
Tests for the contact, view, product and intelligence routes.

Service factories are overridden with mocks so no backend is touched.

Tests cover:
- Failed Results mapped to status codes with the error body
- Contact listing and CSV export attachment
- Kanban move through the contact repository
- Match export filename
- Draft batch outcome reporting
- Intelligence skill validation
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import make_contact
from smart_crm.api.auth import require_session
from smart_crm.api.dependencies import (
    ResultFailure,
    get_contact_repository,
    get_draft_service,
    get_intelligence,
    get_match_service,
    get_product_service,
    get_view_preferences,
    result_failure_handler,
)
from smart_crm.api.routes.contacts import router as contacts_router
from smart_crm.api.routes.intelligence import router as intelligence_router
from smart_crm.api.routes.products import router as products_router
from smart_crm.api.routes.views import router as views_router
from smart_crm.errors import (
    BackendConnectionError,
    BackendQueryError,
    ContactNotFoundError,
    FunctionRateLimitError,
    PartialSuccessResult,
    ValidationError,
)
from smart_crm.intelligence.service import SalesIntelligenceService
from smart_crm.models.product import ProductContactMatch
from smart_crm.result import Result
from smart_crm.services.contacts import ContactPage, ContactRepository
from smart_crm.services.drafts import DraftBatchResult, DraftService
from smart_crm.services.matches import MatchService
from smart_crm.services.products import ProductService
from smart_crm.services.view_preferences import ViewPreferencesService

AUTH = {"Authorization": "Bearer test-token"}


@pytest.fixture
def services():
    return {
        "repo": AsyncMock(spec=ContactRepository),
        "products": AsyncMock(spec=ProductService),
        "matches": AsyncMock(spec=MatchService),
        "drafts": AsyncMock(spec=DraftService),
        "prefs": AsyncMock(spec=ViewPreferencesService),
        "intelligence": AsyncMock(spec=SalesIntelligenceService),
    }


def _make_app(services) -> FastAPI:
    app = FastAPI()
    for router in (contacts_router, views_router, products_router, intelligence_router):
        app.include_router(router)
    app.add_exception_handler(ResultFailure, result_failure_handler)
    app.dependency_overrides[require_session] = lambda: MagicMock(user_id="u1")
    app.dependency_overrides[get_contact_repository] = lambda: services["repo"]
    app.dependency_overrides[get_product_service] = lambda: services["products"]
    app.dependency_overrides[get_match_service] = lambda: services["matches"]
    app.dependency_overrides[get_draft_service] = lambda: services["drafts"]
    app.dependency_overrides[get_view_preferences] = lambda: services["prefs"]
    app.dependency_overrides[get_intelligence] = lambda: services["intelligence"]
    return app


@pytest.fixture
def client(services) -> TestClient:
    return TestClient(_make_app(services))


class TestResultFailureMapping:
    @pytest.mark.parametrize(
        "error,status",
        [
            (ContactNotFoundError("Contact with ID c9 not found"), 404),
            (ValidationError("No updates provided"), 422),
            (BackendConnectionError("offline"), 503),
        ],
    )
    def test_status_codes(self, client, services, error, status):
        services["repo"].get.return_value = Result.fail(error)

        response = client.get("/contacts/c9", headers=AUTH)

        assert response.status_code == status
        body = response.json()
        assert body["success"] is False
        assert body["error"] == error.message
        assert body["error_type"] == type(error).__name__


class TestContactRoutes:
    def test_list(self, client, services, sample_contacts):
        services["repo"].list.return_value = Result.ok(
            ContactPage(contacts=sample_contacts, total=4)
        )

        response = client.get("/contacts?status=lead&limit=10", headers=AUTH)

        assert response.status_code == 200
        assert [c["id"] for c in response.json()["contacts"]] == ["c1", "c2", "c3", "c4"]
        query = services["repo"].list.call_args.args[0]
        assert query.status == "lead"
        assert services["repo"].list.call_args.kwargs["limit"] == 10

    def test_export_csv_attachment(self, client, services, sample_contacts):
        services["repo"].list.return_value = Result.ok(ContactPage(contacts=sample_contacts, total=4))

        response = client.get("/contacts/export?tags=ai&sort_field=ai_score&sort_direction=desc", headers=AUTH)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'attachment; filename="contacts-' in response.headers["content-disposition"]
        lines = response.text.split("\n")
        assert lines[1].startswith('"c1"')
        assert lines[2].startswith('"c4"')
        assert len(lines) == 3


class TestViewRoutes:
    def test_kanban_move(self, client, services, sample_contacts):
        services["prefs"].get_kanban_config.return_value = Result.ok(None)
        services["repo"].get.return_value = Result.ok(sample_contacts[2])
        services["repo"].update.return_value = Result.ok(
            sample_contacts[2].model_copy(update={"status": "prospect"})
        )

        response = client.post(
            "/views/kanban/move", json={"contact_id": "c3", "column_id": "prospect"}, headers=AUTH
        )

        assert response.status_code == 200
        assert response.json()["status"] == "prospect"
        services["repo"].update.assert_awaited_once_with("c3", {"status": "prospect"})

    def test_dashboard(self, client, services, sample_contacts):
        services["repo"].list.return_value = Result.ok(ContactPage(contacts=sample_contacts, total=4))

        response = client.get("/views/dashboard", headers=AUTH)

        assert response.status_code == 200
        assert response.json()["total_contacts"] == 4


class TestProductRoutes:
    def test_match_export_filename(self, client, services, sample_product):
        services["products"].get_by_id.return_value = Result.ok(sample_product)
        services["matches"].fetch_for_product.return_value = Result.ok(
            [ProductContactMatch(product_id="prod-1", contact_id="c1", match_score=90)]
        )

        response = client.get("/products/prod-1/matches/export?min_score=80", headers=AUTH)

        assert response.status_code == 200
        assert response.headers["content-disposition"] == 'attachment; filename="Pipeline Pro-matches.csv"'
        filters = services["matches"].fetch_for_product.call_args.args[1]
        assert filters.min_score == 80

    def test_draft_batch_reports_failures(self, client, services, sample_product):
        outcome = PartialSuccessResult()
        outcome.add_failure(BackendQueryError("insert failed"), item_id="c2")
        services["products"].get_by_id.return_value = Result.ok(sample_product)
        services["repo"].get.side_effect = lambda contact_id: Result.ok(
            make_contact(int(contact_id[1:]))
        )
        services["matches"].get_matches_for_contacts.return_value = Result.ok({})
        services["drafts"].batch_create.return_value = DraftBatchResult(drafts=[], outcome=outcome)

        response = client.post(
            "/products/prod-1/drafts/batch",
            json={"contact_ids": ["c2", "c2"], "draft_type": "email"},
            headers=AUTH,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["failed"] == 1
        assert body["failed_ids"] == ["c2"]
        services["repo"].get.assert_awaited_once_with("c2")


class TestIntelligenceRoutes:
    def test_skill_run_validation(self, client, services):
        services["intelligence"].run_skill.return_value = Result.fail(
            ValidationError("Please enter a contact ID.")
        )

        response = client.post("/intelligence/skills/run", json={"skill_id": "summarize"}, headers=AUTH)

        assert response.status_code == 422
        assert response.json()["error"] == "Please enter a contact ID."

    def test_rate_limited(self, client, services):
        services["intelligence"].list_skills.return_value = Result.fail(
            FunctionRateLimitError("Rate limit exceeded")
        )

        response = client.get("/intelligence/skills", headers=AUTH)

        assert response.status_code == 429
