"""
Tests for the campaign endpoints.

The app is built from the routers with the real CampaignService over
in-memory storage and a mock delivery provider.
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.error_handlers import register_exception_handlers
from app.api.routes import campaigns
from app.repositories.deps import get_campaign_service
from app.services.campaigns.dispatcher import BatchDispatcher
from app.services.campaigns.service import CampaignService
from app.services.delivery import MockDeliveryProvider
from app.services.llm import MockLLMProvider
from app.services.messaging.generator import MessageGenerator
from app.services.segmentation.memory import InMemoryCustomerCollection
from app.services.segmentation.resolver import AudienceResolver
from tests.factories import InMemoryCampaignRepository, make_customer

LONDON = [{"field": "location", "operator": "equals", "value": "London"}]


@pytest.fixture
def provider():
    return MockDeliveryProvider(fail_for={"bob@example.com"})


@pytest.fixture
def repo(campaign_row):
    return InMemoryCampaignRepository([campaign_row])


@pytest.fixture
def llm():
    return MockLLMProvider(default_response="Subject: Spring is here\n\nHi {customername}")


@pytest.fixture
def service(repo, provider, llm, no_sleep):
    collection = InMemoryCustomerCollection([
        make_customer("c1", "Ada Lovelace", "ada@example.com", "London"),
        make_customer("c2", "Bob Stone", "bob@example.com", "London"),
        make_customer("c3", "Carla Mendes", "carla@example.com", "Paris"),
    ])
    return CampaignService(
        campaigns=repo,
        resolver=AudienceResolver(collection),
        dispatcher=BatchDispatcher(provider, wave_size=50, wave_delay_ms=0, sleep=no_sleep),
        generator=MessageGenerator(llm),
    )


@pytest.fixture
def client(service):
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(campaigns.router)
    app.dependency_overrides[get_campaign_service] = lambda: service
    return TestClient(app)


class TestCampaignCrud:

    def test_list(self, client):
        response = client.get("/campaigns/")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["data"][0]["name"] == "Spring Sale"

    def test_list_unknown_status_is_400(self, client):
        response = client.get("/campaigns/", params={"status": "archived"})

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_get_missing_is_404(self, client):
        response = client.get("/campaigns/nope")

        assert response.status_code == 404
        assert response.json()["details"] == {"id": "nope"}

    def test_create(self, client):
        response = client.post("/campaigns/", json={
            "name": "Autumn",
            "message": "Hello {customername}, autumn deals!",
            "segment_rules": LONDON,
        })

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "draft"
        assert body["target_audience"] == 2
        assert body["subject"] == "Autumn"

    def test_create_with_bad_rule_is_400(self, client):
        response = client.post("/campaigns/", json={
            "name": "Autumn",
            "message": "Hello {customername}, autumn deals!",
            "segment_rules": [{"field": "location", "operator": "lessThan", "value": "London"}],
        })

        assert response.status_code == 400

    def test_update_partial(self, client):
        response = client.put("/campaigns/camp-1", json={"description": "Updated"})

        assert response.status_code == 200
        assert response.json()["description"] == "Updated"
        assert response.json()["name"] == "Spring Sale"

    def test_delete(self, client, repo):
        response = client.delete("/campaigns/camp-1")

        assert response.status_code == 200
        assert repo.rows == {}


class TestPreviewAndGenerate:

    def test_preview_audience(self, client):
        response = client.post("/campaigns/preview-audience", json={"segment_rules": LONDON})

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert [c["id"] for c in body["audience"]] == ["c1", "c2"]

    def test_preview_without_rules_is_400(self, client):
        response = client.post("/campaigns/preview-audience", json={"segment_rules": []})

        assert response.status_code == 400

    def test_generate_message(self, client):
        response = client.post(
            "/campaigns/generate-message",
            json={"prompt": "spring sale", "audience": "London"},
        )

        assert response.status_code == 200
        assert response.json()["message"].startswith("Subject: Spring is here")

    def test_generate_message_falls_back(self, client, llm):
        llm.should_fail = True

        response = client.post("/campaigns/generate-message", json={"prompt": "spring sale"})

        body = response.json()
        assert response.status_code == 200
        assert "spring sale" in body["message"]
        assert body["note"] == "Using fallback message due to API error"

    def test_generate_message_requires_prompt(self, client):
        response = client.post("/campaigns/generate-message", json={"prompt": ""})

        assert response.status_code == 400


class TestSend:

    def test_send(self, client, provider):
        response = client.post("/campaigns/camp-1/send")

        assert response.status_code == 200
        body = response.json()
        assert body["campaign"]["status"] == "sent"
        assert body["campaign"]["delivered"] == 1
        assert body["campaign"]["failed"] == 1
        assert body["report"]["failed_emails"] == [
            {"email": "bob@example.com", "error": "mock rejection"}
        ]
        assert provider.sent_to == ["ada@example.com"]

    def test_send_twice_is_409(self, client):
        client.post("/campaigns/camp-1/send")

        response = client.post("/campaigns/camp-1/send")

        assert response.status_code == 409

    def test_update_after_send_is_409(self, client):
        client.post("/campaigns/camp-1/send")

        response = client.put("/campaigns/camp-1", json={"name": "Renamed"})

        assert response.status_code == 409
