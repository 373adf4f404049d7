"""
Shared test fixtures.

Fixtures defined here are available to every test. For module-specific
fixtures, use a local conftest.py or define them in the test module.
Plain builders live in tests/factories.py.
"""
from unittest.mock import AsyncMock

import pytest

from app.services.circuit_breaker import circuit_email, circuit_llm, circuit_supabase
from app.services.delivery import MockDeliveryProvider
from app.services.segmentation.memory import InMemoryCustomerCollection
from tests.factories import create_mock_supabase, make_customer


# =============================================================================
# AUTOUSE
# =============================================================================


@pytest.fixture(autouse=True)
def reset_circuits():
    """Circuit breakers are module-level: every test starts CLOSED."""
    for circuit in (circuit_email, circuit_llm, circuit_supabase):
        circuit.reset()
        circuit.last_failure = None
    yield
    for circuit in (circuit_email, circuit_llm, circuit_supabase):
        circuit.reset()


# =============================================================================
# MOCK FIXTURES
# =============================================================================


@pytest.fixture
def mock_supabase_factory():
    """
    Returns the mock factory.

    Usage:
        def test_something(mock_supabase_factory):
            db = mock_supabase_factory([{"id": "c1"}])
    """
    return create_mock_supabase


@pytest.fixture
def delivery_provider():
    """MockDeliveryProvider, already open."""
    provider = MockDeliveryProvider()
    provider.opened = True
    return provider


@pytest.fixture
def no_sleep():
    """Async sleep replacement; await_args_list holds the requested delays."""
    return AsyncMock(return_value=None)


# =============================================================================
# DATA FIXTURES
# =============================================================================


@pytest.fixture
def customers():
    """Small customer base used across segmentation tests."""
    return [
        make_customer("c1", "Ada Lovelace", "ada@example.com", "London", ["vip", "math"]),
        make_customer("c2", "Bob Stone", "bob@example.com", "Paris", ["newsletter"]),
        make_customer("c3", "Carla Mendes", "carla@example.org", "London", []),
        make_customer("c4", "Dan Brown", "dan@example.com", "Berlin", ["vip"]),
    ]


@pytest.fixture
def order_prices():
    """Order prices per customer id (c3 has no orders)."""
    return {
        "c1": [100.0, 50.0],
        "c2": [20.0],
        "c4": [300.0],
    }


@pytest.fixture
def collection(customers, order_prices):
    return InMemoryCustomerCollection(customers, order_prices)


@pytest.fixture
def campaign_row():
    """Campaign row as stored in the database."""
    return {
        "id": "camp-1",
        "name": "Spring Sale",
        "description": "Seasonal promo",
        "subject": "Hi {customerFirstName}",
        "message": "Hello {customername},\nour spring sale starts today!",
        "segment_rules": [
            {"field": "location", "operator": "equals", "value": "London", "logicOperator": "AND"}
        ],
        "status": "draft",
        "scheduled_for": None,
        "sent_at": None,
        "target_audience": 2,
        "delivered": 0,
        "failed": 0,
        "communication_log": [],
        "created_at": "2026-03-01T10:00:00+00:00",
        "updated_at": "2026-03-01T10:00:00+00:00",
    }
