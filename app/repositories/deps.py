"""
Dependency injection for repositories and services.

Functions here are meant for FastAPI Depends.

In endpoints:
    from app.repositories.deps import get_campaign_service

    @router.post("/campaigns/{id}/send")
    async def send(id: str, service: CampaignService = Depends(get_campaign_service)):
        return await service.send_campaign(id)

In tests, override the dependency or build the object directly:
    repo = create_customer_repo(MockDatabase())
    app.dependency_overrides[get_campaign_service] = lambda: service
"""
from functools import lru_cache

from fastapi import Depends, Request

from app.core.config import settings
from app.services.campaigns.dispatcher import BatchDispatcher
from app.services.campaigns.repository import CampaignRepository
from app.services.campaigns.service import CampaignService
from app.services.customers import CustomerService
from app.services.delivery import DeliveryProvider, create_delivery_provider
from app.services.llm import get_llm_provider
from app.services.messaging.generator import MessageGenerator
from app.services.orders import OrderService
from app.services.segmentation.resolver import AudienceResolver
from app.services.supabase import get_supabase_client
from .customer import CustomerRepository
from .order import OrderRepository


@lru_cache()
def get_customer_repo() -> CustomerRepository:
    """Singleton CustomerRepository over the Supabase client."""
    return CustomerRepository(get_supabase_client())


@lru_cache()
def get_order_repo() -> OrderRepository:
    return OrderRepository(get_supabase_client())


@lru_cache()
def get_campaign_repo() -> CampaignRepository:
    return CampaignRepository(get_supabase_client())


# Factory functions for tests
def create_customer_repo(db_client) -> CustomerRepository:
    """
    CustomerRepository over a custom database client.

        repo = create_customer_repo(MockDatabase())
    """
    return CustomerRepository(db_client)


def create_order_repo(db_client) -> OrderRepository:
    return OrderRepository(db_client)


def create_campaign_repo(db_client) -> CampaignRepository:
    return CampaignRepository(db_client)


def get_delivery_provider(request: Request) -> DeliveryProvider:
    """
    Provider opened by the application lifespan.

    Falls back to building one from settings when the app was started
    without the lifespan (scripts).
    """
    provider = getattr(request.app.state, "delivery_provider", None)
    if provider is None:
        provider = create_delivery_provider()
        request.app.state.delivery_provider = provider
    return provider


def get_message_generator() -> MessageGenerator:
    return MessageGenerator(get_llm_provider())


def get_customer_service(
    customers: CustomerRepository = Depends(get_customer_repo),
    orders: OrderRepository = Depends(get_order_repo),
) -> CustomerService:
    return CustomerService(customers, orders)


def get_order_service(
    orders: OrderRepository = Depends(get_order_repo),
    customers: CustomerRepository = Depends(get_customer_repo),
) -> OrderService:
    return OrderService(orders, customers)


def get_campaign_service(
    campaigns: CampaignRepository = Depends(get_campaign_repo),
    customers: CustomerRepository = Depends(get_customer_repo),
    provider: DeliveryProvider = Depends(get_delivery_provider),
    generator: MessageGenerator = Depends(get_message_generator),
) -> CampaignService:
    return CampaignService(
        campaigns=campaigns,
        resolver=AudienceResolver(customers),
        dispatcher=BatchDispatcher(
            provider,
            wave_size=settings.DISPATCH_WAVE_SIZE,
            wave_delay_ms=settings.DISPATCH_WAVE_DELAY_MS,
        ),
        generator=generator,
    )
