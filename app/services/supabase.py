"""
Supabase client.

The client is created on first use so importing the app (or the tests)
does not require credentials.
"""
import asyncio
import logging
from functools import lru_cache

from supabase import Client, create_client

from app.core.config import settings
from app.core.exceptions import ConfigurationError
from app.services.circuit_breaker import circuit_supabase

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client:
    """
    Cached Supabase client.
    Uses the service key for full access.
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_KEY are required")

    logger.info("Creating Supabase client")
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_KEY
    )


async def execute(query):
    """
    Runs a built (synchronous) PostgREST query off the event loop,
    under the Supabase circuit breaker.

    Args:
        query: Query builder ready for .execute()

    Returns:
        The APIResponse

    Raises:
        CircuitOpenError: Supabase circuit is open
    """
    async def _async_wrapper():
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, query.execute)

    return await circuit_supabase.call(_async_wrapper)
