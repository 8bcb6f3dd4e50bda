from typing import Optional

from supabase import create_async_client, AsyncClient

from happytrails.core.config import settings
from happytrails.core.errors import StoreError
from happytrails.core.logger import logger


class SupabaseService:
    """
    Builds Supabase async clients.

    Row-level security on `bookings`/`profiles` filters by the JWT the client
    carries, so every visitor gets their own client (`create_client`). The shared
    `get_client` one carries only the anon key. An injected client is returned
    from both.
    """

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, client: Optional[AsyncClient] = None):
        self.url = url if url is not None else settings.SUPABASE_URL
        self.key = key if key is not None else settings.SUPABASE_KEY
        self._injected = client
        self._client = client

    async def create_client(self) -> AsyncClient:
        if self._injected is not None:
            return self._injected
        if not (self.url and self.key):
            logger.warning("⚠️ Supabase credentials missing")
            raise StoreError("The booking backend is not configured.")
        try:
            return await create_async_client(self.url, self.key)
        except Exception as e:
            logger.error(f"❌ Failed to initialize Supabase Async: {e}")
            raise StoreError("The booking backend is unreachable.") from e

    async def get_client(self) -> AsyncClient:
        if self._client is None:
            self._client = await self.create_client()
            logger.info("✅ Supabase Async client initialized")
        return self._client

db_service = SupabaseService()
