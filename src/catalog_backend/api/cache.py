import hashlib
import logging
from typing import Annotated, Optional
from aiocache import BaseCache
from fastapi import Depends

from catalog_backend.interface.books import BookListResponse, BookQuery
from catalog_backend.permissions.principal import CatalogUser
from catalog_backend.redis_cache import get_redis_client
from catalog_backend.settings import settings

logger = logging.getLogger(__name__)

BOOK_LIST_NAMESPACE = "books:list"


class BookListCache:
    """Read-through cache for book listings, keyed by query and acting user"""

    def __init__(self, cache: BaseCache, ttl: Optional[int] = None, enabled: Optional[bool] = None,
                 namespace: str = BOOK_LIST_NAMESPACE):
        self.cache = cache
        self.ttl = ttl if ttl is not None else settings.CACHE_TTL_SECONDS
        self.enabled = enabled if enabled is not None else settings.ENABLE_CACHE
        self.namespace = namespace

    def cache_key(self, params: BookQuery, user: Optional[CatalogUser]) -> str:
        hashed_params = hashlib.sha256(params.model_dump_json().encode()).hexdigest()
        username = user.normalized_username if user is not None else "anonymous"
        return f"{self.namespace}:{username}:{hashed_params}"

    async def get(self, params: BookQuery, user: Optional[CatalogUser]) -> Optional[BookListResponse]:
        if not self.enabled:
            return None

        key = self.cache_key(params, user)

        try:
            cached_value = await self.cache.get(key)
        except Exception as e:
            logger.warning(f"Book list cache read failed: {e}")
            return None

        if cached_value is None:
            logger.debug(f"Cache miss for {key}")
            return None

        logger.debug(f"Cache hit for {key}")
        return BookListResponse.model_validate(cached_value)

    async def set(self, params: BookQuery, user: Optional[CatalogUser], response: BookListResponse):
        if not self.enabled:
            return

        try:
            await self.cache.set(
                self.cache_key(params, user),
                response.model_dump(mode="json"),
                ttl=self.ttl,
            )
        except Exception as e:
            logger.warning(f"Book list cache write failed: {e}")

    async def invalidate(self):
        """Drops every cached listing, whichever user it was computed for"""
        try:
            await self.cache.clear(namespace=self.namespace)
        except Exception as e:
            logger.warning(f"Book list cache invalidation failed: {e}")


async def get_book_list_cache(cache: Annotated[BaseCache, Depends(get_redis_client)]) -> BookListCache:
    return BookListCache(cache)
