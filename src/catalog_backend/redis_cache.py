from aiocache import Cache
from catalog_backend.settings import settings

def _build_cache() -> Cache:
    if settings.CACHE_BACKEND == "memory":
        return Cache(Cache.MEMORY)

    return Cache(
        Cache.REDIS,
        endpoint=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        password=settings.REDIS_PASSWORD if settings.REDIS_PASSWORD else None,
        pool_max_size=10,
        db=0
    )

_redis_cache = _build_cache()

async def get_redis_client() -> Cache:
    return _redis_cache
