"""Factory for choosing a key/value store at startup."""

from __future__ import annotations

from segment_weather import config
from segment_weather.kv_store.base import KeyValueStore
from segment_weather.kv_store.memory import InMemoryKeyValueStore
from segment_weather.kv_store.redis import RedisKeyValueStore
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="kv_store/factory")


def build_kv_store(settings: config.Settings | None = None) -> KeyValueStore:
    """Instantiate Redis when a URL is configured, otherwise an in-memory store."""
    settings = settings or config.settings
    if settings.cache_redis_url:
        logger.info("Using RedisKeyValueStore", extra={"redis_url": mask_url(settings.cache_redis_url)})
        return RedisKeyValueStore.from_url(settings.cache_redis_url)
    logger.info("Using InMemoryKeyValueStore")
    return InMemoryKeyValueStore()
