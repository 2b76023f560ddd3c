"""Key/value storage backends for the weather cache."""

from .base import KeyValueStore
from .factory import build_kv_store
from .memory import InMemoryKeyValueStore
from .redis import RedisKeyValueStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
    "build_kv_store",
]
