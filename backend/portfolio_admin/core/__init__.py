# Portfolio Admin Core Module
from .config import Settings, get_settings, settings
from .kv_store import (
    KeyValueStore,
    MemoryStore,
    RedisStore,
    StoreResult,
    StoreStatus,
    build_kv_store,
)
from .logging import setup_logging

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "setup_logging",
    "KeyValueStore",
    "MemoryStore",
    "RedisStore",
    "StoreResult",
    "StoreStatus",
    "build_kv_store",
]
