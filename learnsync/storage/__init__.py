"""Local durable storage: key-value stores and the code mirror."""

from .kv_store import MemoryKeyValueStore, SqliteKeyValueStore
from .local_mirror import KeyValueStore, LocalMirror, mirror_key

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "LocalMirror",
    "mirror_key",
]
