"""Durable storage for persisted ticker sets."""

from .persistent_set import PersistentSet
from .stores import KeyValueStore, MemoryStore, ValkeyStore


__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "PersistentSet",
    "ValkeyStore",
]
