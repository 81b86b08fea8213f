"""Metadata stores and the process-wide store selection."""
from tir_takip.storage.base import BaseStore, StoreError, DuplicateTokenError, group_by_type
from tir_takip.storage.memory import MemoryStore
from tir_takip.storage.sql import SQLStore
from tir_takip.storage.bootstrap import bootstrap_store, get_active_store, set_store, close_store

__all__ = [
    "BaseStore",
    "StoreError",
    "DuplicateTokenError",
    "group_by_type",
    "MemoryStore",
    "SQLStore",
    "bootstrap_store",
    "get_active_store",
    "set_store",
    "close_store",
]
