"""Store factory: returns the store selected by ``LEDGER_STORE``."""

from __future__ import annotations

import logging

from voice_ledger.core.config import get_settings

from .base import LedgerStore, LedgerStoreError
from .memory import InMemoryStore
from .notion import NotionStore

logger = logging.getLogger(__name__)

__all__ = ["get_store", "LedgerStore", "LedgerStoreError", "InMemoryStore", "NotionStore"]

_memory_store: InMemoryStore | None = None


def get_store() -> LedgerStore:
    """Return the configured store.

    The memory store is a process-wide singleton so saved records survive
    between requests. Its record list is unbounded and lives until the
    process exits, so it is meant for development and tests only.
    Unknown names raise ``LedgerStoreError``.
    """
    global _memory_store
    settings = get_settings()
    name = settings.ledger_store.lower().strip()

    if name == "memory":
        if _memory_store is None:
            _memory_store = InMemoryStore()
        return _memory_store

    if name == "notion":
        if not settings.notion_api_key or not settings.notion_database_id:
            logger.warning("NOTION_API_KEY or NOTION_EXPENSE_DATABASE_ID not set – saves will fail")
        return NotionStore(
            api_key=settings.notion_api_key,
            database_id=settings.notion_database_id,
            notion_version=settings.notion_version,
            timeout_seconds=settings.notion_timeout_seconds,
        )

    raise LedgerStoreError(f"Unknown ledger store {name!r}")
