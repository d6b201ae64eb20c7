"""Abstract base for transaction stores."""

from __future__ import annotations

import abc
from typing import Any


class LedgerStoreError(RuntimeError):
    """The store could not create the record (config, network, auth, rejected payload)."""


class LedgerStore(abc.ABC):
    """Contract that every store must implement."""

    name: str = "base"

    @abc.abstractmethod
    async def create_record(self, properties: dict[str, Any]) -> str:
        """Create one record from Notion-style *properties* and return its id."""
