"""In-process store for local development and tests."""

from __future__ import annotations

import uuid
from typing import Any

from .base import LedgerStore


class InMemoryStore(LedgerStore):
    name = "memory"

    def __init__(self) -> None:
        self.records: list[dict[str, Any]] = []

    async def create_record(self, properties: dict[str, Any]) -> str:
        record_id = str(uuid.uuid4())
        self.records.append({"id": record_id, "properties": properties})
        return record_id
