"""Notion database store (``POST /v1/pages``)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .base import LedgerStore, LedgerStoreError

logger = logging.getLogger(__name__)

NOTION_API_BASE = "https://api.notion.com/v1"


class NotionStore(LedgerStore):
    name = "notion"

    def __init__(
        self,
        api_key: str,
        database_id: str,
        *,
        notion_version: str = "2022-06-28",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._database_id = database_id
        self._notion_version = notion_version
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def create_record(self, properties: dict[str, Any]) -> str:
        if not self._api_key or not self._database_id:
            raise LedgerStoreError("Notion store is not configured")

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(
                    f"{NOTION_API_BASE}/pages",
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Notion-Version": self._notion_version,
                        "Content-Type": "application/json",
                    },
                    json={
                        "parent": {"database_id": self._database_id},
                        "properties": properties,
                    },
                )
        except httpx.HTTPError as exc:
            raise LedgerStoreError(f"Notion request failed: {exc}") from exc

        if resp.status_code >= 400:
            message = _error_message(resp)
            raise LedgerStoreError(f"Notion API error {resp.status_code}: {message}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise LedgerStoreError("Notion response is not JSON") from exc
        page_id = body.get("id") if isinstance(body, dict) else None
        if not page_id:
            raise LedgerStoreError("Notion response has no page id")
        return str(page_id)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("code") or body)
    return str(body)[:200]
