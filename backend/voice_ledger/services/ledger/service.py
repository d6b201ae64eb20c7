"""Map a reviewed transaction onto store properties and save it."""

from __future__ import annotations

import logging
import math
from typing import Any

from voice_ledger.schemas.transaction import SubmittedTransaction

from .base import LedgerStore

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Transaction"


class TransactionValidationError(ValueError):
    """Submitted transaction violates a save-time rule."""


def validate_for_save(transaction: SubmittedTransaction) -> None:
    amount = transaction.amount
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
        raise TransactionValidationError("Amount must be a number.")
    if amount <= 0:
        raise TransactionValidationError("Amount must be greater than 0.")
    for field_name in ("type", "category", "date"):
        if not (getattr(transaction, field_name) or "").strip():
            raise TransactionValidationError(f"Field {field_name!r} is required.")
    if transaction.note is None:
        raise TransactionValidationError("Field 'note' is required.")


def build_properties(transaction: SubmittedTransaction, transcript: str | None = "") -> dict[str, Any]:
    """Notion database properties for *transaction*.

    The title is the note, else the transcript, else ``DEFAULT_TITLE``.
    """
    title = transaction.note or transcript or DEFAULT_TITLE
    return {
        "Name": {"title": [{"text": {"content": title}}]},
        "Type": {"select": {"name": transaction.type}},
        "Amount": {"number": float(transaction.amount)},
        "Category": {"select": {"name": transaction.category}},
        "Date": {"date": {"start": transaction.date}},
    }


async def save_transaction(
    store: LedgerStore,
    transaction: SubmittedTransaction,
    transcript: str | None = "",
) -> str:
    """Validate and persist *transaction*; return the store's record id.

    Raises ``TransactionValidationError`` for rule violations and lets
    ``LedgerStoreError`` from the store propagate. No retry.
    """
    validate_for_save(transaction)
    properties = build_properties(transaction, transcript)
    record_id = await store.create_record(properties)
    logger.info(
        "Saved transaction type=%s category=%s store=%s id=%s",
        transaction.type,
        transaction.category,
        store.name,
        record_id,
    )
    return record_id
