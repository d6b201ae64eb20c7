"""Coerce an untrusted model payload into a valid ``TransactionDraft``.

Every field is validated on its own and falls back to a fixed default when
missing or invalid, so one bad field never costs the others. A payload that
cannot be parsed at all yields a fully-defaulted draft whose note carries the
parse error. Nothing here raises or performs I/O.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from voice_ledger.schemas.transaction import (
    DATE_PATTERN,
    DEFAULT_CATEGORY,
    DEFAULT_TYPE,
    TRANSACTION_CATEGORIES,
    TRANSACTION_TYPES,
    TransactionDraft,
)
from voice_ledger.services.ai.common.json_tools import MAX_NESTING_DEPTH, extract_json, nesting_depth
from voice_ledger.utils.dates import today

from .contracts import FieldOutcome, NormalizedDraft

logger = logging.getLogger(__name__)

DEFAULT_AMOUNT = 0.0
RAW_PAYLOAD_PREVIEW_CHARS = 500

_MISSING = object()


class PayloadParseError(ValueError):
    """Candidate payload is not a JSON object."""


def parse_payload(candidate: str) -> dict[str, Any]:
    """Parse *candidate* into a dict or raise ``PayloadParseError``.

    Strict JSON first; prose-wrapped objects get a second chance through
    the brace-balanced extractor.
    """
    if isinstance(candidate, str) and nesting_depth(candidate) > MAX_NESTING_DEPTH:
        raise PayloadParseError(f"payload nested deeper than {MAX_NESTING_DEPTH} levels")
    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, TypeError, ValueError, RecursionError) as exc:
        parsed = extract_json(candidate) if isinstance(candidate, str) else None
        if not isinstance(parsed, dict):
            raise PayloadParseError(str(exc)) from exc
    if not isinstance(parsed, dict):
        raise PayloadParseError(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed


def normalize_type(raw: Any) -> FieldOutcome[str]:
    if raw is _MISSING or raw is None:
        return FieldOutcome(DEFAULT_TYPE, "type missing")
    if not isinstance(raw, str) or raw not in TRANSACTION_TYPES:
        return FieldOutcome(DEFAULT_TYPE, f"invalid type {raw!r}")
    return FieldOutcome(raw)


def normalize_category(raw: Any) -> FieldOutcome[str]:
    if raw is _MISSING or raw is None:
        return FieldOutcome(DEFAULT_CATEGORY, "category missing")
    if not isinstance(raw, str) or raw not in TRANSACTION_CATEGORIES:
        return FieldOutcome(DEFAULT_CATEGORY, f"invalid category {raw!r}")
    return FieldOutcome(raw)


def normalize_date(raw: Any, today_fn: Callable[[], str] = today) -> FieldOutcome[str]:
    if raw is _MISSING or raw is None:
        return FieldOutcome(today_fn(), "date missing")
    if not isinstance(raw, str) or not DATE_PATTERN.fullmatch(raw):
        return FieldOutcome(today_fn(), f"invalid date {raw!r}")
    return FieldOutcome(raw)


def normalize_amount(raw: Any) -> FieldOutcome[float]:
    if raw is _MISSING or raw is None:
        return FieldOutcome(DEFAULT_AMOUNT, "amount missing")

    value: float
    if isinstance(raw, bool):
        return FieldOutcome(DEFAULT_AMOUNT, f"invalid amount {raw!r}")
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return FieldOutcome(DEFAULT_AMOUNT, f"invalid amount {raw!r}")
    elif isinstance(raw, str):
        cleaned = raw.strip().replace(",", "").replace("_", "")
        if not cleaned:
            return FieldOutcome(DEFAULT_AMOUNT, "amount missing")
        try:
            value = float(cleaned)
        except (ValueError, OverflowError):
            return FieldOutcome(DEFAULT_AMOUNT, f"invalid amount {raw!r}")
    else:
        return FieldOutcome(DEFAULT_AMOUNT, f"invalid amount {raw!r}")

    if not math.isfinite(value):
        return FieldOutcome(DEFAULT_AMOUNT, f"invalid amount {raw!r}")
    if value < 0:
        return FieldOutcome(DEFAULT_AMOUNT, f"negative amount {raw!r}")
    return FieldOutcome(value + 0.0)


def normalize_note(raw: Any) -> FieldOutcome[str]:
    # note never degrades a draft
    if raw is _MISSING or raw is None:
        return FieldOutcome("")
    if isinstance(raw, str):
        return FieldOutcome(raw)
    return FieldOutcome(str(raw))


def fallback_draft(
    error: str,
    raw_payload: str,
    *,
    today_fn: Callable[[], str] = today,
) -> NormalizedDraft:
    """Fully-defaulted draft used when nothing usable came back."""
    preview = (raw_payload or "")[:RAW_PAYLOAD_PREVIEW_CHARS]
    note = f"Could not extract transaction details ({error}). Raw output: {preview}"
    reason = "payload not parseable"
    outcomes: dict[str, FieldOutcome[Any]] = {
        "type": FieldOutcome(DEFAULT_TYPE, reason),
        "amount": FieldOutcome(DEFAULT_AMOUNT, reason),
        "category": FieldOutcome(DEFAULT_CATEGORY, reason),
        "date": FieldOutcome(today_fn(), reason),
        "note": FieldOutcome(note),
    }
    return NormalizedDraft(draft=_build_draft(outcomes), outcomes=outcomes, parse_error=error)


def normalize(candidate_payload: str, *, today_fn: Callable[[], str] = today) -> NormalizedDraft:
    """Turn a sanitized model payload into a fully-populated draft."""
    try:
        parsed = parse_payload(candidate_payload)
    except PayloadParseError as exc:
        logger.warning("Model payload not parseable: %s", exc)
        return fallback_draft(str(exc), candidate_payload, today_fn=today_fn)

    outcomes: dict[str, FieldOutcome[Any]] = {
        "type": normalize_type(parsed.get("type", _MISSING)),
        "amount": normalize_amount(parsed.get("amount", _MISSING)),
        "category": normalize_category(parsed.get("category", _MISSING)),
        "date": normalize_date(parsed.get("date", _MISSING), today_fn),
        "note": normalize_note(parsed.get("note", _MISSING)),
    }
    try:
        draft = _build_draft(outcomes)
    except ValidationError as exc:
        logger.warning("Normalized fields rejected by draft model: %s", exc)
        return fallback_draft(
            f"draft rejected: {exc.error_count()} error(s)", candidate_payload, today_fn=today_fn
        )
    result = NormalizedDraft(draft=draft, outcomes=outcomes)
    if result.degraded:
        logger.info("Draft degraded, fallbacks=%s", result.fallbacks)
    return result


def _build_draft(outcomes: dict[str, FieldOutcome[Any]]) -> TransactionDraft:
    return TransactionDraft(**{name: outcome.value for name, outcome in outcomes.items()})
