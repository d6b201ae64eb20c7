"""Transcription scope contracts: tagged field outcomes and pipeline results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from voice_ledger.schemas.transaction import TransactionDraft

T = TypeVar("T")


@dataclass(frozen=True)
class FieldOutcome(Generic[T]):
    """A single normalized field and where its value came from.

    ``fallback_reason`` is ``None`` for a clean extraction; otherwise it
    names why the fixed default was substituted.
    """

    value: T
    fallback_reason: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.fallback_reason is not None


@dataclass(frozen=True)
class NormalizedDraft:
    """Output of the extraction normalizer."""

    draft: TransactionDraft
    outcomes: dict[str, FieldOutcome[Any]]
    parse_error: str | None = None

    @property
    def fallbacks(self) -> dict[str, str]:
        return {
            name: outcome.fallback_reason
            for name, outcome in self.outcomes.items()
            if outcome.fallback_reason is not None
        }

    @property
    def degraded(self) -> bool:
        return self.parse_error is not None or bool(self.fallbacks)


@dataclass(frozen=True)
class AudioInput:
    """Base64 audio exactly as received from the client."""

    data_b64: str
    mime_type: str


@dataclass
class TranscriptionResult:
    """Transcript plus normalized draft handed back for human review."""

    transcript: str
    draft: TransactionDraft
    degraded: bool
    fallbacks: dict[str, str] = field(default_factory=dict)
    raw_transcript: str = ""
    stages_run: list[str] = field(default_factory=list)
