"""Abstract base for all AI providers."""

from __future__ import annotations

import abc
from dataclasses import dataclass

from voice_ledger.services.ai.transcription.contracts import AudioInput


class ProviderError(RuntimeError):
    """Provider could not produce text (HTTP failure, unsupported input, empty reply)."""


@dataclass(frozen=True)
class ProviderResult:
    """Immutable result returned by every provider."""

    raw_text: str
    model: str
    provider: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: float = 0.0


class BaseProvider(abc.ABC):
    """Contract that every AI provider must implement."""

    name: str = "base"
    supports_audio: bool = False

    @abc.abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        audio: AudioInput | None = None,
        model: str = "",
        temperature: float = 0.2,
        max_tokens: int = 1024,
        timeout_seconds: float = 30.0,
    ) -> ProviderResult:
        """Send *prompt* (plus optional inline *audio*) and return a ``ProviderResult``."""
