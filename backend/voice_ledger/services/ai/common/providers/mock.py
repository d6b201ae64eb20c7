"""Mock provider: deterministic responses for tests and fallback."""

from __future__ import annotations

import json
import time
from collections import deque
from collections.abc import Iterable

from voice_ledger.services.ai.transcription.contracts import AudioInput

from .base import BaseProvider, ProviderResult

MOCK_TRANSCRIPT = "Mock transcript: spent 1000 on lunch."
MOCK_EXTRACTION = {
    "transcript": MOCK_TRANSCRIPT,
    "type": "Expense",
    "amount": 1000,
    "category": "Food",
    "note": "Mock lunch",
}


class MockProvider(BaseProvider):
    """Replays scripted *replies* in order, then falls back to canned output.

    Canned output is a JSON draft when the prompt asks for JSON and a fixed
    transcript otherwise. Every call is recorded in ``calls``.
    """

    name = "mock"
    supports_audio = True

    def __init__(self, replies: Iterable[str] | None = None) -> None:
        self._replies = deque(replies or [])
        self.calls: list[tuple[str, AudioInput | None]] = []

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
        t0 = time.monotonic()
        self.calls.append((prompt, audio))
        if self._replies:
            text = self._replies.popleft()
        elif "JSON" in prompt:
            text = json.dumps(MOCK_EXTRACTION)
        else:
            text = MOCK_TRANSCRIPT
        elapsed = (time.monotonic() - t0) * 1000
        return ProviderResult(
            raw_text=text,
            model=model or "mock-v1",
            provider=self.name,
            prompt_tokens=len(prompt.split()),
            completion_tokens=len(text.split()),
            latency_ms=round(elapsed, 2),
        )
