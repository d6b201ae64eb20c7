"""Voice note → transcript + normalized transaction draft."""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable, Sequence

from voice_ledger.utils.dates import today

from ..common import router as ai_router
from ..common.audit import log_ai_run
from ..common.json_tools import extract_json, extract_payload
from ..common.providers.base import ProviderError
from .contracts import AudioInput, NormalizedDraft, TranscriptionResult
from .normalizer import fallback_draft, normalize
from .stages import DEFAULT_PIPELINE, PipelineStage, build_pipeline

logger = logging.getLogger(__name__)


class AudioDecodeError(ValueError):
    """Audio payload is not usable base64."""


def clean_audio(audio: AudioInput) -> AudioInput:
    """Strip a ``data:`` URL prefix and check the payload decodes to something."""
    data = audio.data_b64.strip()
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        decoded = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AudioDecodeError(f"audio is not valid base64: {exc}") from exc
    if not decoded:
        raise AudioDecodeError("audio is empty")
    return AudioInput(data_b64=data, mime_type=audio.mime_type.strip())


class TranscriptionService:
    """Runs the configured model stages, then sanitizes and normalizes the payload.

    Provider and configuration failures never escape ``transcribe``: they
    become a fully-defaulted, degraded draft paired with whatever transcript
    was obtained before the failure.
    """

    def __init__(
        self,
        stages: Sequence[PipelineStage] | None = None,
        *,
        resolver: Callable[[str], ai_router.ResolvedConfig] | None = None,
        today_fn: Callable[[], str] = today,
    ) -> None:
        self.stages = list(stages) if stages is not None else build_pipeline(DEFAULT_PIPELINE)
        self._resolve = resolver or ai_router.resolve
        self._today = today_fn

    async def transcribe(self, audio: AudioInput) -> TranscriptionResult:
        today_str = self._today()
        transcript = ""
        raw_transcript = ""
        stages_run: list[str] = []
        payload = ""

        try:
            audio = clean_audio(audio)
            text = ""
            for stage in self.stages:
                config = self._resolve(stage.name)
                prompt = stage.render(text, today_str)
                result = await config.provider.generate(
                    prompt,
                    audio=audio if stage.consumes_audio else None,
                    model=config.model,
                    temperature=config.temperature,
                    max_tokens=config.max_tokens,
                    timeout_seconds=config.timeout_seconds,
                )
                stages_run.append(stage.name)
                log_ai_run(
                    stage=stage.name,
                    provider_result=result,
                    prompt_text=prompt,
                    extra_meta={"mime_type": audio.mime_type} if stage.consumes_audio else None,
                )

                if stage.produces_payload:
                    payload = extract_payload(result.raw_text)
                    break

                text = result.raw_text.strip()
                if not text:
                    raise ProviderError(f"stage {stage.name!r} returned no text")
                raw_transcript = raw_transcript or text
                transcript = text

            normalized = normalize(payload, today_fn=lambda: today_str)
            if self.stages[-1].consumes_audio:
                transcript = _transcript_from_payload(payload)
                raw_transcript = transcript
        except Exception as exc:
            logger.warning("Transcription pipeline failed after stages %s: %s", stages_run, exc)
            failed = fallback_draft(f"{type(exc).__name__}: {exc}", "", today_fn=lambda: today_str)
            return self._result(failed, transcript, raw_transcript, stages_run)

        return self._result(normalized, transcript, raw_transcript, stages_run)

    @staticmethod
    def _result(
        normalized: NormalizedDraft,
        transcript: str,
        raw_transcript: str,
        stages_run: list[str],
    ) -> TranscriptionResult:
        return TranscriptionResult(
            transcript=transcript,
            draft=normalized.draft,
            degraded=normalized.degraded,
            fallbacks=normalized.fallbacks,
            raw_transcript=raw_transcript,
            stages_run=stages_run,
        )


def _transcript_from_payload(payload: str) -> str:
    parsed = extract_json(payload)
    if isinstance(parsed, dict):
        value = parsed.get("transcript")
        if isinstance(value, str):
            return value.strip()
    return ""
