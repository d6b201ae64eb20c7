"""AI audit: one structured log record per model call."""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from voice_ledger.core.config import get_settings

from .providers.base import ProviderResult

logger = logging.getLogger(__name__)


def build_ai_run_metadata(
    *,
    stage: str,
    provider_result: ProviderResult,
    prompt_text: str,
    extra_meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Metadata for one call.

    PII: prompt and response are always hashed; raw text is only included
    when ``AI_DEBUG_STORE_RAW=true``.
    """
    settings = get_settings()

    metadata: dict[str, Any] = {
        "stage": stage,
        "provider": provider_result.provider,
        "model": provider_result.model,
        "prompt_tokens": provider_result.prompt_tokens,
        "completion_tokens": provider_result.completion_tokens,
        "latency_ms": provider_result.latency_ms,
        "prompt_hash": hashlib.sha256(prompt_text.encode()).hexdigest(),
        "response_hash": hashlib.sha256(provider_result.raw_text.encode()).hexdigest(),
    }

    if settings.ai_debug_store_raw:
        metadata["prompt_raw"] = prompt_text
        metadata["response_raw"] = provider_result.raw_text

    if extra_meta:
        metadata.update(extra_meta)
    return metadata


def log_ai_run(
    *,
    stage: str,
    provider_result: ProviderResult,
    prompt_text: str,
    extra_meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    metadata = build_ai_run_metadata(
        stage=stage,
        provider_result=provider_result,
        prompt_text=prompt_text,
        extra_meta=extra_meta,
    )
    logger.info("AI_RUN %s", metadata, extra={"ai_run": metadata})
    return metadata
