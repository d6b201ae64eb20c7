"""AI Router: resolves provider + model for one pipeline stage."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from voice_ledger.core.config import get_settings

from .providers import BaseProvider, get_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedConfig:
    """Final resolved provider + model for a stage."""

    provider: BaseProvider
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: float


def resolve(stage: str) -> ResolvedConfig:
    """Resolve provider + model for pipeline *stage*.

    Provider: ``AI_STAGE_PROVIDERS[stage]`` if set, else ``AI_PROVIDER``,
    else ``"mock"``.

    Model validation: if the configured model is not in the allowlist for
    that provider, we fall back to the first allowed model (or empty for mock).
    """
    settings = get_settings()

    provider_name = (settings.ai_stage_providers.get(stage) or settings.ai_provider or "mock").lower().strip()

    model = settings.ai_model.strip()
    # A model name belongs to the default provider; a stage override uses its own default.
    if stage in settings.ai_stage_providers and provider_name != settings.ai_provider.lower().strip():
        model = ""

    allowed_models = settings.ai_allowed_models.get(provider_name, [])
    if allowed_models and model and model not in allowed_models:
        logger.warning(
            "Model %r not in allowlist for %r, using first allowed: %r",
            model,
            provider_name,
            allowed_models[0],
        )
        model = allowed_models[0]

    if allowed_models and not model:
        model = allowed_models[0]

    provider = get_provider(provider_name)

    return ResolvedConfig(
        provider=provider,
        model=model,
        temperature=settings.ai_temperature,
        max_tokens=settings.ai_max_tokens,
        timeout_seconds=settings.ai_timeout_seconds,
    )
