from functools import lru_cache
import json
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_list_value(value: str) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        raw = value.strip()
        if raw == "":
            return []
        try:
            parsed = json.loads(raw)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except Exception:
            pass
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="forbid",
        validate_by_name=True,
        populate_by_name=True,
    )
    environment: str = "development"
    log_level: str = "INFO"
    expose_error_details: bool = False
    docs_enabled: bool = Field(default=True)
    openapi_enabled: bool = Field(default=True)

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)

    # --- Generative model ---
    ai_provider: str = "gemini"
    ai_model: str = ""
    ai_stage_providers: dict[str, str] = Field(default_factory=dict)
    ai_allowed_providers_raw: str = Field(
        default="gemini,openai,mock",
        validation_alias=AliasChoices("AI_ALLOWED_PROVIDERS", "ai_allowed_providers_raw"),
    )
    ai_allowed_models: dict[str, list[str]] = Field(
        default_factory=lambda: {
            "gemini": ["gemini-2.0-flash", "gemini-1.5-flash", "gemini-1.5-pro"],
            "openai": ["gpt-4o-mini-2024-07-18", "gpt-4o-2024-08-06"],
        }
    )
    ai_temperature: float = 0.2
    ai_max_tokens: int = 1024
    ai_timeout_seconds: float = 30.0
    ai_debug_store_raw: bool = False

    transcription_pipeline: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["transcribe", "correct", "extract"],
    )

    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY", "gemini_api_key"),
    )
    openai_api_key: str = ""

    # --- Ledger store ---
    ledger_store: str = "notion"
    notion_api_key: str = ""
    notion_database_id: str = Field(
        default="",
        validation_alias=AliasChoices(
            "NOTION_EXPENSE_DATABASE_ID", "NOTION_DATABASE_ID", "notion_database_id"
        ),
    )
    notion_version: str = "2022-06-28"
    notion_timeout_seconds: float = 10.0

    local_timezone: str = ""

    @field_validator("cors_allow_origins", "transcription_pipeline", mode="before")
    @classmethod
    def _split_csv(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return _parse_list_value(value)
        return value

    @property
    def ai_allowed_providers(self) -> list[str]:
        return [name.lower() for name in _parse_list_value(self.ai_allowed_providers_raw)]

    def validate_required_config(self) -> list[str]:
        """Return human-readable problems with the current configuration."""
        errors: list[str] = []
        providers = {self.ai_provider.lower().strip(), *(
            p.lower().strip() for p in self.ai_stage_providers.values()
        )}
        if "gemini" in providers and not self.gemini_api_key:
            errors.append("GEMINI_API_KEY is not set")
        if "openai" in providers and not self.openai_api_key:
            errors.append("OPENAI_API_KEY is not set")
        if self.ledger_store == "notion":
            if not self.notion_api_key:
                errors.append("NOTION_API_KEY is not set")
            if not self.notion_database_id:
                errors.append("NOTION_EXPENSE_DATABASE_ID is not set")
        elif self.ledger_store != "memory":
            errors.append(f"Unknown LEDGER_STORE {self.ledger_store!r}")
        return errors


@lru_cache
def get_settings() -> Settings:
    return Settings()
