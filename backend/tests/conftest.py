import os

import pytest

# Keep tests offline regardless of the developer's shell.
os.environ.setdefault("AI_PROVIDER", "mock")
os.environ.setdefault("LEDGER_STORE", "memory")
for _key in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "OPENAI_API_KEY", "NOTION_API_KEY"):
    os.environ.pop(_key, None)

from voice_ledger.core.config import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    # Tests mutate env vars; never leak a cached Settings instance across tests.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _reset_memory_store():
    import voice_ledger.services.ledger as ledger

    ledger._memory_store = None
    yield
    ledger._memory_store = None

