from voice_ledger.core.config import get_settings
from voice_ledger.services.ai.transcription.service import TranscriptionService
from voice_ledger.services.ai.transcription.stages import build_pipeline
from voice_ledger.services.ledger import LedgerStore, get_store


def get_transcription_service() -> TranscriptionService:
    settings = get_settings()
    return TranscriptionService(build_pipeline(settings.transcription_pipeline))


def get_ledger_store() -> LedgerStore:
    return get_store()
