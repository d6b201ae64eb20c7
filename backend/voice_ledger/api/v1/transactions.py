"""Voice transaction endpoints: transcribe/extract for review, then save."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from voice_ledger.core.dependencies import get_ledger_store, get_transcription_service
from voice_ledger.schemas.transaction import (
    SaveTransactionRequest,
    SaveTransactionResponse,
    TranscribeRequest,
    TranscribeResponse,
)
from voice_ledger.services.ai.transcription.contracts import AudioInput
from voice_ledger.services.ai.transcription.service import TranscriptionService
from voice_ledger.services.ledger import LedgerStore, LedgerStoreError
from voice_ledger.services.ledger.service import TransactionValidationError, save_transaction

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/transcribe-process",
    response_model=TranscribeResponse,
    summary="Transcribe a voice note and extract a draft transaction",
)
async def transcribe_process(
    body: TranscribeRequest,
    service: TranscriptionService = Depends(get_transcription_service),
):
    result = await service.transcribe(AudioInput(data_b64=body.audio, mime_type=body.mime_type))
    if result.degraded:
        logger.info("Returning degraded draft for review, fallbacks=%s", result.fallbacks)
    return TranscribeResponse(
        original_transcript=result.transcript,
        extracted_data=result.draft,
        degraded=result.degraded,
        fallbacks=result.fallbacks,
    )


@router.post(
    "/save-transaction",
    response_model=SaveTransactionResponse,
    summary="Save a reviewed transaction to Notion",
)
async def save_transaction_endpoint(
    body: SaveTransactionRequest,
    store: LedgerStore = Depends(get_ledger_store),
):
    try:
        page_id = await save_transaction(store, body.extracted_data, body.transcript)
    except TransactionValidationError as exc:
        raise HTTPException(400, str(exc)) from exc
    except LedgerStoreError as exc:
        logger.exception("Saving transaction failed")
        raise HTTPException(500, "Failed to save transaction to Notion.") from exc

    return SaveTransactionResponse(notion_page_id=page_id, extracted_data=body.extracted_data)
