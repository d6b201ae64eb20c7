import re
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TransactionType(StrEnum):
    INCOME = "Income"
    EXPENSE = "Expense"


class TransactionCategory(StrEnum):
    FOOD = "Food"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    UTILITIES = "Utilities"
    RENT = "Rent"
    SALARY = "Salary"
    GIFT = "Gift"
    ENTERTAINMENT = "Entertainment"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    OTHER = "Other"
    MAHAR_UNITY = "Mahar Unity"
    BAVIN = "Bavin"


TRANSACTION_TYPES: frozenset[str] = frozenset(t.value for t in TransactionType)
TRANSACTION_CATEGORIES: frozenset[str] = frozenset(c.value for c in TransactionCategory)

DEFAULT_TYPE = TransactionType.EXPENSE.value
DEFAULT_CATEGORY = TransactionCategory.OTHER.value

DATE_FORMAT = "%Y-%m-%d"
# Format check only; "2025-13-40" passes.
DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

DRAFT_FIELDS = ("type", "amount", "category", "date", "note")


# --- Draft ---


class TransactionDraft(BaseModel):
    """Fully populated transaction pending human review."""

    model_config = ConfigDict(frozen=True)

    type: TransactionType
    amount: float = Field(..., ge=0)
    category: TransactionCategory
    date: str = Field(..., pattern=DATE_PATTERN.pattern)
    note: str = ""


# --- Transcription endpoint ---


class TranscribeRequest(BaseModel):
    audio: str = Field(..., min_length=1)
    mime_type: str = Field(..., min_length=1, alias="mimeType")


class TranscribeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_transcript: str = Field(alias="originalTranscript")
    extracted_data: TransactionDraft = Field(alias="extractedData")
    degraded: bool
    fallbacks: dict[str, str] = Field(default_factory=dict)


# --- Save endpoint ---


class SubmittedTransaction(BaseModel):
    """Reviewed draft as resubmitted by the client.

    Only presence and basic types are checked here; the amount rule lives
    in the ledger service so every caller gets it.
    """

    type: str = Field(..., min_length=1)
    amount: float
    category: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1)
    note: str


class SaveTransactionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transcript: Optional[str] = ""
    extracted_data: SubmittedTransaction = Field(alias="extractedData")


class SaveTransactionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    notion_page_id: str = Field(alias="notionPageId")
    extracted_data: SubmittedTransaction = Field(alias="extractedData")
