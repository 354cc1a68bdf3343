from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

MANUAL_FILE = "manual"


class Flashcard(BaseModel):
    id: int
    file: str
    question: str
    answer: str
    revisit_in: int         # days until due; <= 0 means due now
    created_at: str | None = None
    updated_at: str | None = None


class FlashcardCreate(BaseModel):
    file: str
    question: str
    answer: str
    revisit_in: int = 0


class FlashcardUpdate(BaseModel):
    file: str
    question: str
    answer: str
    revisit_in: int


class FlashcardList(BaseModel):
    items: list[Flashcard]
    total: int


class ManualFlashcard(BaseModel):
    """Body accepted by the admin API for hand-written cards."""

    question: str
    answer: str
    file: str = MANUAL_FILE
    revisit_in: int = Field(default=0, ge=0)

    @field_validator("question", "answer", "file")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class FileStats(BaseModel):
    file: str
    total: int
    due: int


class StoreStats(BaseModel):
    total_cards: int
    due: int
    per_file: list[FileStats]


class ResetResult(BaseModel):
    reset: int
