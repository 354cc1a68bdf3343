from cardsmith.models.flashcard import (
    MANUAL_FILE,
    FileStats,
    Flashcard,
    FlashcardCreate,
    FlashcardList,
    FlashcardUpdate,
    ManualFlashcard,
    ResetResult,
    StoreStats,
)

__all__ = [
    "MANUAL_FILE",
    "FileStats",
    "Flashcard",
    "FlashcardCreate",
    "FlashcardList",
    "FlashcardUpdate",
    "ManualFlashcard",
    "ResetResult",
    "StoreStats",
]
