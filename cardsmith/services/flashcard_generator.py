"""
Flashcard generation for a single markdown document.

  1. Embeds the document in EXTRACTION_PROMPT
  2. Parses the model's Q:/A: output with flashcard_parser
  3. Inserts every pair into the store as a due card (revisit_in = 0)

Soft failures: a pair that fails to insert is logged and skipped; the rest
of the document's pairs are still inserted.
"""
from __future__ import annotations

import logging

from cardsmith.db.sqlite import Store
from cardsmith.errors import StoreError
from cardsmith.models.flashcard import FlashcardCreate
from cardsmith.services.flashcard_parser import QAPair

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """You are an expert flashcard generator. Your task is to extract spaced repetition flashcards from the following markdown content.

Strictly output ONLY pairs in this format, with no extra text, explanations, or numbering:
Q: <question>
A: <answer>

Repeat for each flashcard. Do not include any other text, headers, or formatting. Do not add explanations, summaries, or comments. Only output Q: and A: pairs, one after another.

Example:
Q: What is the capital of France?
A: Paris
Q: What is 2+2?
A: 4

Markdown:
{content}"""


def build_prompt(markdown: str) -> str:
    return EXTRACTION_PROMPT.format(content=markdown)


async def insert_pairs(store: Store, file: str, pairs: list[QAPair]) -> int:
    """Insert ``pairs`` as new due cards for ``file``. Returns how many landed."""
    inserted = 0
    for pair in pairs:
        try:
            await store.insert(
                FlashcardCreate(
                    file=file,
                    question=pair.question,
                    answer=pair.answer,
                    revisit_in=0,
                )
            )
            inserted += 1
        except StoreError as e:
            logger.warning("Flashcard insert failed for %s: %s", file, e)
    return inserted
