"""
Flashcard administration router.

Endpoints:
  GET    /flashcards             all cards, soonest revisit first
  GET    /flashcards/due         due cards (optionally ?file=...&file=...)
  GET    /flashcards/files       distinct source files
  GET    /flashcards/stats       total / due counts, per file
  POST   /flashcards/reset       make every card due again
  POST   /flashcards             create a card by hand
  GET    /flashcards/{id}        single card
  PUT    /flashcards/{id}        replace file / question / answer / revisit_in
  DELETE /flashcards/{id}        delete card
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from cardsmith.db.sqlite import Store
from cardsmith.models.flashcard import (
    Flashcard,
    FlashcardCreate,
    FlashcardList,
    FlashcardUpdate,
    ManualFlashcard,
    ResetResult,
    StoreStats,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def get_store(request: Request) -> Store:
    return request.app.state.store


@router.get("", response_model=FlashcardList)
async def list_cards(store: Store = Depends(get_store)) -> FlashcardList:
    items = await store.query_all()
    return FlashcardList(items=items, total=len(items))


@router.get("/due", response_model=FlashcardList)
async def list_due(
    file: list[str] | None = Query(default=None),
    store: Store = Depends(get_store),
) -> FlashcardList:
    """Cards due now, in review order. Repeating ?file= narrows to those files."""
    if file:
        items = await store.query_due_for_files(file)
    else:
        items = await store.query_due()
    return FlashcardList(items=items, total=len(items))


@router.get("/files", response_model=list[str])
async def list_files(store: Store = Depends(get_store)) -> list[str]:
    return await store.list_distinct_files()


@router.get("/stats", response_model=StoreStats)
async def card_stats(store: Store = Depends(get_store)) -> StoreStats:
    return await store.stats()


@router.post("/reset", response_model=ResetResult)
async def reset_cards(store: Store = Depends(get_store)) -> ResetResult:
    count = await store.reset_all()
    logger.info("Reset revisit_in to 0 for %d flashcards", count)
    return ResetResult(reset=count)


@router.post("", response_model=Flashcard, status_code=201)
async def create_card(
    body: ManualFlashcard,
    store: Store = Depends(get_store),
) -> Flashcard:
    return await store.insert(FlashcardCreate(**body.model_dump()))


@router.get("/{card_id}", response_model=Flashcard)
async def get_card(card_id: int, store: Store = Depends(get_store)) -> Flashcard:
    card = await store.get(card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return card


@router.put("/{card_id}", response_model=Flashcard)
async def edit_card(
    card_id: int,
    body: ManualFlashcard,
    store: Store = Depends(get_store),
) -> Flashcard:
    updated = await store.update_full(card_id, FlashcardUpdate(**body.model_dump()))
    if not updated:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return updated


@router.delete("/{card_id}", status_code=204)
async def remove_card(card_id: int, store: Store = Depends(get_store)) -> None:
    deleted = await store.delete(card_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Flashcard not found")
