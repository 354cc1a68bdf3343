import asyncio
import os

import pytest

from cardsmith.config import Settings
from cardsmith.db.sqlite import Store
from cardsmith.models.flashcard import FlashcardCreate


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    # Keep a developer's CARDSMITH_* variables or .env out of the tests
    for key in list(os.environ):
        if key.startswith("CARDSMITH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "data" / "cards.db"


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data", show_progress=False)


@pytest.fixture
def with_store(db_path):
    """Run ``fn(store)`` inside one event loop against a fresh on-disk store."""

    def _run(fn):
        async def _main():
            store = await Store.open(db_path)
            try:
                return await fn(store)
            finally:
                await store.close()

        return asyncio.run(_main())

    return _run


def card(file="/notes/a.md", question="Q?", answer="A.", revisit_in=0):
    return FlashcardCreate(
        file=file, question=question, answer=answer, revisit_in=revisit_in
    )


@pytest.fixture
def make_card():
    return card
