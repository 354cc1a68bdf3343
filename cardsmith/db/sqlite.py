from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from cardsmith.errors import StoreError
from cardsmith.models.flashcard import (
    FileStats,
    Flashcard,
    FlashcardCreate,
    FlashcardUpdate,
    StoreStats,
)

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS flashcards (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    file        TEXT NOT NULL,
    question    TEXT NOT NULL,
    answer      TEXT NOT NULL,
    revisitin   INTEGER DEFAULT 0,
    created_at  TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_flashcards_revisitin ON flashcards(revisitin);
CREATE INDEX IF NOT EXISTS idx_flashcards_file ON flashcards(file);
CREATE INDEX IF NOT EXISTS idx_flashcards_file_revisitin ON flashcards(file, revisitin);
"""

_COLUMNS = "id, file, question, answer, revisitin AS revisit_in, created_at, updated_at"


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _row_to_flashcard(row: aiosqlite.Row) -> Flashcard:
    return Flashcard(**dict(row))


@contextmanager
def _wrap(action: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        raise StoreError(f"Failed to {action}: {e}") from e


class Store:
    """Flashcard repository backed by a single SQLite file.

    Open with ``await Store.open(path)``; every operation is one statement
    committed immediately, and every driver error surfaces as StoreError.
    """

    def __init__(self, db: aiosqlite.Connection, path: Path | str) -> None:
        self._db = db
        self.path = path

    @classmethod
    async def open(cls, path: Path | str) -> Store:
        if str(path) != ":memory:":
            try:
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StoreError(f"Cannot create data directory for {path}: {e}") from e
        try:
            db = await aiosqlite.connect(path)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open database {path}: {e}") from e
        db.row_factory = aiosqlite.Row
        try:
            await db.executescript(SCHEMA_SQL)
            await db.commit()
        except sqlite3.Error as e:
            await db.close()
            raise StoreError(f"Cannot initialise schema in {path}: {e}") from e
        logger.debug("Opened flashcard store at %s", path)
        return cls(db, path)

    async def close(self) -> None:
        await self._db.close()

    # --- CRUD ---

    async def insert(self, card: FlashcardCreate) -> Flashcard:
        now = _now()
        with _wrap("insert flashcard"):
            cursor = await self._db.execute(
                """INSERT INTO flashcards
                   (file, question, answer, revisitin, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (card.file, card.question, card.answer, card.revisit_in, now, now),
            )
            await self._db.commit()
            card_id = cursor.lastrowid
        inserted = await self.get(card_id)
        if inserted is None:
            raise StoreError(f"Inserted flashcard {card_id} could not be read back")
        return inserted

    async def get(self, card_id: int) -> Flashcard | None:
        with _wrap(f"read flashcard {card_id}"):
            cursor = await self._db.execute(
                f"SELECT {_COLUMNS} FROM flashcards WHERE id = ?",  # noqa: S608
                (card_id,),
            )
            row = await cursor.fetchone()
        return _row_to_flashcard(row) if row else None

    async def update(self, card_id: int, revisit_in: int) -> bool:
        """Set only the scheduling field. Returns False if the card is gone."""
        with _wrap(f"update flashcard {card_id}"):
            cursor = await self._db.execute(
                "UPDATE flashcards SET revisitin = ?, updated_at = ? WHERE id = ?",
                (revisit_in, _now(), card_id),
            )
            await self._db.commit()
        return (cursor.rowcount or 0) > 0

    async def update_full(
        self, card_id: int, update: FlashcardUpdate
    ) -> Flashcard | None:
        with _wrap(f"update flashcard {card_id}"):
            cursor = await self._db.execute(
                """UPDATE flashcards
                   SET file = ?, question = ?, answer = ?, revisitin = ?, updated_at = ?
                   WHERE id = ?""",
                (
                    update.file,
                    update.question,
                    update.answer,
                    update.revisit_in,
                    _now(),
                    card_id,
                ),
            )
            await self._db.commit()
        if not cursor.rowcount:
            return None
        return await self.get(card_id)

    async def delete(self, card_id: int) -> bool:
        with _wrap(f"delete flashcard {card_id}"):
            cursor = await self._db.execute(
                "DELETE FROM flashcards WHERE id = ?", (card_id,)
            )
            await self._db.commit()
        return (cursor.rowcount or 0) > 0

    async def reset_all(self) -> int:
        """Make every card due again. Returns the number of cards touched."""
        with _wrap("reset flashcards"):
            cursor = await self._db.execute(
                "UPDATE flashcards SET revisitin = 0, updated_at = ?", (_now(),)
            )
            await self._db.commit()
        return cursor.rowcount or 0

    # --- Queries ---

    async def is_processed(self, file: str) -> bool:
        with _wrap(f"look up {file}"):
            cursor = await self._db.execute(
                "SELECT COUNT(*) FROM flashcards WHERE file = ?", (file,)
            )
            row = await cursor.fetchone()
        return bool(row and row[0] > 0)

    async def query_all(self) -> list[Flashcard]:
        return await self._fetch(
            f"SELECT {_COLUMNS} FROM flashcards ORDER BY revisitin ASC, id ASC",  # noqa: S608
            (),
            "list flashcards",
        )

    async def query_due(self) -> list[Flashcard]:
        return await self._fetch(
            f"SELECT {_COLUMNS} FROM flashcards WHERE revisitin <= 0 ORDER BY id ASC",  # noqa: S608
            (),
            "query due flashcards",
        )

    async def query_due_for_files(self, files: Iterable[str]) -> list[Flashcard]:
        files = list(dict.fromkeys(files))
        if not files:
            return []
        placeholders = ", ".join("?" for _ in files)
        return await self._fetch(
            f"SELECT {_COLUMNS} FROM flashcards "  # noqa: S608
            f"WHERE revisitin <= 0 AND file IN ({placeholders}) ORDER BY id ASC",
            files,
            "query due flashcards by file",
        )

    async def list_distinct_files(self) -> list[str]:
        with _wrap("list files"):
            cursor = await self._db.execute(
                "SELECT DISTINCT file FROM flashcards ORDER BY file ASC"
            )
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def stats(self) -> StoreStats:
        with _wrap("compute stats"):
            cursor = await self._db.execute(
                """SELECT file,
                          COUNT(*) AS total,
                          SUM(CASE WHEN revisitin <= 0 THEN 1 ELSE 0 END) AS due
                   FROM flashcards
                   GROUP BY file
                   ORDER BY file ASC"""
            )
            rows = await cursor.fetchall()
        per_file = [
            FileStats(file=row[0], total=row[1], due=row[2] or 0) for row in rows
        ]
        return StoreStats(
            total_cards=sum(f.total for f in per_file),
            due=sum(f.due for f in per_file),
            per_file=per_file,
        )

    async def _fetch(self, sql: str, params, action: str) -> list[Flashcard]:
        with _wrap(action):
            cursor = await self._db.execute(sql, params)
            rows = await cursor.fetchall()
        return [_row_to_flashcard(r) for r in rows]
