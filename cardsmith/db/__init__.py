from pathlib import Path

from cardsmith.db.sqlite import Store


async def open_store(db_path: Path | str) -> Store:
    return await Store.open(db_path)


__all__ = ["Store", "open_store"]
