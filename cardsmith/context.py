from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from cardsmith.config import Settings
from cardsmith.db import Store, open_store
from cardsmith.services.ingestion import IngestionPipeline
from cardsmith.services.llm_service import GenerationClient
from cardsmith.services.scheduling import SchedulingPolicy


@dataclass
class AppContext:
    """Everything a command needs, built once per invocation."""

    settings: Settings
    store: Store
    client: GenerationClient
    model: str

    def ingestion_pipeline(
        self, report: Callable[[str], None] | None = None
    ) -> IngestionPipeline:
        return IngestionPipeline(
            store=self.store,
            client=self.client,
            model=self.model,
            url=self.settings.ollama_url,
            timeout=self.settings.generation_timeout,
            extensions=self.settings.markdown_extensions,
            show_progress=self.settings.show_progress,
            report=report,
        )

    def scheduling_policy(self) -> SchedulingPolicy:
        return SchedulingPolicy(self.settings.revisit_intervals)


@asynccontextmanager
async def open_context(
    settings: Settings,
    model: str | None = None,
    client: GenerationClient | None = None,
) -> AsyncIterator[AppContext]:
    """Open the store (raising StoreError if it cannot be opened) and close it on exit."""
    store = await open_store(settings.sqlite_path)
    try:
        yield AppContext(
            settings=settings,
            store=store,
            client=client or GenerationClient(),
            model=model or settings.ollama_model,
        )
    finally:
        await store.close()
