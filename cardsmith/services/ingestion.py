from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from cardsmith.db.sqlite import Store
from cardsmith.errors import GenerationTimeout, ReadError, ServiceError, StoreError
from cardsmith.services.discovery import DEFAULT_EXTENSIONS, discover_markdown_files
from cardsmith.services.flashcard_generator import build_prompt, insert_pairs
from cardsmith.services.flashcard_parser import parse_flashcards
from cardsmith.services.llm_service import DEFAULT_TIMEOUT, GenerationClient
from cardsmith.services.task_runner import TaskFailure, run_in_background

logger = logging.getLogger(__name__)


class FileStatus(str, Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass
class FileOutcome:
    path: str
    status: FileStatus
    cards_inserted: int = 0
    message: str = ""


@dataclass
class IngestionReport:
    outcomes: list[FileOutcome] = field(default_factory=list)

    def count(self, status: FileStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def cards_inserted(self) -> int:
        return sum(o.cards_inserted for o in self.outcomes)

    @property
    def failed(self) -> int:
        return self.count(FileStatus.FAILED)


class IngestionPipeline:
    """Turns markdown files into stored flashcards, one file at a time.

    A file whose absolute path already owns a flashcard is skipped, so
    re-running over the same tree is a no-op. Failures are confined to the
    file that caused them.
    """

    def __init__(
        self,
        store: Store,
        client: GenerationClient,
        model: str,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        show_progress: bool = True,
        report: Callable[[str], None] | None = None,
    ) -> None:
        self.store = store
        self.client = client
        self.model = model
        self.url = url
        self.timeout = timeout
        self.extensions = tuple(extensions)
        self.show_progress = show_progress
        self._report = report

    async def ingest_path(self, path: Path | str) -> IngestionReport:
        """Ingest every markdown file at or below ``path``.

        Raises NotFoundError if ``path`` does not exist; never raises for a
        problem with an individual file.
        """
        files = discover_markdown_files(path, self.extensions)
        report = IngestionReport()
        if not files:
            self._emit(f"No markdown files found at {path}")
            return report

        for file in sorted(files):
            report.outcomes.append(await self.ingest_file(file))

        logger.info(
            "Ingestion finished: %d processed, %d skipped, %d empty, %d failed, %d cards",
            report.count(FileStatus.PROCESSED),
            report.count(FileStatus.SKIPPED),
            report.count(FileStatus.EMPTY),
            report.failed,
            report.cards_inserted,
        )
        return report

    async def ingest_file(self, path: Path | str) -> FileOutcome:
        abs_path = os.path.abspath(path)
        try:
            outcome = await self._ingest(abs_path)
        except (ReadError, ServiceError, GenerationTimeout, StoreError) as e:
            logger.warning("Ingestion failed for %s: %s", abs_path, e)
            outcome = FileOutcome(abs_path, FileStatus.FAILED, message=_describe(e))
        except Exception as e:
            logger.exception("Unexpected error ingesting %s", abs_path)
            outcome = FileOutcome(
                abs_path, FileStatus.FAILED, message=f"Unexpected error: {e}"
            )
        self._emit(_format(outcome))
        return outcome

    async def _ingest(self, abs_path: str) -> FileOutcome:
        if await self.store.is_processed(abs_path):
            return FileOutcome(
                abs_path, FileStatus.SKIPPED, message="already processed"
            )

        content = _read_text(abs_path)
        result = await run_in_background(
            self.client.generate(
                self.model, self.url, build_prompt(content), self.timeout
            ),
            label=f"Generating flashcards for {Path(abs_path).name}",
            show_progress=self.show_progress,
        )
        if isinstance(result, TaskFailure):
            raise result.error

        pairs = parse_flashcards(result.value)
        if not pairs:
            return FileOutcome(
                abs_path, FileStatus.EMPTY, message="model returned no Q:/A: pairs"
            )

        inserted = await insert_pairs(self.store, abs_path, pairs)
        if inserted == 0:
            raise StoreError(f"none of {len(pairs)} flashcards could be stored")
        return FileOutcome(
            abs_path,
            FileStatus.PROCESSED,
            cards_inserted=inserted,
            message=f"{inserted} flashcards generated",
        )

    def _emit(self, message: str) -> None:
        if self._report is not None:
            self._report(message)


def _read_text(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(f"Cannot read {path}: {e}") from e


def _describe(error: Exception) -> str:
    if isinstance(error, GenerationTimeout):
        return f"timed out: {error}"
    if isinstance(error, ServiceError):
        return f"generation service error: {error}"
    if isinstance(error, ReadError):
        return f"read error: {error}"
    return f"store error: {error}"


def _format(outcome: FileOutcome) -> str:
    if outcome.status == FileStatus.PROCESSED:
        return f"Processed: {outcome.path} ({outcome.message})"
    if outcome.status == FileStatus.SKIPPED:
        return f"Skipping already processed: {outcome.path}"
    if outcome.status == FileStatus.EMPTY:
        return f"No flashcards inserted for: {outcome.path}"
    return f"Failed: {outcome.path} ({outcome.message})"
