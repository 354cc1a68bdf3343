"""
Review session over a fixed snapshot of due flashcards.

    QUESTION --reveal--> ANSWER --mark_correct--> INTERVAL_CHOICE --choose_interval--> next
                          ANSWER --mark_incorrect--> next
    next: QUESTION on the following card, or DONE after the last one
    quit: any non-terminal state --> QUIT

Nothing is written while the session runs. persist_outcomes writes the
answered cards once the session has ended; unanswered cards are not touched.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from cardsmith.db.sqlite import Store
from cardsmith.errors import NothingDueError, SessionStateError, StoreError
from cardsmith.models.flashcard import Flashcard
from cardsmith.services.scheduling import (
    Correct,
    Incorrect,
    Outcome,
    SchedulingPolicy,
    Unanswered,
)

logger = logging.getLogger(__name__)


class ReviewState(str, Enum):
    QUESTION = "question"
    ANSWER = "answer"
    INTERVAL_CHOICE = "interval_choice"
    DONE = "done"
    QUIT = "quit"


TERMINAL_STATES = frozenset({ReviewState.DONE, ReviewState.QUIT})


@dataclass
class CardRecord:
    flashcard: Flashcard
    outcome: Outcome = field(default_factory=Unanswered)


@dataclass(frozen=True)
class ScheduledUpdate:
    card_id: int
    revisit_in: int


@dataclass
class WriteBackReport:
    updated: list[ScheduledUpdate] = field(default_factory=list)
    failed: list[tuple[ScheduledUpdate, str]] = field(default_factory=list)


class ReviewSession:
    def __init__(
        self,
        cards: Iterable[Flashcard],
        policy: SchedulingPolicy | None = None,
    ) -> None:
        self.records = [CardRecord(card) for card in cards]
        if not self.records:
            raise NothingDueError("No flashcards due for review")
        self.policy = policy or SchedulingPolicy()
        self.position = 0
        self.state = ReviewState.QUESTION
        self.persisted = False

    # --- Read-only views ---

    @property
    def total(self) -> int:
        return len(self.records)

    @property
    def current(self) -> Flashcard:
        if self.finished:
            raise SessionStateError("Session has ended; there is no current card")
        return self.records[self.position].flashcard

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def correct(self) -> int:
        return sum(1 for r in self.records if isinstance(r.outcome, Correct))

    @property
    def incorrect(self) -> int:
        return sum(1 for r in self.records if isinstance(r.outcome, Incorrect))

    @property
    def unanswered(self) -> int:
        return sum(1 for r in self.records if isinstance(r.outcome, Unanswered))

    # --- Transitions ---

    def reveal(self) -> None:
        self._require(ReviewState.QUESTION, "reveal")
        self.state = ReviewState.ANSWER

    def mark_correct(self) -> None:
        self._require(ReviewState.ANSWER, "mark correct")
        self.state = ReviewState.INTERVAL_CHOICE

    def mark_incorrect(self) -> None:
        self._require(ReviewState.ANSWER, "mark incorrect")
        self.records[self.position].outcome = Incorrect()
        self._advance()

    def choose_interval(self, days: int) -> None:
        self._require(ReviewState.INTERVAL_CHOICE, "choose interval")
        self.records[self.position].outcome = Correct(self.policy.check_interval(days))
        self._advance()

    def quit(self) -> None:
        if self.finished:
            raise SessionStateError(f"Cannot quit: session already {self.state.value}")
        self.state = ReviewState.QUIT

    def _advance(self) -> None:
        if self.position + 1 < len(self.records):
            self.position += 1
            self.state = ReviewState.QUESTION
        else:
            self.state = ReviewState.DONE

    def _require(self, expected: ReviewState, action: str) -> None:
        if self.state != expected:
            raise SessionStateError(
                f"Cannot {action} in state {self.state.value}"
            )

    # --- Outcomes ---

    def pending_updates(self) -> list[ScheduledUpdate]:
        """One update per answered card, in snapshot order."""
        updates = []
        for record in self.records:
            days = self.policy.interval_for(record.outcome)
            if days is not None:
                updates.append(ScheduledUpdate(record.flashcard.id, days))
        return updates


async def start_review(
    store: Store,
    files: Iterable[str] | None = None,
    policy: SchedulingPolicy | None = None,
) -> ReviewSession | None:
    """Snapshot the due cards and open a session, or None if nothing is due."""
    if files is None:
        cards = await store.query_due()
    else:
        cards = await store.query_due_for_files(files)
    if not cards:
        return None
    return ReviewSession(cards, policy)


async def persist_outcomes(store: Store, session: ReviewSession) -> WriteBackReport:
    if not session.finished:
        raise SessionStateError("Cannot persist outcomes before the session ends")
    if session.persisted:
        raise SessionStateError("Session outcomes have already been persisted")
    session.persisted = True

    report = WriteBackReport()
    for update in session.pending_updates():
        try:
            found = await store.update(update.card_id, update.revisit_in)
        except StoreError as e:
            logger.warning("Could not reschedule flashcard %d: %s", update.card_id, e)
            report.failed.append((update, str(e)))
            continue
        if found:
            report.updated.append(update)
        else:
            logger.warning("Flashcard %d vanished before it could be rescheduled", update.card_id)
            report.failed.append((update, "flashcard no longer exists"))
    return report
