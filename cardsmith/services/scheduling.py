from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union

from cardsmith.models.flashcard import Flashcard

DEFAULT_INTERVALS = (1, 3, 7, 9)
INCORRECT_INTERVAL = 1


@dataclass(frozen=True)
class Unanswered:
    pass


@dataclass(frozen=True)
class Correct:
    interval: int


@dataclass(frozen=True)
class Incorrect:
    pass


Outcome = Union[Unanswered, Correct, Incorrect]


def is_due(card: Flashcard) -> bool:
    return card.revisit_in <= 0


class SchedulingPolicy:
    """User-chosen, non-adaptive scheduling.

    A correct answer is rescheduled by whichever day count the reviewer picks
    from a fixed vocabulary; an incorrect one always comes back tomorrow.
    """

    def __init__(self, intervals: Iterable[int] = DEFAULT_INTERVALS) -> None:
        intervals = tuple(sorted(set(intervals)))
        if not intervals or any(i < 1 for i in intervals):
            raise ValueError(f"Invalid revisit intervals: {intervals!r}")
        self.intervals = intervals

    def check_interval(self, days: int) -> int:
        if days not in self.intervals:
            choices = ", ".join(str(i) for i in self.intervals)
            raise ValueError(f"Interval must be one of {choices}, got {days}")
        return days

    def interval_for(self, outcome: Outcome) -> int | None:
        """Days to store for ``outcome``, or None when nothing should be written."""
        if isinstance(outcome, Correct):
            return outcome.interval
        if isinstance(outcome, Incorrect):
            return INCORRECT_INTERVAL
        return None
