"""
Tolerant Q:/A: extractor for model output.

The scan is a two-state automaton:

    NoPendingQuestion --Q:--> PendingQuestion(text)
    PendingQuestion   --Q:--> PendingQuestion(new text)   (old question dropped)
    PendingQuestion   --A:--> NoPendingQuestion            (pair emitted)
    NoPendingQuestion --A:--> NoPendingQuestion            (answer dropped)

Anything else leaves the state alone. parse_flashcards never raises.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Union

DECORATION = "*: "
QUESTION_MARKER = "Q:"
ANSWER_MARKER = "A:"


class QAPair(NamedTuple):
    question: str
    answer: str


@dataclass(frozen=True)
class NoPendingQuestion:
    pass


@dataclass(frozen=True)
class PendingQuestion:
    text: str


ParserState = Union[NoPendingQuestion, PendingQuestion]


def _strip(text: str) -> str:
    return text.strip().strip(DECORATION).strip()


def step(state: ParserState, line: str) -> tuple[ParserState, QAPair | None]:
    """Advance the automaton by one line. Returns (next_state, emitted_pair)."""
    stripped = _strip(line)
    if len(stripped) < 2:
        return state, None

    marker, rest = stripped[:2], _strip(stripped[2:])

    if marker == QUESTION_MARKER:
        return PendingQuestion(rest), None

    if marker == ANSWER_MARKER:
        if isinstance(state, PendingQuestion) and state.text and rest:
            return NoPendingQuestion(), QAPair(state.text, rest)
        return state, None

    return state, None


def parse_flashcards(text: str) -> list[QAPair]:
    state: ParserState = NoPendingQuestion()
    pairs: list[QAPair] = []
    for line in text.splitlines():
        state, pair = step(state, line)
        if pair is not None:
            pairs.append(pair)
    return pairs
