from __future__ import annotations

import argparse
import asyncio
import logging
import os
import socket
import sys
from collections.abc import Callable

from cardsmith.config import Settings, load_settings
from cardsmith.context import AppContext, open_context
from cardsmith.errors import NotFoundError, StoreError
from cardsmith.services.ingestion import FileStatus
from cardsmith.services.review_session import (
    ReviewSession,
    ReviewState,
    persist_outcomes,
    start_review,
)

logger = logging.getLogger(__name__)

QUIT_KEY = "q"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def find_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        return s.getsockname()[1]


# --- Review driver ---


def _status_bar(session: ReviewSession) -> str:
    shown = session.total if session.state == ReviewState.DONE else session.position + 1
    return f"correct {session.correct} | {shown}/{session.total} | incorrect {session.incorrect}"


def _prompt_for(session: ReviewSession) -> str:
    if session.state == ReviewState.QUESTION:
        return "Press Enter to reveal the answer (q to quit): "
    if session.state == ReviewState.ANSWER:
        return "Was your answer correct? [c]orrect / [i]ncorrect: "
    choices = "  ".join(f"[{days}]" for days in session.policy.intervals)
    return f"Revisit in (days): {choices}: "


def run_review_loop(
    session: ReviewSession,
    read_key: Callable[[str], str],
    write: Callable[[str], None] = print,
) -> None:
    """Drive ``session`` from keyboard input until it is done or the user quits.

    ``read_key`` is called with a prompt and returns the typed line; EOF
    (EOFError) counts as quitting. Keys that mean nothing in the current
    state are ignored.
    """
    shown_question = -1
    while not session.finished:
        if session.state == ReviewState.QUESTION and shown_question != session.position:
            write("")
            write(f"Question: {session.current.question}")
            write(_status_bar(session))
            shown_question = session.position

        try:
            key = read_key(_prompt_for(session)).strip().lower()
        except EOFError:
            key = QUIT_KEY

        if key == QUIT_KEY:
            session.quit()
            break

        if session.state == ReviewState.QUESTION:
            if key == "":
                session.reveal()
                write(f"Answer: {session.current.answer}")
        elif session.state == ReviewState.ANSWER:
            if key == "c":
                session.mark_correct()
            elif key == "i":
                session.mark_incorrect()
                write("Marked incorrect. The card comes back tomorrow.")
        elif session.state == ReviewState.INTERVAL_CHOICE:
            if key.isdigit() and int(key) in session.policy.intervals:
                days = int(key)
                session.choose_interval(days)
                write(f"Revisit in {days} day{'s' if days != 1 else ''}")

    if session.state == ReviewState.DONE:
        write("Review complete!")
    write(_status_bar(session))


# --- Commands ---


async def _generate(ctx: AppContext, path: str) -> int:
    print(f"Model: {ctx.model}")
    print(f"Database: {ctx.settings.sqlite_path}")
    print(f"API Target: {ctx.settings.ollama_url}")
    try:
        report = await ctx.ingestion_pipeline(report=print).ingest_path(path)
    except NotFoundError as e:
        print(f"File error: {e}", file=sys.stderr)
        return 1
    print(
        f"{report.count(FileStatus.PROCESSED)} processed, "
        f"{report.count(FileStatus.SKIPPED)} skipped, "
        f"{report.count(FileStatus.EMPTY)} without flashcards, "
        f"{report.failed} failed; {report.cards_inserted} flashcards added"
    )
    return 1 if report.failed else 0


async def _review(
    ctx: AppContext,
    files: list[str] | None,
    read_key: Callable[[str], str] | None = None,
) -> int:
    if files is not None:
        files = [os.path.abspath(f) for f in files]
    session = await start_review(ctx.store, files, ctx.scheduling_policy())
    if session is None:
        print("No flashcards due for review.")
        return 0

    run_review_loop(session, read_key or input)

    result = await persist_outcomes(ctx.store, session)
    for update in result.updated:
        print(f"Updated flashcard {update.card_id}: revisit in {update.revisit_in} days")
    for update, reason in result.failed:
        print(f"DB update error for flashcard {update.card_id}: {reason}", file=sys.stderr)
    return 1 if result.failed else 0


async def _files(ctx: AppContext) -> int:
    files = await ctx.store.list_distinct_files()
    if not files:
        print("No files have been processed yet.")
    for file in files:
        print(file)
    return 0


def _serve(settings: Settings, host: str, port: int | None) -> int:
    import uvicorn

    from cardsmith import create_app

    port = port or find_free_port()
    print(f"PORT={port}", flush=True)
    uvicorn.run(create_app(settings), host=host, port=port, log_level="warning")
    return 0


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    try:
        async with open_context(settings, model=getattr(args, "model", None)) as ctx:
            if args.cmd == "generate":
                return await _generate(ctx, args.path)
            if args.cmd == "files":
                return await _files(ctx)
            return await _review(ctx, getattr(args, "file", None))
    except StoreError as e:
        print(f"DB error: {e}", file=sys.stderr)
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cardsmith",
        description="Ollama-powered spaced repetition flashcards",
    )
    sub = parser.add_subparsers(dest="cmd")

    g = sub.add_parser("generate", help="Generate flashcards from markdown files")
    g.add_argument("--path", "-p", required=True, help="Markdown file or folder to process")
    g.add_argument("--model", "-m", help="Ollama model to use (defaults to settings)")

    r = sub.add_parser("review", help="Review flashcards that are due")
    r.add_argument(
        "--file",
        "-f",
        action="append",
        help="Only review cards generated from this file (repeatable)",
    )

    sub.add_parser("files", help="List files that already produced flashcards")

    s = sub.add_parser("serve", help="Run the flashcard administration API")
    s.add_argument("--host", default="127.0.0.1")
    s.add_argument("--port", type=int, default=None, help="Port (default: any free port)")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.cmd is None:
        args.cmd = "review"

    settings = load_settings()
    configure_logging(settings.log_level)

    if args.cmd == "serve":
        return _serve(settings, args.host, args.port)
    return asyncio.run(_run(args, settings))


if __name__ == "__main__":
    raise SystemExit(main())
