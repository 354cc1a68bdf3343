from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from tqdm import tqdm

logger = logging.getLogger(__name__)

T = TypeVar("T")

TICK_SECONDS = 0.1


@dataclass(frozen=True)
class TaskSuccess(Generic[T]):
    value: T


@dataclass(frozen=True)
class TaskFailure:
    error: Exception


TaskResult = Union[TaskSuccess[T], TaskFailure]


async def _complete_into(
    coro: Coroutine[Any, Any, T], slot: asyncio.Queue[TaskResult[T]]
) -> None:
    """Run ``coro`` and put exactly one result into ``slot``."""
    try:
        value = await coro
    except asyncio.CancelledError:
        raise
    except Exception as e:
        slot.put_nowait(TaskFailure(e))
    else:
        slot.put_nowait(TaskSuccess(value))


async def run_in_background(
    coro: Coroutine[Any, Any, T],
    label: str,
    show_progress: bool = True,
) -> TaskResult[T]:
    """
    Run ``coro`` as a named background task while a progress bar ticks here.

    The task reports through a single-slot queue that is read once. If the
    caller is cancelled, the background task is cancelled with it.
    """
    slot: asyncio.Queue[TaskResult[T]] = asyncio.Queue(maxsize=1)
    task = asyncio.create_task(_complete_into(coro, slot), name=f"generate-{label}")
    bar = tqdm(
        total=None,
        desc=label,
        bar_format="{desc} {elapsed}",
        leave=False,
        disable=not show_progress,
    )
    getter = asyncio.ensure_future(slot.get())
    try:
        while not getter.done():
            await asyncio.wait({getter}, timeout=TICK_SECONDS)
            bar.refresh()
    except BaseException:
        getter.cancel()
        task.cancel()
        raise
    finally:
        bar.close()

    await task
    return getter.result()
