"""Batch executors for running a worker over many items."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field
from typing import Any

logger = logging.getLogger(__name__)

Worker = Callable[[Any, int], Awaitable[Any]]


@dataclass(frozen=True)
class ItemFailure:
    """A failed item, with its position in the pass that ran it."""

    index: int
    item: Any
    error: Exception


@dataclass(frozen=True)
class BatchResult:
    """Result of a batch operation.

    Successes are only counted. Failures keep one entry per failed input,
    in input order, so duplicate and unhashable items are reported too.
    Every input item is either counted as a success or present in
    ``failures``, never both.
    """

    failures: list[ItemFailure] = field(default_factory=list)
    successes: int = 0
    total: int = 0

    def failed_items(self) -> list[Any]:
        """Get list of items that failed."""
        return [failure.item for failure in self.failures]

    def failure_map(self) -> dict[Any, Exception]:
        """Map each failed item to its error.

        Only usable when items are hashable; repeated items keep the last error.
        """
        return {failure.item: failure.error for failure in self.failures}

    def all_succeeded(self) -> bool:
        return not self.failures


class BatchProgress:
    """Success and failure counts for one pass over a work list."""

    def __init__(self, total: int, silent: bool = False) -> None:
        self.total = total
        self.silent = silent
        self.successes = 0
        self.failures: list[ItemFailure] = []

    @property
    def finished(self) -> int:
        return self.successes + len(self.failures)

    def status_text(self) -> str:
        finished = self.finished
        percent_finished = round(finished / self.total * 100) if self.total else 100
        percent_successes = round(self.successes / finished * 100) if finished else 0
        return (
            f"Finished {finished}/{self.total} ({percent_finished}%) tasks, "
            f"of which {self.successes} ({percent_successes}%) were successful, "
            f"and {len(self.failures)} failed."
        )

    async def track(self, index: int, item: Any, work: Awaitable[Any]) -> None:
        """Await one item's work and record how it settled."""
        try:
            await work
        except Exception as exc:
            self.failures.append(ItemFailure(index, item, exc))
        else:
            self.successes += 1
        finally:
            if not self.silent:
                logger.info(self.status_text())

    def failed_in_order(self) -> list[ItemFailure]:
        return sorted(self.failures, key=lambda failure: failure.index)


def start_work(worker: Worker, item: Any, index: int) -> Awaitable[Any]:
    """Call the worker, insisting it returns something awaitable."""
    work = worker(item, index)
    if not inspect.isawaitable(work):
        raise TypeError("batch worker function must return an awaitable")
    return work


def start_round(worker: Worker, round_items: list[tuple[int, Any]]) -> list[Awaitable[Any]]:
    """Start every item of a round, closing the started ones if any call fails."""
    works: list[Awaitable[Any]] = []
    try:
        for index, item in round_items:
            works.append(start_work(worker, item, index))
    except BaseException:
        for work in works:
            if inspect.iscoroutine(work):
                work.close()
        raise
    return works


async def batch_operation(
    items: Iterable[Any],
    worker: Worker,
    concurrency: int = 5,
    retries: int = 0,
    *,
    silent: bool = False,
) -> BatchResult:
    """Run ``worker`` over ``items`` with bounded concurrency.

    Items run in rounds of ``concurrency``; each round waits for all of its
    items to settle before the next one starts. If any items failed and
    ``retries`` remain, the failed items alone are run again.

    Args:
        items: Items to process
        worker: Called as ``worker(item, index)`` where ``index`` is the
            item's position in the current pass. Must return an awaitable.
        concurrency: Number of items in flight per round
        retries: Number of extra passes over failed items
        silent: Suppress progress logging

    Returns:
        BatchResult with the failures of the final pass

    Raises:
        TypeError: if the worker does not return an awaitable
    """
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    items = list(items)
    worklist = items
    successes = 0

    while True:
        progress = BatchProgress(len(worklist), silent)
        indexed = list(enumerate(worklist))
        for start in range(0, len(indexed), concurrency):
            round_items = indexed[start : start + concurrency]
            works = start_round(worker, round_items)
            await asyncio.gather(
                *(
                    progress.track(index, item, work)
                    for (index, item), work in zip(round_items, works)
                )
            )

        successes += progress.successes
        failed = progress.failed_in_order()
        if failed and retries > 0:
            worklist = [failure.item for failure in failed]
            retries -= 1
            continue

        return BatchResult(
            failures=failed,
            successes=successes,
            total=len(items),
        )


async def series_batch_operation(
    items: Iterable[Any],
    worker: Worker,
    delay: float = 5.0,
    retries: int = 0,
    *,
    silent: bool = False,
) -> BatchResult:
    """Run ``worker`` over ``items`` one at a time, pausing between items.

    Args:
        items: Items to process
        worker: Called as ``worker(item, index)``; must return an awaitable
        delay: Seconds to wait after each item
        retries: Number of extra passes over failed items
        silent: Suppress progress logging

    Returns:
        BatchResult with the failures of the final pass
    """
    items = list(items)
    worklist = items
    failed: list[ItemFailure] = []
    successes = 0

    for round_number in range(retries + 1):
        if round_number > 0:
            if not failed:
                break
            worklist = [failure.item for failure in failed]

        progress = BatchProgress(len(worklist), silent)
        for index, item in enumerate(worklist):
            await progress.track(index, item, start_work(worker, item, index))
            if delay:
                await asyncio.sleep(delay)

        successes += progress.successes
        failed = progress.failed_in_order()

    return BatchResult(
        failures=failed,
        successes=successes,
        total=len(items),
    )
