"""Batch scheduler — bounded-concurrency dispatch of per-candidate probes."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

import structlog

from extprobe.config import DEFAULT_BATCH_DELAY, DEFAULT_CONCURRENCY

log = structlog.get_logger("extprobe.engine")

T = TypeVar("T")


class BatchScheduler:
    """Run a handler over items in consecutive fixed-size batches.

    Every member of a batch runs concurrently and the next batch starts only
    after all of them have settled, so at most ``concurrency`` handlers are
    in flight. A failing handler is logged and still counted; it never
    aborts its batch or the run.
    """

    def __init__(
        self,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        batch_delay: float = DEFAULT_BATCH_DELAY,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.concurrency = concurrency
        self.batch_delay = batch_delay

    def batches(self, items: Sequence[T]) -> list[Sequence[T]]:
        return [
            items[start : start + self.concurrency]
            for start in range(0, len(items), self.concurrency)
        ]

    async def run(
        self,
        items: Sequence[T],
        on_probe: Callable[[T], Awaitable[None]],
        on_progress: Callable[[int], None],
    ) -> None:
        """Process *items*, calling *on_progress* with the cumulative count
        after every completed handler."""
        resolved = 0

        async def _run_one(item: T) -> None:
            nonlocal resolved
            try:
                await on_probe(item)
            except Exception:
                log.exception("scheduler.probe_failed", item=repr(item))
            finally:
                resolved += 1
                on_progress(resolved)

        batches = self.batches(items)
        for index, batch in enumerate(batches):
            results = await asyncio.gather(
                *(_run_one(item) for item in batch), return_exceptions=True
            )
            for result in results:
                # Only a failing progress callback can get here.
                if isinstance(result, Exception):
                    log.error("scheduler.progress_failed", error=str(result))
            log.debug("scheduler.batch_done", batch=index + 1, batches=len(batches), resolved=resolved)
            if index + 1 < len(batches):
                await asyncio.sleep(self.batch_delay)
