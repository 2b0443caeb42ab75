"""ExtensionScan — one scan from dataset loading to the final status.

State machine::

    IDLE -> LOADING -> SCANNING -> COMPLETE
               \\
                -> FAILED

Only dataset loading can fail the scan; per-candidate failures are absorbed
by the scheduler. An instance runs at most once.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence

import httpx
import structlog

from extprobe import datasets
from extprobe.config import ScanConfig
from extprobe.engine.aggregator import ProbeFn, ResultAggregator, ScanListener
from extprobe.engine.scheduler import BatchScheduler
from extprobe.exceptions import DatasetLoadError, ScanStateError
from extprobe.models import Candidate, MetadataRecord, ScanState, ScanStatus, StatusUpdate

log = structlog.get_logger("extprobe.engine")

MSG_LOADING = "Loading extension signatures"
MSG_SCANNING = "Scanning for installed extensions"
MSG_COMPLETE = "Scan complete."
MSG_FAILED = "Unable to complete scan."
HINT_FAILED = (
    "Double-check that the datasets are reachable and, for browser probing, "
    "that the page is being served by a static web server (e.g. nginx)."
)

DatasetLoader = Callable[[], Awaitable[tuple[Sequence[Candidate], Mapping[str, MetadataRecord]]]]


def default_dataset_loader(
    config: ScanConfig, client: httpx.AsyncClient | None = None
) -> DatasetLoader:
    """Load the candidate list and the metadata map concurrently.

    If either load fails the other is cancelled and awaited before the error
    propagates, so nothing keeps using *client* after the caller closes it.
    """

    async def _load() -> tuple[Sequence[Candidate], Mapping[str, MetadataRecord]]:
        tasks = [
            asyncio.ensure_future(datasets.load_candidates(config.candidates_source, client)),
            asyncio.ensure_future(datasets.load_metadata(config.metadata_source, client)),
        ]
        try:
            candidates, metadata = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return candidates, metadata

    return _load


class ExtensionScan:
    """Wire dataset loading, scheduler, probe and aggregator for one scan."""

    def __init__(
        self,
        config: ScanConfig,
        probe: ProbeFn,
        listener: ScanListener,
        *,
        load_datasets: DatasetLoader | None = None,
    ) -> None:
        self.config = config
        self.state = ScanState()
        self._probe = probe
        self._listener = listener
        self._load_datasets = load_datasets or default_dataset_loader(config)
        self._scheduler = BatchScheduler(
            concurrency=config.concurrency, batch_delay=config.batch_delay
        )

    async def run(self) -> ScanState:
        if self.state.status is not ScanStatus.IDLE:
            raise ScanStateError(f"scan already ran (status={self.state.status.value})")

        self.state.status = ScanStatus.LOADING
        self._listener.on_status(StatusUpdate(message=MSG_LOADING))
        try:
            candidates, metadata = await self._load_datasets()
        except DatasetLoadError as exc:
            self.state.status = ScanStatus.FAILED
            log.error("scan.failed", source=exc.source, reason=exc.reason)
            self._listener.on_failure(MSG_FAILED, HINT_FAILED)
            return self.state

        self.state.total = len(candidates)
        self.state.status = ScanStatus.SCANNING
        self._listener.on_status(
            StatusUpdate(scanned=0, detected=0, total=self.state.total, message=MSG_SCANNING)
        )
        log.info(
            "scan.started",
            total=self.state.total,
            concurrency=self.config.concurrency,
            timeout=self.config.timeout,
        )

        aggregator = ResultAggregator(self.state, self._probe, metadata, self._listener)
        await self._scheduler.run(candidates, aggregator.handle, aggregator.on_progress)

        self.state.status = ScanStatus.COMPLETE
        self._listener.on_status(
            StatusUpdate(
                scanned=self.state.scanned,
                detected=self.state.detected,
                total=self.state.total,
                message=MSG_COMPLETE,
            )
        )
        log.info("scan.complete", **self.state.as_dict())
        return self.state
