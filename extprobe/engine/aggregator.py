"""Count probe outcomes and forward them to the rendering boundary."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Protocol, runtime_checkable

import structlog

from extprobe.models import Candidate, Detection, MetadataRecord, ScanState, StatusUpdate

log = structlog.get_logger("extprobe.engine")

ProbeFn = Callable[[str, str], Awaitable[bool]]


@runtime_checkable
class ScanListener(Protocol):
    """Rendering boundary for scan events.

    Detections arrive in completion order, not input order; treat them as an
    unordered append-only stream.
    """

    def on_status(self, update: StatusUpdate) -> None: ...

    def on_detection(self, detection: Detection) -> None: ...

    def on_failure(self, message: str, hint: str) -> None: ...


class ResultAggregator:
    """Owns the :class:`ScanState` counters for one scan."""

    def __init__(
        self,
        state: ScanState,
        probe: ProbeFn,
        metadata: Mapping[str, MetadataRecord],
        listener: ScanListener,
    ) -> None:
        self.state = state
        self._probe = probe
        self._metadata = metadata
        self._listener = listener

    async def handle(self, candidate: Candidate) -> None:
        """Probe one candidate and emit a detection if it is installed."""
        detected = await self._probe(candidate.identifier, candidate.resource_path)
        if not detected:
            return
        metadata = self._metadata.get(candidate.identifier)
        self.state.detected += 1
        log.info(
            "scan.detected",
            extension_id=candidate.identifier,
            name=metadata.display_name if metadata else None,
        )
        self._listener.on_detection(Detection(candidate=candidate, metadata=metadata))

    def on_progress(self, scanned: int) -> None:
        self.state.scanned = scanned
        self._listener.on_status(
            StatusUpdate(
                scanned=self.state.scanned,
                detected=self.state.detected,
                total=self.state.total,
            )
        )
