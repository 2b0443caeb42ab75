"""Data models for the extension detection engine.

These are pure data structures: no I/O, no browser or HTTP dependencies.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


@dataclass(frozen=True)
class Candidate:
    """An extension to probe for.

    ``resource_path`` is a path inside the extension that is only retrievable
    when the extension is installed (a web-accessible resource).
    """

    identifier: str
    resource_path: str


@dataclass(frozen=True)
class MetadataRecord:
    """Reference metadata for a known extension. Every field is optional."""

    display_name: str | None = None
    category: str | None = None
    overview: str | None = None


@dataclass(frozen=True)
class Detection:
    """A positive probe result, paired with metadata when the dataset has it."""

    candidate: Candidate
    metadata: MetadataRecord | None = None

    @property
    def in_dataset(self) -> bool:
        return self.metadata is not None


class ScanStatus(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    SCANNING = "scanning"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class ScanState:
    """Mutable counters for one scan.

    Owned by the aggregator; ``scanned`` and ``detected`` only ever increase.
    """

    total: int = 0
    scanned: int = 0
    detected: int = 0
    status: ScanStatus = ScanStatus.IDLE

    def as_dict(self) -> dict[str, int | str]:
        return {
            "scanned": self.scanned,
            "detected": self.detected,
            "total": self.total,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class StatusUpdate:
    """One progress event for the status boundary."""

    scanned: int | None = None
    detected: int | None = None
    total: int | None = None
    message: str | None = None

    @property
    def percent(self) -> int | None:
        if self.scanned is None or self.total is None:
            return None
        if self.total <= 0:
            return 0
        return min(100, round(self.scanned / self.total * 100))
