"""Shared pytest fixtures. No browser or network needed."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from extprobe.models import Detection, StatusUpdate


class FakeLoader:
    """Resource loader whose outcome is scripted per URL.

    Behaviours: ``"ok"`` returns, ``"error"`` raises, ``"hang"`` never settles
    on its own. Unknown URLs use *default*.
    """

    def __init__(
        self,
        behaviours: dict[str, str] | None = None,
        default: str = "error",
        delay: float = 0.0,
    ) -> None:
        self.behaviours = behaviours or {}
        self.default = default
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.cancelled: list[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def _attempt(self, kind: str, url: str) -> None:
        self.calls.append((kind, url))
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            behaviour = self.behaviours.get(url, self.default)
            if behaviour == "hang":
                await asyncio.sleep(3600)
            if behaviour == "error":
                raise OSError(f"blocked: {url}")
        except asyncio.CancelledError:
            self.cancelled.append(url)
            raise
        finally:
            self.in_flight -= 1

    async def load_image(self, url: str) -> None:
        await self._attempt("image", url)

    async def check_exists(self, url: str) -> None:
        await self._attempt("exists", url)


class RecordingListener:
    """ScanListener that keeps every event for later assertions."""

    def __init__(self) -> None:
        self.updates: list[StatusUpdate] = []
        self.detections: list[Detection] = []
        self.failures: list[tuple[str, str]] = []

    def on_status(self, update: StatusUpdate) -> None:
        self.updates.append(update)

    def on_detection(self, detection: Detection) -> None:
        self.detections.append(detection)

    def on_failure(self, message: str, hint: str) -> None:
        self.failures.append((message, hint))

    @property
    def progress(self) -> list[StatusUpdate]:
        """Updates that carry counters but no message (one per completed probe)."""
        return [u for u in self.updates if u.scanned is not None and u.message is None]


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def dataset_files(tmp_path: Path):
    """Write candidate + metadata JSON files and return their paths."""

    def _write(candidates: list[dict], metadata: dict) -> tuple[str, str]:
        cand_path = tmp_path / "extension_ids.json"
        meta_path = tmp_path / "extensions_metadata.json"
        cand_path.write_text(json.dumps(candidates))
        meta_path.write_text(json.dumps(metadata))
        return str(cand_path), str(meta_path)

    return _write


@pytest.fixture
def make_loader():
    """Factory for FakeLoader instances."""
    return FakeLoader
