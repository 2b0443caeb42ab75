"""Rendering boundary — terminal and JSON consumers of scan events."""

from __future__ import annotations

from typing import Any

import click

from extprobe.models import Detection, StatusUpdate

STORE_URL = "https://chromewebstore.google.com/detail/{id}"
NOT_IN_DATASET = "Not in dataset"
UNKNOWN = "Unknown"
DETECTED = "Detected"

_HEADER = ("Extension ID", "Name", "Category", "Overview", "Status")


def store_url(extension_id: str) -> str:
    return STORE_URL.format(id=extension_id)


def detection_row(detection: Detection) -> tuple[str, str, str, str, str]:
    """Cells for one result row; missing metadata renders as placeholders."""
    ext_id = detection.candidate.identifier
    meta = detection.metadata
    if meta is not None and meta.display_name:
        name = f"{meta.display_name} <{store_url(ext_id)}>"
    else:
        name = NOT_IN_DATASET
    category = (meta.category if meta else None) or UNKNOWN
    overview = (meta.overview if meta else None) or UNKNOWN
    return (ext_id, name, category, overview, DETECTED)


def detection_dict(detection: Detection) -> dict[str, Any]:
    meta = detection.metadata
    return {
        "id": detection.candidate.identifier,
        "path": detection.candidate.resource_path,
        "in_dataset": meta is not None,
        "name": meta.display_name if meta else None,
        "category": meta.category if meta else None,
        "overview": meta.overview if meta else None,
        "store_url": store_url(detection.candidate.identifier),
    }


class TerminalRenderer:
    """Print status lines to stderr and one result row per detection to stdout.

    The table header replaces the "nothing found yet" placeholder the first
    time a detection arrives.
    """

    def __init__(self) -> None:
        self.placeholder_cleared = False
        self.rows = 0
        self._last_percent: int | None = None

    def on_status(self, update: StatusUpdate) -> None:
        percent = update.percent
        if update.message:
            click.echo(update.message, err=True)
        if percent is None or (percent == self._last_percent and not update.message):
            return
        self._last_percent = percent
        click.echo(
            f"[{percent:3d}%] scanned {update.scanned:,}/{update.total:,}"
            f"  detected {update.detected:,}",
            err=True,
        )

    def on_detection(self, detection: Detection) -> None:
        if not self.placeholder_cleared:
            click.echo("\t".join(_HEADER))
            self.placeholder_cleared = True
        click.echo("\t".join(detection_row(detection)))
        self.rows += 1

    def on_failure(self, message: str, hint: str) -> None:
        click.echo(message, err=True)
        click.echo(hint, err=True)

    def finish(self) -> None:
        if not self.placeholder_cleared:
            click.echo("No extensions detected.")


class JsonCollector:
    """Collect events and produce one JSON-serialisable summary at the end."""

    def __init__(self) -> None:
        self.detections: list[Detection] = []
        self.updates: list[StatusUpdate] = []
        self.failure: tuple[str, str] | None = None

    def on_status(self, update: StatusUpdate) -> None:
        self.updates.append(update)

    def on_detection(self, detection: Detection) -> None:
        self.detections.append(detection)

    def on_failure(self, message: str, hint: str) -> None:
        self.failure = (message, hint)

    def summary(self, state: dict[str, Any]) -> dict[str, Any]:
        out: dict[str, Any] = dict(state)
        out["detections"] = [detection_dict(d) for d in self.detections]
        if self.failure is not None:
            out["error"] = {"message": self.failure[0], "hint": self.failure[1]}
        return out
