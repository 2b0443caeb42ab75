"""Dataset loading — candidate list and extension metadata.

Sources are either ``http(s)://`` URLs (fetched with httpx) or local file
paths. Both documents are loaded whole before a scan starts; any failure is
reported as :class:`DatasetLoadError`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from extprobe.exceptions import DatasetLoadError
from extprobe.models import Candidate, MetadataRecord

log = structlog.get_logger("extprobe.datasets")


class CandidateEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    path: str = Field(min_length=1)


class MetadataEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    original_name: str | None = None
    extension_category: str | None = None
    overview: str | None = None

    @field_validator("original_name", "extension_category", "overview", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


_CANDIDATES = TypeAdapter(list[CandidateEntry])


def _is_url(source: str) -> bool:
    return urlparse(source).scheme in ("http", "https")


async def load_json(source: str, client: httpx.AsyncClient | None = None) -> Any:
    """Load and decode one JSON document from a URL or a local path."""
    if _is_url(source):
        return await _fetch_json(source, client)

    path = Path(source)
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise DatasetLoadError(source, exc.strerror or str(exc)) from exc
    try:
        return json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise DatasetLoadError(source, f"not valid UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise DatasetLoadError(source, f"invalid JSON: {exc}") from exc


async def _fetch_json(url: str, client: httpx.AsyncClient | None) -> Any:
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=30.0)
    try:
        response = await http.get(url)
    except httpx.HTTPError as exc:
        raise DatasetLoadError(url, f"{type(exc).__name__}: {exc}") from exc
    finally:
        if owns_client:
            await http.aclose()

    if not response.is_success:
        raise DatasetLoadError(url, str(response.status_code))
    try:
        return response.json()
    except ValueError as exc:
        raise DatasetLoadError(url, f"invalid JSON: {exc}") from exc


def parse_candidates(source: str, data: Any) -> list[Candidate]:
    """Validate ``[{id, path}, ...]`` and keep the input order."""
    try:
        entries = _CANDIDATES.validate_python(data)
    except PydanticValidationError as exc:
        raise DatasetLoadError(source, f"malformed candidate list: {exc.error_count()} error(s)") from exc
    return [Candidate(identifier=e.id, resource_path=e.path) for e in entries]


def parse_metadata(source: str, data: Any) -> dict[str, MetadataRecord]:
    """Validate ``{id: {original_name, extension_category, overview}}``.

    Only a non-object document fails the load. A malformed record is logged
    and skipped, so its extension renders as not in the dataset.
    """
    if not isinstance(data, dict):
        raise DatasetLoadError(
            source, f"malformed metadata: expected an object, got {type(data).__name__}"
        )

    records: dict[str, MetadataRecord] = {}
    for ext_id, raw in data.items():
        try:
            entry = MetadataEntry.model_validate(raw)
        except PydanticValidationError as exc:
            log.warning(
                "dataset.metadata_skipped",
                source=source,
                extension_id=ext_id,
                errors=exc.error_count(),
            )
            continue
        records[ext_id] = MetadataRecord(
            display_name=entry.original_name,
            category=entry.extension_category,
            overview=entry.overview,
        )
    return records


async def load_candidates(source: str, client: httpx.AsyncClient | None = None) -> list[Candidate]:
    candidates = parse_candidates(source, await load_json(source, client))
    log.info("dataset.loaded", source=source, kind="candidates", count=len(candidates))
    return candidates


async def load_metadata(
    source: str, client: httpx.AsyncClient | None = None
) -> dict[str, MetadataRecord]:
    metadata = parse_metadata(source, await load_json(source, client))
    log.info("dataset.loaded", source=source, kind="metadata", count=len(metadata))
    return metadata
