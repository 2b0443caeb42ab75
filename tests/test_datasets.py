"""Tests for dataset loading and validation."""

from __future__ import annotations

import httpx
import pytest

from extprobe.datasets import (
    load_candidates,
    load_json,
    load_metadata,
    parse_candidates,
    parse_metadata,
)
from extprobe.exceptions import DatasetLoadError
from extprobe.models import Candidate, MetadataRecord


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestParse:
    def test_candidates_keep_order(self):
        data = [{"id": "b", "path": "y.js"}, {"id": "a", "path": "x.png"}]
        assert parse_candidates("src", data) == [Candidate("b", "y.js"), Candidate("a", "x.png")]

    def test_candidates_extra_fields_ignored(self):
        data = [{"id": "a", "path": "x.png", "name": "whatever"}]
        assert parse_candidates("src", data) == [Candidate("a", "x.png")]

    @pytest.mark.parametrize(
        "data",
        [
            {"id": "a", "path": "x"},
            [{"id": "a"}],
            [{"path": "x.png"}],
            [{"id": "", "path": "x.png"}],
            [{"id": "a", "path": None}],
        ],
    )
    def test_malformed_candidates(self, data):
        with pytest.raises(DatasetLoadError) as exc_info:
            parse_candidates("src", data)
        assert exc_info.value.source == "src"

    def test_metadata_partial_fields(self):
        data = {
            "a": {"original_name": "Alpha", "extension_category": "Tools", "overview": "A"},
            "b": {"overview": "only overview"},
            "c": {},
        }
        meta = parse_metadata("src", data)
        assert meta["a"] == MetadataRecord("Alpha", "Tools", "A")
        assert meta["b"] == MetadataRecord(overview="only overview")
        assert meta["c"] == MetadataRecord()

    def test_metadata_must_be_mapping(self):
        with pytest.raises(DatasetLoadError):
            parse_metadata("src", [{"original_name": "x"}])

    def test_metadata_numeric_field_coerced(self):
        data = {"a": {"original_name": "Alpha"}, "b": {"overview": 42}}
        meta = parse_metadata("src", data)
        assert meta["a"].display_name == "Alpha"
        assert meta["b"].overview == "42"

    @pytest.mark.parametrize("bad", [None, "just a string", [1, 2], {"overview": {"nested": True}}])
    def test_metadata_bad_record_skipped(self, bad):
        meta = parse_metadata("src", {"a": {"original_name": "Alpha"}, "b": bad})
        assert meta == {"a": MetadataRecord(display_name="Alpha")}


class TestLoadFromFile:
    @pytest.mark.asyncio
    async def test_roundtrip_files(self, dataset_files):
        cand, meta = dataset_files([{"id": "a", "path": "x.png"}], {"a": {"original_name": "Alpha"}})

        assert await load_candidates(cand) == [Candidate("a", "x.png")]
        assert (await load_metadata(meta))["a"].display_name == "Alpha"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(DatasetLoadError):
            await load_json(str(tmp_path / "nope.json"))

    @pytest.mark.asyncio
    async def test_invalid_json(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        with pytest.raises(DatasetLoadError) as exc_info:
            await load_json(str(bad))
        assert "invalid JSON" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_invalid_utf8(self, tmp_path):
        bad = tmp_path / "extension_ids.json"
        bad.write_bytes(b'[{"id": "\xff\xfe", "path": "x.png"}]')
        with pytest.raises(DatasetLoadError) as exc_info:
            await load_json(str(bad))
        assert "UTF-8" in exc_info.value.reason


class TestLoadFromUrl:
    @pytest.mark.asyncio
    async def test_success(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/extension_ids.json"
            return httpx.Response(200, json=[{"id": "a", "path": "x.png"}])

        async with _client(handler) as client:
            result = await load_candidates("http://example.test/extension_ids.json", client)
        assert result == [Candidate("a", "x.png")]

    @pytest.mark.asyncio
    async def test_http_404(self):
        async with _client(lambda request: httpx.Response(404)) as client:
            with pytest.raises(DatasetLoadError) as exc_info:
                await load_json("http://example.test/extension_ids.json", client)
        assert exc_info.value.reason == "404"
        assert "Unable to load dataset from http://example.test/extension_ids.json: 404" == str(
            exc_info.value
        )

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(DatasetLoadError) as exc_info:
                await load_json("https://example.test/meta.json", client)
        assert "ConnectError" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_invalid_json_body(self):
        async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(DatasetLoadError):
                await load_json("http://example.test/meta.json", client)
