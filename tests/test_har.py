"""Tests for the har module."""

import json

import pytest

from agenterra.errors import ParseError, SpecLoadError
from agenterra.har import HarContext, HarOperation


def _har(*requests) -> dict:
    return {"log": {"entries": [{"request": {"method": m, "url": u}} for m, u in requests]}}


class TestHarContext:
    """Test HAR loading and operation extraction."""

    def test_unique_operations(self, tmp_path):
        path = tmp_path / "sample.har"
        path.write_text(json.dumps(_har(
            ("GET", "https://api.example.com/api/items?page=1"),
            ("post", "https://api.example.com/api/items"),
            ("GET", "https://api.example.com/api/items?page=2"),
        )))
        ops = HarContext.from_file(path).unique_operations()
        assert ops == [
            HarOperation(method="GET", path="/api/items"),
            HarOperation(method="POST", path="/api/items"),
        ]

    def test_skips_unparseable_urls(self):
        ctx = HarContext(_har(("GET", "not a url"), ("GET", "https://x.example.com/"))["log"]["entries"])
        assert ctx.unique_operations() == [HarOperation(method="GET", path="/")]

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "bad.har"
        path.write_text("{")
        with pytest.raises(ParseError, match="bad.har"):
            HarContext.from_file(path)

    def test_missing_entries(self, tmp_path):
        path = tmp_path / "empty.har"
        path.write_text(json.dumps({"log": {}}))
        with pytest.raises(ParseError, match="log.entries"):
            HarContext.from_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(SpecLoadError):
            HarContext.from_file(tmp_path / "nope.har")
