"""Derive endpoint (method, path) pairs from recorded HTTP traffic.

Reads HAR (HTTP Archive) files as exported by browsers and proxies.
Only the request method and URL path of each entry are used.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from .errors import ParseError, SpecLoadError


@dataclass(frozen=True)
class HarOperation:
    method: str
    path: str


class HarContext:
    """Entries of a loaded HAR file."""

    def __init__(self, entries: list[dict[str, Any]]) -> None:
        self.entries = entries

    @classmethod
    def from_file(cls, path: str | Path) -> HarContext:
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SpecLoadError(f"Failed to read HAR {path}: {exc}") from exc
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Failed to parse HAR {path}: {exc}") from exc

        log = data.get("log") if isinstance(data, dict) else None
        entries = log.get("entries") if isinstance(log, dict) else None
        if not isinstance(entries, list):
            raise ParseError(f"Failed to parse HAR {path}: missing 'log.entries'")
        return cls([e for e in entries if isinstance(e, dict)])

    def unique_operations(self) -> list[HarOperation]:
        """Unique (METHOD, path) pairs in first-seen order."""
        ops: list[HarOperation] = []
        seen: set[HarOperation] = set()
        for entry in self.entries:
            request = entry.get("request")
            if not isinstance(request, dict):
                continue
            method = request.get("method")
            url = request.get("url")
            if not isinstance(method, str) or not isinstance(url, str):
                continue
            parsed = urlparse(url)
            if not parsed.scheme or not parsed.netloc:
                continue
            op = HarOperation(method=method.upper(), path=parsed.path or "/")
            if op not in seen:
                seen.add(op)
                ops.append(op)
        return ops
