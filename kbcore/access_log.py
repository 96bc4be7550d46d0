"""Append-only JSONL log of knowledge-base reads made by agents."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from kbcore.config import get_kb_dir
from kbcore.errors import ValidationError
from kbcore.health import _parse_rfc3339

LOG_FILE = "access.jsonl"


def _format_timestamp(value: datetime) -> str:
    """RFC 3339 in UTC with a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat()
    return text.removesuffix("+00:00") + "Z"


def _parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ValidationError(f"invalid timestamp: {value!r}")
    parsed = _parse_rfc3339(value)
    if parsed is None:
        raise ValidationError(f"invalid timestamp: {value!r}")
    return parsed.astimezone(timezone.utc)


def _required(data: dict[str, Any], key: str) -> Any:
    if data.get(key) is None:
        raise ValidationError(f'missing field "{key}"')
    return data[key]


def _to_json_line(data: dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":")) + "\n"


def _append_line(path: Path, line: str) -> None:
    with path.open("a", encoding="utf-8") as handle:
        handle.write(line)


def _read_json_lines(path: Path) -> list[dict[str, Any]]:
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    rows = []
    for line in content.splitlines():
        stripped = line.strip()
        if stripped:
            data = json.loads(stripped)
            if not isinstance(data, dict):
                raise ValidationError("log line must be an object")
            rows.append(data)
    return rows


@dataclass
class AccessLogEntry:
    """One tool invocation that read from the knowledge base."""

    session_id: str
    tool: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    domain: str | None = None
    query: str | None = None
    entry_id: str | None = None
    result_count: int | None = None
    signal: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "session_id": self.session_id,
            "timestamp": _format_timestamp(self.timestamp),
            "tool": self.tool,
        }
        optional = {
            "domain": self.domain,
            "query": self.query,
            "entry_id": self.entry_id,
            "result_count": self.result_count,
            "signal": self.signal,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccessLogEntry:
        if not isinstance(data, dict):
            raise ValidationError("access log entry must be an object")
        return cls(
            session_id=_required(data, "session_id"),
            timestamp=_parse_timestamp(_required(data, "timestamp")),
            tool=_required(data, "tool"),
            domain=data.get("domain"),
            query=data.get("query"),
            entry_id=data.get("entry_id"),
            result_count=data.get("result_count"),
            signal=data.get("signal"),
        )


@dataclass
class AccessLogFilter:
    """Criteria for selecting log entries; unset fields match everything."""

    session_id: str | None = None
    domain: str | None = None
    tool: str | None = None

    def matches(self, entry: AccessLogEntry) -> bool:
        return (
            (self.session_id is None or entry.session_id == self.session_id)
            and (self.domain is None or entry.domain == self.domain)
            and (self.tool is None or entry.tool == self.tool)
        )


def _log_path(cwd: str | os.PathLike) -> Path:
    return get_kb_dir(cwd) / LOG_FILE


def append(cwd: str | os.PathLike, entry: AccessLogEntry) -> None:
    """Add ``entry`` as one line at the end of the access log."""
    _append_line(_log_path(cwd), _to_json_line(entry.to_dict()))


def query_log(
    cwd: str | os.PathLike, filters: AccessLogFilter | None = None
) -> list[AccessLogEntry]:
    """Entries in log order that match ``filters``; empty when there is no log."""
    filters = filters or AccessLogFilter()
    entries = (AccessLogEntry.from_dict(row) for row in _read_json_lines(_log_path(cwd)))
    return [entry for entry in entries if filters.matches(entry)]