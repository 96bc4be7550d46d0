"""Append-only JSONL log of changes made to records."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from kbcore.access_log import (
    _append_line,
    _format_timestamp,
    _parse_timestamp,
    _read_json_lines,
    _required,
    _to_json_line,
)
from kbcore.config import get_kb_dir
from kbcore.errors import ValidationError

CHANGELOG_FILE = "changelog.jsonl"


@dataclass
class ChangelogEntry:
    """One change to a record: what was done, where, and optionally the field diff."""

    action: str
    domain: str
    entry_id: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str | None = None
    summary: str | None = None
    diff: dict[str, tuple[str, str]] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.session_id is not None:
            data["session_id"] = self.session_id
        data["timestamp"] = _format_timestamp(self.timestamp)
        data["action"] = self.action
        data["domain"] = self.domain
        data["entry_id"] = self.entry_id
        if self.summary is not None:
            data["summary"] = self.summary
        if self.diff is not None:
            data["diff"] = {key: [old, new] for key, (old, new) in self.diff.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChangelogEntry:
        if not isinstance(data, dict):
            raise ValidationError("changelog entry must be an object")
        raw_diff = data.get("diff")
        diff = None
        if raw_diff is not None:
            if not isinstance(raw_diff, dict):
                raise ValidationError("diff must be an object")
            diff = {}
            for key, pair in raw_diff.items():
                if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                    raise ValidationError(f'diff for "{key}" must be a pair')
                diff[key] = (pair[0], pair[1])
        return cls(
            session_id=data.get("session_id"),
            timestamp=_parse_timestamp(_required(data, "timestamp")),
            action=_required(data, "action"),
            domain=_required(data, "domain"),
            entry_id=_required(data, "entry_id"),
            summary=data.get("summary"),
            diff=diff,
        )


@dataclass
class ChangelogFilter:
    """Criteria for selecting changelog entries; unset fields match everything."""

    session_id: str | None = None
    domain: str | None = None
    action: str | None = None

    def matches(self, entry: ChangelogEntry) -> bool:
        return (
            (self.session_id is None or entry.session_id == self.session_id)
            and (self.domain is None or entry.domain == self.domain)
            and (self.action is None or entry.action == self.action)
        )


def _changelog_path(cwd: str | os.PathLike) -> Path:
    return get_kb_dir(cwd) / CHANGELOG_FILE


def append(cwd: str | os.PathLike, entry: ChangelogEntry) -> None:
    """Add ``entry`` as one line at the end of the changelog."""
    _append_line(_changelog_path(cwd), _to_json_line(entry.to_dict()))


def query_changelog(
    cwd: str | os.PathLike, filters: ChangelogFilter | None = None
) -> list[ChangelogEntry]:
    """Entries in log order that match ``filters``; empty when there is no changelog."""
    filters = filters or ChangelogFilter()
    entries = (ChangelogEntry.from_dict(row) for row in _read_json_lines(_changelog_path(cwd)))
    return [entry for entry in entries if filters.matches(entry)]