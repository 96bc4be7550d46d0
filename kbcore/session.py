"""Agent work sessions stored as JSON files under .kb/sessions/."""

from __future__ import annotations

import hashlib
import json
import os
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from kbcore.access_log import _format_timestamp, _parse_timestamp, _required
from kbcore.config import get_kb_dir
from kbcore.errors import RecordNotFoundError, ValidationError


@dataclass
class Session:
    """A labelled span of agent work; open until ``ended_at`` is set."""

    id: str
    label: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "started_at": _format_timestamp(self.started_at),
        }
        if self.ended_at is not None:
            data["ended_at"] = _format_timestamp(self.ended_at)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        if not isinstance(data, dict):
            raise ValidationError("session must be an object")
        ended = data.get("ended_at")
        return cls(
            id=_required(data, "id"),
            label=data.get("label"),
            started_at=_parse_timestamp(_required(data, "started_at")),
            ended_at=_parse_timestamp(ended) if ended is not None else None,
        )


def _sessions_dir(cwd: str | os.PathLike) -> Path:
    return get_kb_dir(cwd) / "sessions"


def _session_path(cwd: str | os.PathLike, session_id: str) -> Path:
    return _sessions_dir(cwd) / f"{session_id}.json"


def _generate_session_id() -> str:
    seed = time.time_ns().to_bytes(8, "little", signed=True) + secrets.token_bytes(8)
    return f"kb-{hashlib.sha256(seed).hexdigest()[:6]}"


def _write(cwd: str | os.PathLike, session: Session) -> None:
    text = json.dumps(session.to_dict(), indent=2, ensure_ascii=False)
    _session_path(cwd, session.id).write_text(text, encoding="utf-8")


def start_session(cwd: str | os.PathLike, label: str | None = None) -> Session:
    """Create, save and return a new open session."""
    _sessions_dir(cwd).mkdir(parents=True, exist_ok=True)
    session = Session(id=_generate_session_id(), label=label)
    _write(cwd, session)
    return session


def get_session(cwd: str | os.PathLike, session_id: str) -> Session:
    """Load a session; raises RecordNotFoundError when it does not exist."""
    try:
        content = _session_path(cwd, session_id).read_text(encoding="utf-8")
    except FileNotFoundError:
        raise RecordNotFoundError(session_id) from None
    return Session.from_dict(json.loads(content))


def _open_session(cwd: str | os.PathLike, session_id: str) -> Session:
    session = get_session(cwd, session_id)
    if session.ended_at is not None:
        raise ValidationError(f'Session "{session_id}" has already ended')
    return session


def resume_session(cwd: str | os.PathLike, session_id: str) -> Session:
    """Return a session that is still open; an ended one raises ValidationError."""
    return _open_session(cwd, session_id)


def end_session(cwd: str | os.PathLike, session_id: str) -> None:
    """Mark an open session as ended now."""
    session = _open_session(cwd, session_id)
    session.ended_at = datetime.now(timezone.utc)
    _write(cwd, session)


def list_sessions(cwd: str | os.PathLike) -> list[Session]:
    """All saved sessions, most recently started first."""
    directory = _sessions_dir(cwd)
    if not directory.is_dir():
        return []
    sessions = [
        Session.from_dict(json.loads(path.read_text(encoding="utf-8")))
        for path in directory.iterdir()
        if path.suffix == ".json"
    ]
    sessions.sort(key=lambda s: s.started_at, reverse=True)
    return sessions