"""Reading and appending records in a domain's JSONL expertise file."""

from __future__ import annotations

import json
import os
from pathlib import Path

from kbcore.errors import ValidationError
from kbcore.ids import generate_record_id
from kbcore.lock import file_lock
from kbcore.model import ExpertiseRecord


def read_expertise_file(path: str | os.PathLike) -> list[ExpertiseRecord]:
    """All records in the file, in file order; an absent file holds none."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    records = []
    for number, line in enumerate(content.splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"line {number}: {exc}") from exc
        records.append(ExpertiseRecord.from_dict(data))
    return records


def append_record(path: str | os.PathLike, record: ExpertiseRecord) -> ExpertiseRecord:
    """Give ``record`` an id if it has none and append it as one line, under the file lock."""
    if record.id is None:
        record.id = generate_record_id(record)
    line = json.dumps(record.to_dict(), ensure_ascii=False, separators=(",", ":")) + "\n"
    with file_lock(path):
        with Path(path).open("a", encoding="utf-8") as handle:
            handle.write(line)
    return record