"""Staleness checks and health metrics for a domain's records."""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from kbcore.model import Classification, ExpertiseRecord, RecordType, ShelfLife

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"([Zz]|[+-]\d{2}:\d{2})"
)


def _parse_rfc3339(text: str) -> datetime | None:
    match = _RFC3339.fullmatch(text)
    if match is None:
        return None
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction, offset = match.group(7), match.group(8)
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    if offset in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = 1 if offset[0] == "+" else -1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    try:
        return datetime(year, month, day, hour, minute, second, micros, tzinfo=tz)
    except ValueError:
        return None


@dataclass
class DomainHealth:
    """Summary metrics for the records of one domain."""

    governance_utilization: int
    stale_count: int
    type_distribution: dict[RecordType, int] = field(default_factory=dict)
    classification_distribution: dict[Classification, int] = field(default_factory=dict)
    oldest_timestamp: str | None = None
    newest_timestamp: str | None = None


def is_record_stale(record: ExpertiseRecord, now: datetime, shelf_life: ShelfLife) -> bool:
    """True when a non-foundational record is older than its shelf life in whole days."""
    if record.classification == Classification.FOUNDATIONAL:
        return False
    recorded = _parse_rfc3339(record.recorded_at)
    if recorded is None:
        return False
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    age_days = int((now - recorded) / timedelta(days=1))
    if record.classification == Classification.TACTICAL:
        return age_days > shelf_life.tactical
    return age_days > shelf_life.observational


def calculate_domain_health(
    records: Sequence[ExpertiseRecord], max_entries: int, shelf_life: ShelfLife
) -> DomainHealth:
    now = datetime.now(timezone.utc)
    timestamps = [r.recorded_at for r in records]
    utilization = (
        math.floor(len(records) / max_entries * 100.0 + 0.5) if max_entries > 0 else 0
    )
    return DomainHealth(
        governance_utilization=utilization,
        stale_count=sum(1 for r in records if is_record_stale(r, now, shelf_life)),
        type_distribution=dict(Counter(r.record_type for r in records)),
        classification_distribution=dict(Counter(r.classification for r in records)),
        oldest_timestamp=min(timestamps) if timestamps else None,
        newest_timestamp=max(timestamps) if timestamps else None,
    )