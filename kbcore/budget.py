"""Fitting records from several domains into a token budget by priority."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from kbcore.health import _parse_rfc3339
from kbcore.model import Classification, ExpertiseRecord, RecordType
from kbcore.scoring import compute_confirmation_score

DEFAULT_BUDGET = 4000

TYPE_PRIORITY = (
    RecordType.CONVENTION,
    RecordType.DECISION,
    RecordType.PATTERN,
    RecordType.GUIDE,
    RecordType.FAILURE,
    RecordType.REFERENCE,
)

CLASSIFICATION_PRIORITY = (
    Classification.FOUNDATIONAL,
    Classification.TACTICAL,
    Classification.OBSERVATIONAL,
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class DomainRecords:
    """The records shown for one domain."""

    domain: str
    records: list[ExpertiseRecord] = field(default_factory=list)


@dataclass
class BudgetResult:
    """Records kept per domain and how many were dropped."""

    kept: list[DomainRecords]
    dropped_count: int
    dropped_domain_count: int


def estimate_tokens(text: str) -> int:
    """Rough token count: UTF-8 bytes divided by four, rounded up."""
    return (len(text.encode("utf-8")) + 3) // 4


def _priority(order: tuple, value) -> int:
    return order.index(value) if value in order else len(order)


def _sort_key(record: ExpertiseRecord) -> tuple[int, int, int, int]:
    parsed = _parse_rfc3339(record.recorded_at)
    millis = (parsed - _EPOCH) // timedelta(milliseconds=1) if parsed is not None else 0
    score = compute_confirmation_score(record)
    return (
        _priority(TYPE_PRIORITY, record.record_type),
        _priority(CLASSIFICATION_PRIORITY, record.classification),
        -int(score * 1000.0),
        -millis,
    )


def apply_budget(
    domains: Sequence[DomainRecords],
    budget: int,
    format_record: Callable[[ExpertiseRecord, str], str],
) -> BudgetResult:
    """Keep the highest-priority records whose formatted text fits in ``budget`` tokens.

    Priority is record type, then classification, confirmation score and recency.
    Kept records stay in their original domain and order.
    """
    tagged = [(d.domain, r) for d in domains for r in d.records]
    tagged.sort(key=lambda item: _sort_key(item[1]))

    used = 0
    kept_indices: set[int] = set()
    for index, (domain, record) in enumerate(tagged):
        cost = estimate_tokens(format_record(record, domain))
        if used + cost <= budget:
            used += cost
            kept_indices.add(index)

    positions: dict[tuple[str, int], int] = {}
    for index, (domain, record) in enumerate(tagged):
        positions.setdefault((domain, id(record)), index)

    kept: list[DomainRecords] = []
    dropped_domains: set[str] = set()
    for group in domains:
        kept_records = []
        for record in group.records:
            if positions[(group.domain, id(record))] in kept_indices:
                kept_records.append(record)
            else:
                dropped_domains.add(group.domain)
        if kept_records:
            kept.append(DomainRecords(domain=group.domain, records=kept_records))
        elif group.records:
            dropped_domains.add(group.domain)

    return BudgetResult(
        kept=kept,
        dropped_count=len(tagged) - len(kept_indices),
        dropped_domain_count=len(dropped_domains),
    )


def format_budget_summary(dropped_count: int, dropped_domain_count: int) -> str:
    """The line that tells how many records were left out."""
    domain_part = ""
    if dropped_domain_count > 0:
        plural = "" if dropped_domain_count == 1 else "s"
        domain_part = f" across {dropped_domain_count} domain{plural}"
    plural = "" if dropped_count == 1 else "s"
    return (
        f"... and {dropped_count} more record{plural}{domain_part} "
        "(use --budget <n> to show more)"
    )