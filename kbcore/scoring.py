"""Outcome counts and confirmation-based scoring of records."""

from __future__ import annotations

from collections.abc import Iterable

from kbcore.model import ExpertiseRecord, OutcomeStatus


def _count(record: ExpertiseRecord, status: OutcomeStatus) -> int:
    return sum(1 for o in record.outcomes or () if o.status == status)


def get_success_count(record: ExpertiseRecord) -> int:
    return _count(record, OutcomeStatus.SUCCESS)


def get_failure_count(record: ExpertiseRecord) -> int:
    return _count(record, OutcomeStatus.FAILURE)


def get_total_applications(record: ExpertiseRecord) -> int:
    return len(record.outcomes or ())


def get_success_rate(record: ExpertiseRecord) -> float:
    """Share of successful applications in [0, 1]; partial outcomes count half."""
    total = get_total_applications(record)
    if total == 0:
        return 0.0
    return compute_confirmation_score(record) / total


def compute_confirmation_score(record: ExpertiseRecord) -> float:
    """Success count plus half the partial count."""
    if not record.outcomes:
        return 0.0
    return get_success_count(record) + 0.5 * _count(record, OutcomeStatus.PARTIAL)


def apply_confirmation_boost(
    base_score: float, record: ExpertiseRecord, boost_factor: float
) -> float:
    score = compute_confirmation_score(record)
    if score == 0.0:
        return base_score
    return base_score * (1.0 + boost_factor * score)


def sort_by_confirmation_score(records: Iterable[ExpertiseRecord]) -> list[ExpertiseRecord]:
    """Return the records ordered by confirmation score, highest first (stable)."""
    return sorted(records, key=compute_confirmation_score, reverse=True)