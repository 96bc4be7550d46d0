"""Selecting records by type, classification or file, and spotting duplicates."""

from __future__ import annotations

from collections.abc import Sequence

from kbcore.model import Classification, ExpertiseRecord, RecordType


def filter_by_type(
    records: Sequence[ExpertiseRecord], record_type: RecordType
) -> list[ExpertiseRecord]:
    return [r for r in records if r.record_type == record_type]


def filter_by_classification(
    records: Sequence[ExpertiseRecord], classification: Classification
) -> list[ExpertiseRecord]:
    return [r for r in records if r.classification == classification]


def filter_by_file(records: Sequence[ExpertiseRecord], file: str) -> list[ExpertiseRecord]:
    """Records whose ``files`` contain ``file`` as a case-insensitive substring."""
    needle = file.lower()
    return [
        r
        for r in records
        if r.files is not None and any(needle in f.lower() for f in r.files)
    ]


def find_duplicate(
    existing: Sequence[ExpertiseRecord], new_record: ExpertiseRecord
) -> tuple[int, ExpertiseRecord] | None:
    """Return (index, record) of the first record of the same type and key, if any."""
    for index, record in enumerate(existing):
        if (
            record.record_type == new_record.record_type
            and record.unique_key == new_record.unique_key
        ):
            return index, record
    return None