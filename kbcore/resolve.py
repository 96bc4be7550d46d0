"""Resolving full, bare or prefix identifiers to records."""

from __future__ import annotations

from collections.abc import Sequence

from kbcore.errors import AmbiguousIdError, RecordNotFoundError
from kbcore.model import ExpertiseRecord


def resolve_record_id(
    records: Sequence[ExpertiseRecord], identifier: str
) -> tuple[int, ExpertiseRecord]:
    """Find a record by ``mx-abc123``, ``abc123`` or a unique prefix such as ``abc``.

    Returns (index, record); raises RecordNotFoundError or AmbiguousIdError.
    """
    full_id = f"mx-{identifier.removeprefix('mx-')}"

    for index, record in enumerate(records):
        if record.id == full_id:
            return index, record

    matches = [
        (index, record)
        for index, record in enumerate(records)
        if record.id is not None and record.id.startswith(full_id)
    ]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise RecordNotFoundError(identifier)
    ids = ", ".join(record.id for _, record in matches if record.id is not None)
    raise AmbiguousIdError(identifier, len(matches), ids)