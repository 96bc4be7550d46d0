"""Deterministic record identifiers."""

from __future__ import annotations

import hashlib

from kbcore.model import ExpertiseRecord


def generate_record_id(record: ExpertiseRecord) -> str:
    """Return ``mx-`` plus the first 6 hex chars of SHA-256 over type and key field."""
    key = f"{record.record_type.value}:{record.unique_key}"
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return f"mx-{digest[:6]}"