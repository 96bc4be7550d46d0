"""Finding records that mention file paths which no longer exist."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from kbcore import config
from kbcore.model import ExpertiseRecord
from kbcore.records_io import read_expertise_file

_PATH_RE = re.compile(
    r"""(?:^|[\s`"',(])([a-zA-Z0-9_.*][\w.*/-]*\.[a-zA-Z0-9]+)(?:[\s`"',):]|\Z)"""
)


@dataclass
class CheckResult:
    """A record together with the path references that did not resolve."""

    domain: str
    entry_id: str
    entry_summary: str
    broken_refs: list[str] = field(default_factory=list)


def extract_paths(text: str) -> list[str]:
    """Path-like strings in ``text``: they contain a slash or are glob patterns."""
    paths = []
    for match in _PATH_RE.finditer(text):
        path = match.group(1)
        if "://" in path or path.startswith(("0.", "1.")):
            continue
        if "/" in path or "*" in path:
            paths.append(path)
    return paths


def _record_text(record: ExpertiseRecord) -> str:
    parts = [getattr(record, name) for name in record._text_fields]
    if record.files:
        parts.extend(record.files)
    if record.evidence is not None and record.evidence.file is not None:
        parts.append(record.evidence.file)
    return " ".join(parts)


def _record_summary(record: ExpertiseRecord) -> str:
    text = record.unique_key
    return f"{text[:77]}..." if len(text) > 80 else text


def check_references(
    cwd: str | os.PathLike, domain: str | None = None
) -> list[CheckResult]:
    """Records in ``domain`` (or every domain) whose literal path references are missing."""
    config.ensure_kb_dir(cwd)
    cfg = config.read_config(cwd)
    if domain is not None:
        config.ensure_domain_exists(cfg, domain)
        domains = [domain]
    else:
        domains = list(cfg.domains)

    root = Path(cwd)
    results = []
    for domain_name in domains:
        records = read_expertise_file(config.get_expertise_path(domain_name, cwd))
        for record in records:
            broken = [
                ref
                for ref in extract_paths(_record_text(record))
                if "*" not in ref and not (root / ref).exists()
            ]
            if broken:
                results.append(
                    CheckResult(
                        domain=domain_name,
                        entry_id=record.id or "(no id)",
                        entry_summary=_record_summary(record),
                        broken_refs=broken,
                    )
                )
    return results