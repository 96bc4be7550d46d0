"""XML, plain-text and JSON renderings of records for priming agents."""

from __future__ import annotations

import json
from collections.abc import Sequence

from kbcore.formatting import _files_suffix, format_links, format_time_ago, id_tag
from kbcore.model import (
    Convention,
    Decision,
    ExpertiseRecord,
    Failure,
    Guide,
    Pattern,
    RecordType,
    Reference,
)


def xml_escape(s: str) -> str:
    """Escape ``&``, ``<`` and ``>`` for XML text."""
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _enum_text(value: object) -> str:
    return getattr(value, "value", value)


def _escaped_list(values: Sequence[str]) -> str:
    return ", ".join(xml_escape(v) for v in values)


# ── XML format ─────────────────────────────────────────────────────────────


def _xml_body(record: ExpertiseRecord) -> list[str]:
    if isinstance(record, Convention):
        return [f"    {xml_escape(record.content)}"]
    if isinstance(record, (Pattern, Reference)):
        lines = [
            f"    <name>{xml_escape(record.name)}</name>",
            f"    <description>{xml_escape(record.description)}</description>",
        ]
        if record.files:
            lines.append(f"    <files>{_escaped_list(record.files)}</files>")
        return lines
    if isinstance(record, Failure):
        return [
            f"    <description>{xml_escape(record.description)}</description>",
            f"    <resolution>{xml_escape(record.resolution)}</resolution>",
        ]
    if isinstance(record, Decision):
        return [
            f"    <title>{xml_escape(record.title)}</title>",
            f"    <rationale>{xml_escape(record.rationale)}</rationale>",
        ]
    if isinstance(record, Guide):
        return [
            f"    <name>{xml_escape(record.name)}</name>",
            f"    <description>{xml_escape(record.description)}</description>",
        ]
    raise TypeError(f"unsupported record: {type(record).__name__}")


def _xml_record(record: ExpertiseRecord) -> list[str]:
    type_str = _enum_text(record.record_type)
    id_attr = f' id="{xml_escape(record.id)}"' if record.id is not None else ""
    lines = [
        f'  <{type_str}{id_attr} classification="{_enum_text(record.classification)}">'
    ]
    lines.extend(_xml_body(record))

    if record.tags:
        lines.append(f"    <tags>{_escaped_list(record.tags)}</tags>")
    if record.relates_to:
        lines.append(f"    <relates_to>{', '.join(record.relates_to)}</relates_to>")
    if record.supersedes:
        lines.append(f"    <supersedes>{', '.join(record.supersedes)}</supersedes>")
    for outcome in record.outcomes or ():
        duration = f' duration="{outcome.duration}"' if outcome.duration is not None else ""
        agent = f' agent="{xml_escape(outcome.agent)}"' if outcome.agent is not None else ""
        content = xml_escape(outcome.test_results) if outcome.test_results is not None else ""
        lines.append(
            f'    <outcome status="{_enum_text(outcome.status)}"{duration}{agent}>'
            f"{content}</outcome>"
        )
    lines.append(f"  </{type_str}>")
    return lines


def format_domain_expertise_xml(
    domain: str, records: Sequence[ExpertiseRecord], last_updated: str | None = None
) -> str:
    """A ``<domain>`` element holding one element per record."""
    updated = (
        f' updated="{format_time_ago(last_updated)}"' if last_updated is not None else ""
    )
    lines = [f'<domain name="{xml_escape(domain)}" entries="{len(records)}"{updated}>']
    for record in records:
        lines.extend(_xml_record(record))
    lines.append("</domain>")
    return "\n".join(lines)


def format_prime_output_xml(domain_sections: Sequence[str]) -> str:
    """Wrap domain elements in an ``<expertise>`` element."""
    if domain_sections:
        body = "\n".join(domain_sections)
    else:
        body = (
            "  <empty>No expertise recorded yet. Use kb add and kb record to get "
            "started.</empty>"
        )
    return "\n".join(["<expertise>", body, "</expertise>"])


# ── Plain text format ──────────────────────────────────────────────────────


def _plain_convention(r: Convention) -> list[str]:
    return [f"  - {id_tag(r)}{r.content}{format_links(r)}"]


def _plain_named_with_files(r: Pattern | Reference) -> list[str]:
    return [
        f"  - {id_tag(r)}{r.name}: {r.description}{_files_suffix(r.files)}{format_links(r)}"
    ]


def _plain_failure(r: Failure) -> list[str]:
    return [
        f"  - {id_tag(r)}{r.description}{format_links(r)}",
        f"    Fix: {r.resolution}",
    ]


def _plain_decision(r: Decision) -> list[str]:
    return [f"  - {id_tag(r)}{r.title}: {r.rationale}{format_links(r)}"]


def _plain_guide(r: Guide) -> list[str]:
    return [f"  - {id_tag(r)}{r.name}: {r.description}{format_links(r)}"]


_PLAIN_SECTIONS = (
    (RecordType.CONVENTION, "Conventions:", _plain_convention),
    (RecordType.PATTERN, "Patterns:", _plain_named_with_files),
    (RecordType.FAILURE, "Known Failures:", _plain_failure),
    (RecordType.DECISION, "Decisions:", _plain_decision),
    (RecordType.REFERENCE, "References:", _plain_named_with_files),
    (RecordType.GUIDE, "Guides:", _plain_guide),
)


def format_domain_expertise_plain(
    domain: str, records: Sequence[ExpertiseRecord], last_updated: str | None = None
) -> str:
    """A plain-text section for a domain, grouped by record type."""
    updated = (
        f" (updated {format_time_ago(last_updated)})" if last_updated is not None else ""
    )
    lines = [f"[{domain}] {len(records)} records{updated}", ""]
    for record_type, title, line_fn in _PLAIN_SECTIONS:
        matching = [r for r in records if r.record_type == record_type]
        if matching:
            lines.append(title)
            for record in matching:
                lines.extend(line_fn(record))
            lines.append("")
    return "\n".join(lines).rstrip()


def format_prime_output_plain(domain_sections: Sequence[str]) -> str:
    """The plain-text priming document."""
    lines = ["Project Expertise (via KB)", "============================", ""]
    if domain_sections:
        lines.append("\n\n".join(domain_sections))
    else:
        lines.append(
            "No expertise recorded yet. Use `kb add <domain>` and `kb record` to get started."
        )
    return "\n".join(lines)


# ── MCP format ─────────────────────────────────────────────────────────────


def format_mcp_output(
    domains: Sequence[tuple[str, int, Sequence[ExpertiseRecord]]],
) -> str:
    """Compact JSON describing each domain with its record count and records."""
    payload = {
        "type": "expertise",
        "domains": [
            {
                "domain": domain,
                "entry_count": count,
                "records": [record.to_dict() for record in records],
            }
            for domain, count, records in domains
        ],
    }
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), sort_keys=True)