"""Markdown and compact rendering of records for priming agents and status output."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from kbcore.health import _parse_rfc3339
from kbcore.model import (
    Convention,
    Decision,
    ExpertiseRecord,
    Failure,
    Governance,
    Guide,
    Outcome,
    OutcomeStatus,
    Pattern,
    RecordType,
    Reference,
)


class PrimeFormat(str, Enum):
    """Output flavour for priming text."""

    MARKDOWN = "markdown"
    XML = "xml"
    PLAIN = "plain"

    def __str__(self) -> str:
        return self.value


@dataclass
class DomainStat:
    """Record count and last update time of one domain."""

    domain: str
    count: int
    last_updated: str | None = None


_OUTCOME_SYMBOLS = {
    OutcomeStatus.SUCCESS: "\u2713",
    OutcomeStatus.PARTIAL: "~",
    OutcomeStatus.FAILURE: "\u2717",
}

_ASCII_WHITESPACE = " \t\n\r\x0c"

_EMPTY_HINT = (
    "No expertise recorded yet. Use `kb add <domain>` to create a domain, "
    "then `kb record` to add records."
)


# ── Helpers ────────────────────────────────────────────────────────────────


def format_time_ago(recorded_at: str) -> str:
    """Human-readable age of an RFC 3339 timestamp, or ``unknown`` if unparsable."""
    parsed = _parse_rfc3339(recorded_at)
    if parsed is None:
        return "unknown"
    diff = datetime.now(timezone.utc) - parsed
    mins = int(diff / timedelta(minutes=1))
    hours = int(diff / timedelta(hours=1))
    days = int(diff / timedelta(days=1))
    if mins < 1:
        return "just now"
    if mins < 60:
        return f"{mins}m ago"
    if hours < 24:
        return f"{hours}h ago"
    return f"{days}d ago"


def _format_evidence(record: ExpertiseRecord) -> str:
    evidence = record.evidence
    if evidence is None:
        return ""
    parts = [
        f"{label}: {value}"
        for label, value in (
            ("commit", evidence.commit),
            ("date", evidence.date),
            ("issue", evidence.issue),
            ("file", evidence.file),
        )
        if value is not None
    ]
    return f" [{', '.join(parts)}]" if parts else ""


def _format_outcome(outcomes: Sequence[Outcome] | None) -> str:
    if not outcomes:
        return ""
    latest = outcomes[-1]
    parts = [_OUTCOME_SYMBOLS[latest.status]]
    if latest.duration is not None:
        parts.append(f"{latest.duration}ms")
    if latest.agent is not None:
        parts.append(f"@{latest.agent}")
    if len(outcomes) > 1:
        parts.append(f"({len(outcomes)}x)")
    return f" [{' '.join(parts)}]"


def format_links(record: ExpertiseRecord) -> str:
    """`` [relates to: ...; supersedes: ...]`` or an empty string."""
    parts = []
    if record.relates_to:
        parts.append(f"relates to: {', '.join(record.relates_to)}")
    if record.supersedes:
        parts.append(f"supersedes: {', '.join(record.supersedes)}")
    return f" [{'; '.join(parts)}]" if parts else ""


def format_record_meta(record: ExpertiseRecord, full: bool) -> str:
    """Links only, or with ``full`` also classification, evidence and tags."""
    if not full:
        return format_links(record)
    parts = [f"({record.classification}){_format_evidence(record)}"]
    if record.tags:
        parts.append(f"[tags: {', '.join(record.tags)}]")
    return f" {' '.join(parts)}{format_links(record)}"


def id_tag(record: ExpertiseRecord) -> str:
    return f"[{record.id}] " if record.id is not None else ""


def truncate(text: str, max_len: int) -> str:
    """Shorten to the first sentence within ``max_len``, else cut and add ``...``."""
    if len(text) <= max_len:
        return text
    for i, char in enumerate(text[:max_len]):
        if char in ".!?" and i + 1 < len(text) and text[i + 1] in _ASCII_WHITESPACE:
            return text[: i + 1]
    return f"{text[:max_len]}..."


def get_record_summary(record: ExpertiseRecord) -> str:
    """A short one-line summary of a record."""
    if isinstance(record, Convention):
        return truncate(record.content, 60)
    if isinstance(record, Failure):
        return truncate(record.description, 60)
    return record.unique_key


def _files_suffix(files: list[str] | None) -> str:
    return f" ({', '.join(files)})" if files else ""


# ── Compact format ─────────────────────────────────────────────────────────


def compact_line(record: ExpertiseRecord) -> str:
    """One bullet line summarising a record, with id, latest outcome and links."""
    tail = (
        (f" ({record.id})" if record.id is not None else "")
        + _format_outcome(record.outcomes)
        + format_links(record)
    )
    if isinstance(record, Convention):
        return f"- [convention] {truncate(record.content, 100)}{tail}"
    if isinstance(record, Pattern):
        return (
            f"- [pattern] {record.name}: {truncate(record.description, 100)}"
            f"{_files_suffix(record.files)}{tail}"
        )
    if isinstance(record, Failure):
        return (
            f"- [failure] {truncate(record.description, 100)} \u2192 "
            f"{truncate(record.resolution, 100)}{tail}"
        )
    if isinstance(record, Decision):
        return f"- [decision] {record.title}: {truncate(record.rationale, 100)}{tail}"
    if isinstance(record, Reference):
        if record.files:
            detail = f": {', '.join(record.files)}"
        else:
            detail = f": {truncate(record.description, 100)}"
        return f"- [reference] {record.name}{detail}{tail}"
    if isinstance(record, Guide):
        return f"- [guide] {record.name}: {truncate(record.description, 100)}{tail}"
    raise TypeError(f"unsupported record: {type(record).__name__}")


# ── Markdown format ────────────────────────────────────────────────────────


def _convention_line(r: Convention, full: bool) -> str:
    return f"- {id_tag(r)}{r.content}{format_record_meta(r, full)}"


def _named_with_files_line(r: Pattern | Reference, full: bool) -> str:
    return (
        f"- {id_tag(r)}**{r.name}**: {r.description}{_files_suffix(r.files)}"
        f"{format_record_meta(r, full)}"
    )


def _failure_line(r: Failure, full: bool) -> str:
    return (
        f"- {id_tag(r)}{r.description}{format_record_meta(r, full)}"
        f"\n  \u2192 {r.resolution}"
    )


def _decision_line(r: Decision, full: bool) -> str:
    return f"- {id_tag(r)}**{r.title}**: {r.rationale}{format_record_meta(r, full)}"


def _guide_line(r: Guide, full: bool) -> str:
    return f"- {id_tag(r)}**{r.name}**: {r.description}{format_record_meta(r, full)}"


_SECTIONS: tuple[tuple[RecordType, str, Callable[..., str]], ...] = (
    (RecordType.CONVENTION, "Conventions", _convention_line),
    (RecordType.PATTERN, "Patterns", _named_with_files_line),
    (RecordType.FAILURE, "Known Failures", _failure_line),
    (RecordType.DECISION, "Decisions", _decision_line),
    (RecordType.REFERENCE, "References", _named_with_files_line),
    (RecordType.GUIDE, "Guides", _guide_line),
)


def _header(domain: str, count: int, last_updated: str | None) -> str:
    updated = f", updated {format_time_ago(last_updated)}" if last_updated is not None else ""
    return f"## {domain} ({count} records{updated})"


def format_domain_expertise(
    domain: str,
    records: Sequence[ExpertiseRecord],
    last_updated: str | None = None,
    full: bool = False,
) -> str:
    """A markdown section for a domain with one sub-section per record type."""
    sections = []
    for record_type, title, line_fn in _SECTIONS:
        matching = [r for r in records if r.record_type == record_type]
        if matching:
            sections.append("\n".join([f"### {title}", *(line_fn(r, full) for r in matching)]))
    lines = [_header(domain, len(records), last_updated), "", "\n\n".join(sections)]
    return "\n".join(lines)


def format_domain_expertise_compact(
    domain: str, records: Sequence[ExpertiseRecord], last_updated: str | None = None
) -> str:
    """A header line followed by one compact line per record."""
    lines = [_header(domain, len(records), last_updated)]
    lines.extend(compact_line(r) for r in records)
    return "\n".join(lines)


def format_prime_output(domain_sections: Sequence[str]) -> str:
    """The full priming document: rules, domain sections and usage guidance."""
    lines = [
        "# Project Expertise (via KB)",
        "",
        "> **Context Recovery**: Run `kb prime` after compaction, clear, or new session",
        "",
        "## Rules",
        "",
        "- **Record learnings**: When you discover a pattern, fix a bug, or make a design "
        "decision — record it with `kb record`",
        "- **Check expertise first**: Before implementing, check if relevant expertise "
        "exists with `kb search` or `kb prime --context`",
        "- **Targeted priming**: Use `kb prime --files src/foo.ts` to load only records "
        "relevant to specific files",
        "- **Do NOT** store expertise in code comments, markdown files, or memory tools "
        "— use `kb record`",
        "- **Do NOT** record implementation details discoverable from code — record which "
        "approach is preferred and why",
        "- **Do NOT** hardcode file paths or line numbers that will change — use stable "
        "references (doc files, module names, config keys)",
        "- Run `kb doctor` if you are unsure whether records are healthy",
        "",
    ]
    if domain_sections:
        lines.append("\n\n".join(domain_sections))
    else:
        lines.append(_EMPTY_HINT)
    lines.append("")

    lines += [
        "",
        "## Recording New Learnings",
        "",
        "When you discover a pattern, convention, failure, or make an architectural decision:",
        "",
        "```bash",
        'kb record <domain> --type convention "description"',
        'kb record <domain> --type failure --description "..." --resolution "..."',
        'kb record <domain> --type decision --title "..." --rationale "..."',
        'kb record <domain> --type pattern --name "..." --description "..." --files "..."',
        'kb record <domain> --type reference --name "..." --description "..." --files "..."',
        'kb record <domain> --type guide --name "..." --description "..."',
        "```",
        "",
        "**Link evidence** to records when available:",
        "",
        "```bash",
        'kb record <domain> --type pattern --name "..." --description "..." '
        "--evidence-commit abc123",
        'kb record <domain> --type decision --title "..." --rationale "..." '
        "--evidence-bead beads-xxx",
        "```",
        "",
        "**Batch record** multiple records at once:",
        "",
        "```bash",
        "kb record <domain> --batch records.json  # from file",
        "echo '[{\"type\":\"convention\",\"content\":\"...\"}]' | kb record <domain> "
        "--stdin  # from stdin",
        "```",
        "",
        "## Searching Expertise",
        "",
        "Use `kb search` to find relevant records across all domains. Results are ranked "
        "by relevance (BM25):",
        "",
        "```bash",
        'kb search "file locking"              # multi-word queries ranked by relevance',
        'kb search "atomic" --domain cli        # limit to a specific domain',
        'kb search "ESM" --type convention      # filter by record type',
        'kb search "concurrency" --tag safety   # filter by tag',
        "```",
        "",
        "Search before implementing — existing expertise may already cover your use case.",
        "",
        "## Domain Maintenance",
        "",
        "When a domain grows large, compact it to keep expertise focused:",
        "",
        "```bash",
        "kb compact --auto --dry-run     # preview what would be merged",
        "kb compact --auto               # merge same-type record groups",
        "```",
        "",
        "Use `kb diff` to review what expertise changed:",
        "",
        "```bash",
        "kb diff HEAD~3                  # see record changes over last 3 commits",
        "```",
        "",
        "## Session End",
        "",
        "**IMPORTANT**: Before ending your session, record what you learned and sync:",
        "",
        "```",
        "[ ] kb learn          # see what files changed — decide what to record",
        "[ ] kb record ...     # record learnings (see above)",
        "[ ] kb sync           # validate, stage, and commit .kb/ changes",
        "```",
        "",
        "Do NOT skip this. Unrecorded learnings are lost for the next session.",
    ]
    return "\n".join(lines)


def format_prime_output_compact(domain_sections: Sequence[str]) -> str:
    """A short priming document: domain sections and a quick reference."""
    lines = ["# Project Expertise (via KB)", ""]
    lines.append("\n\n".join(domain_sections) if domain_sections else _EMPTY_HINT)
    lines += [
        "",
        "## Quick Reference",
        "",
        '- `kb search "query"` \u2014 find relevant records before implementing',
        "- `kb prime --files src/foo.ts` \u2014 load records for specific files",
        "- `kb prime --context` \u2014 load records for git-changed files",
        '- `kb record <domain> --type <type> --description "..."`',
        "  - Types: `convention`, `pattern`, `failure`, `decision`, `reference`, `guide`",
        "  - Evidence: `--evidence-commit <sha>`, `--evidence-bead <id>`",
        "- `kb doctor` \u2014 check record health",
    ]
    return "\n".join(lines)


# ── Session end reminder ───────────────────────────────────────────────────


_REMINDERS = {
    PrimeFormat.XML: (
        '<session_close_protocol priority="critical">',
        "  <instruction>Before saying done or complete, you MUST run this checklist:"
        "</instruction>",
        "  <checklist>",
        "    <step>kb learn — see what files changed, decide what to record</step>",
        "    <step>kb record &lt;domain&gt; --type &lt;type&gt; --description "
        "&quot;...&quot;</step>",
        "    <step>kb sync — validate, stage, and commit .kb/ changes</step>",
        "  </checklist>",
        "  <warning>NEVER skip this. Unrecorded learnings are lost for the next session."
        "</warning>",
        "</session_close_protocol>",
    ),
    PrimeFormat.PLAIN: (
        "=== SESSION CLOSE PROTOCOL (CRITICAL) ===",
        "",
        'Before saying "done" or "complete", you MUST run this checklist:',
        "",
        "[ ] 1. kb learn              (see what files changed — decide what to record)",
        '[ ] 2. kb record <domain> --type <type> --description "..."',
        "[ ] 3. kb sync               (validate, stage, and commit .kb/ changes)",
        "",
        "NEVER skip this. Unrecorded learnings are lost for the next session.",
    ),
    PrimeFormat.MARKDOWN: (
        "# \U0001F6A8 SESSION CLOSE PROTOCOL \U0001F6A8",
        "",
        '**CRITICAL**: Before saying "done" or "complete", you MUST run this checklist:',
        "",
        "```",
        "[ ] 1. kb learn              # see what files changed — decide what to record",
        '[ ] 2. kb record <domain> --type <type> --description "..."',
        "[ ] 3. kb sync               # validate, stage, and commit .kb/ changes",
        "```",
        "",
        "**NEVER skip this.** Unrecorded learnings are lost for the next session.",
    ),
}


def get_session_end_reminder(fmt: PrimeFormat) -> str:
    """The checklist an agent must run before ending a session, in ``fmt``."""
    return "\n".join(_REMINDERS[PrimeFormat(fmt)])


# ── Status output ──────────────────────────────────────────────────────────


def format_status_output(stats: Sequence[DomainStat], governance: Governance) -> str:
    """Per-domain record counts with governance warnings."""
    lines = ["KB Status", "============", ""]
    if not stats:
        lines.append("No domains configured. Run `kb add <domain>` to get started.")
        return "\n".join(lines)

    for stat in stats:
        updated = format_time_ago(stat.last_updated) if stat.last_updated is not None else "never"
        if stat.count >= governance.hard_limit:
            status = " \u26A0 OVER HARD LIMIT \u2014 must decompose"
        elif stat.count >= governance.warn_entries:
            status = " \u26A0 consider splitting domain"
        elif stat.count >= governance.max_entries:
            status = " \u2014 approaching limit"
        else:
            status = ""
        lines.append(f"  {stat.domain}: {stat.count} records (updated {updated}){status}")
    return "\n".join(lines)