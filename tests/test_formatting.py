from datetime import datetime, timedelta, timezone

import pytest

from kbcore.formatting import (
    DomainStat,
    PrimeFormat,
    compact_line,
    format_domain_expertise,
    format_domain_expertise_compact,
    format_links,
    format_prime_output,
    format_prime_output_compact,
    format_record_meta,
    format_status_output,
    format_time_ago,
    get_record_summary,
    get_session_end_reminder,
    id_tag,
    truncate,
)
from kbcore.model import (
    Classification,
    Convention,
    Evidence,
    Failure,
    Governance,
    Outcome,
    OutcomeStatus,
    Pattern,
    Reference,
)

TS = "2024-01-01T00:00:00.000Z"


def _iso(delta: timedelta) -> str:
    return (datetime.now(timezone.utc) - delta).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def convention(content, **kwargs):
    return Convention(
        content=content, classification=Classification.TACTICAL, recorded_at=TS, **kwargs
    )


def pattern(name, files=None, **kwargs):
    return Pattern(
        name=name,
        description="desc",
        files=files,
        classification=Classification.FOUNDATIONAL,
        recorded_at=TS,
        **kwargs,
    )


def test_time_ago_unknown_for_garbage():
    assert format_time_ago("not a date") == "unknown"


def test_time_ago_just_now():
    assert format_time_ago(_iso(timedelta(seconds=5))) == "just now"


@pytest.mark.parametrize(
    "delta,suffix,low,high",
    [
        (timedelta(minutes=5), "m ago", 4, 6),
        (timedelta(hours=3), "h ago", 2, 4),
        (timedelta(days=2), "d ago", 1, 3),
    ],
)
def test_time_ago_units(delta, suffix, low, high):
    result = format_time_ago(_iso(delta))
    assert result.endswith(suffix)
    assert low <= int(result[: -len(suffix)]) <= high


def test_truncate_short_text_unchanged():
    assert truncate("short", 60) == "short"


def test_truncate_cuts_at_sentence():
    text = "Hello world. More text follows here and goes on"
    assert truncate(text, 20) == "Hello world."


def test_truncate_without_sentence_adds_ellipsis():
    text = "a" * 30
    result = truncate(text, 10)
    assert result == text[:10] + "..."


def test_record_summary():
    assert get_record_summary(pattern("Error Handling")) == "Error Handling"
    long = convention("x" * 100)
    summary = get_record_summary(long)
    assert summary.endswith("...")
    assert len(summary) == 63


def test_id_tag():
    assert id_tag(convention("a")) == ""
    tag = id_tag(convention("a", id="mx-abc123"))
    assert tag.startswith("[mx-abc123]")


def test_format_links():
    assert format_links(convention("a")) == ""
    links = format_links(convention("a", relates_to=["mx-1", "mx-2"], supersedes=["mx-3"]))
    assert "relates to: mx-1, mx-2" in links
    assert "supersedes: mx-3" in links


def test_record_meta_full_and_brief():
    record = convention(
        "a", evidence=Evidence(commit="abc123", file="src/x.rs"), tags=["safety"]
    )
    assert format_record_meta(record, False) == ""
    full = format_record_meta(record, True)
    assert "(tactical)" in full
    assert "commit: abc123" in full
    assert "file: src/x.rs" in full
    assert "tags: safety" in full


def test_compact_line_convention_with_outcome():
    record = convention(
        "Use tabs",
        id="mx-abc123",
        outcomes=[
            Outcome(status=OutcomeStatus.FAILURE),
            Outcome(status=OutcomeStatus.SUCCESS, agent="bot"),
        ],
    )
    line = compact_line(record)
    assert line.startswith("- [convention] Use tabs")
    assert "(mx-abc123)" in line
    assert "\u2713" in line
    assert "@bot" in line
    assert "(2x)" in line


def test_compact_line_reference_files_or_description():
    with_files = Reference(
        name="Docs",
        description="the docs",
        files=["docs/a.md"],
        classification=Classification.TACTICAL,
        recorded_at=TS,
    )
    without = Reference(
        name="Docs",
        description="the docs",
        classification=Classification.TACTICAL,
        recorded_at=TS,
    )
    assert "docs/a.md" in compact_line(with_files)
    assert "the docs" not in compact_line(with_files)
    assert compact_line(without).endswith("the docs")


def test_compact_line_failure_arrow():
    record = Failure(
        description="boom",
        resolution="fix it",
        classification=Classification.TACTICAL,
        recorded_at=TS,
    )
    assert "\u2192" in compact_line(record)
    assert compact_line(record).startswith("- [failure] boom")


def test_domain_expertise_sections_in_order():
    records = [pattern("P1", files=["src/a.rs"]), convention("C1")]
    out = format_domain_expertise("rust", records, None, False)
    lines = out.split("\n")
    assert lines[0].startswith("## rust (2 records")
    assert "### Conventions" in out
    assert "### Patterns" in out
    assert "### Guides" not in out
    assert out.index("### Conventions") < out.index("### Patterns")
    assert "**P1**" in out
    assert "src/a.rs" in out


def test_domain_expertise_failure_resolution_line():
    record = Failure(
        description="boom",
        resolution="fix it",
        classification=Classification.TACTICAL,
        recorded_at=TS,
    )
    out = format_domain_expertise("d", [record], None, False)
    assert "### Known Failures" in out
    assert "\n  \u2192 fix it" in out


def test_domain_expertise_compact_line_count():
    records = [convention("a"), convention("b"), pattern("c")]
    out = format_domain_expertise_compact("d", records, None)
    assert len(out.split("\n")) == len(records) + 1


def test_prime_output():
    empty = format_prime_output([])
    assert empty.startswith("# Project Expertise (via KB)")
    assert "No expertise recorded yet" in empty
    filled = format_prime_output(["## one", "## two"])
    assert "## one\n\n## two" in filled
    assert "No expertise recorded yet" not in filled
    assert filled.endswith("Do NOT skip this. Unrecorded learnings are lost for the next session.")


def test_prime_output_compact():
    out = format_prime_output_compact(["## x"])
    assert "## Quick Reference" in out
    assert "## x" in out
    assert "No expertise recorded yet" in format_prime_output_compact([])


def test_session_end_reminders():
    assert get_session_end_reminder(PrimeFormat.XML).startswith("<session_close_protocol")
    assert get_session_end_reminder(PrimeFormat.PLAIN).startswith(
        "=== SESSION CLOSE PROTOCOL (CRITICAL) ==="
    )
    markdown = get_session_end_reminder(PrimeFormat.MARKDOWN)
    assert "SESSION CLOSE PROTOCOL" in markdown
    assert markdown.endswith("lost for the next session.")


def test_status_output_empty():
    out = format_status_output([], Governance())
    assert "No domains configured" in out


def test_status_output_thresholds():
    gov = Governance(max_entries=10, warn_entries=20, hard_limit=30)
    stats = [
        DomainStat("a", 5),
        DomainStat("b", 10),
        DomainStat("c", 20),
        DomainStat("d", 30),
    ]
    lines = format_status_output(stats, gov).split("\n")[3:]
    assert "(updated never)" in lines[0]
    assert lines[0].endswith("(updated never)")
    assert "approaching limit" in lines[1]
    assert "consider splitting domain" in lines[2]
    assert "OVER HARD LIMIT" in lines[3]