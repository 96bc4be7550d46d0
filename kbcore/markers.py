"""Managing the kb-owned section of a document, bounded by HTML comments."""

from __future__ import annotations

import re

MARKER_START = "<!-- kb:start -->"
MARKER_END = "<!-- kb:end -->"

_EXTRA_NEWLINES = re.compile(r"\n{3,}")


def has_marker_section(content: str) -> bool:
    return MARKER_START in content


def _split(content: str) -> tuple[str, str] | None:
    start = content.find(MARKER_START)
    end = content.find(MARKER_END)
    if start < 0 or end < 0:
        return None
    return content[:start], content[end + len(MARKER_END):]


def replace_marker_section(content: str, new_section: str) -> str | None:
    """Replace the marked section with ``new_section``; None when no markers are found."""
    parts = _split(content)
    if parts is None:
        return None
    before, after = parts
    return f"{before}{new_section}{after}"


def remove_marker_section(content: str) -> str:
    """Drop the marked section and collapse runs of blank lines."""
    parts = _split(content)
    if parts is None:
        return content
    before, after = parts
    cleaned = _EXTRA_NEWLINES.sub("\n\n", before + after)
    return f"{cleaned.strip()}\n"


def wrap_in_markers(snippet: str) -> str:
    return f"{MARKER_START}\n{snippet}{MARKER_END}"