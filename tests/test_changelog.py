from datetime import datetime, timezone

import pytest

from kbcore.changelog import ChangelogEntry, ChangelogFilter, append, query_changelog
from kbcore.config import init_kb_dir
from kbcore.errors import ValidationError


@pytest.fixture
def kb(tmp_path):
    init_kb_dir(tmp_path)
    return tmp_path


def make_entry(session_id, action, domain):
    return ChangelogEntry(
        session_id=session_id,
        action=action,
        domain=domain,
        entry_id="mx-abc123",
        summary="test record",
    )


def test_append_and_query(kb):
    append(kb, make_entry("s1", "record", "rust"))
    append(kb, make_entry("s1", "edit", "rust"))
    append(kb, make_entry(None, "delete", "go"))

    assert len(query_changelog(kb, ChangelogFilter())) == 3
    assert len(query_changelog(kb, ChangelogFilter(action="record"))) == 1
    assert len(query_changelog(kb, ChangelogFilter(domain="go"))) == 1


def test_query_empty_changelog(kb):
    assert query_changelog(kb, ChangelogFilter()) == []


def test_session_filter_skips_entries_without_session(kb):
    append(kb, make_entry("s1", "record", "rust"))
    append(kb, make_entry(None, "delete", "go"))
    found = query_changelog(kb, ChangelogFilter(session_id="s1"))
    assert [e.action for e in found] == ["record"]


def test_round_trip_with_diff(kb):
    entry = ChangelogEntry(
        session_id="s1",
        action="edit",
        domain="rust",
        entry_id="mx-abc123",
        timestamp=datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc),
        diff={"content": ("old text", "new text")},
    )
    append(kb, entry)
    (loaded,) = query_changelog(kb)
    assert loaded == entry


def test_to_dict_writes_diff_as_pairs():
    entry = ChangelogEntry(
        action="edit",
        domain="rust",
        entry_id="mx-abc123",
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        diff={"title": ("a", "b")},
    )
    data = entry.to_dict()
    assert data["diff"] == {"title": ["a", "b"]}
    assert "session_id" not in data
    assert "summary" not in data


def test_from_dict_rejects_bad_diff():
    with pytest.raises(ValidationError):
        ChangelogEntry.from_dict(
            {
                "timestamp": "2024-01-01T00:00:00Z",
                "action": "edit",
                "domain": "rust",
                "entry_id": "mx-abc123",
                "diff": {"title": ["only one"]},
            }
        )