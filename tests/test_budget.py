from kbcore.budget import (
    DomainRecords,
    apply_budget,
    estimate_tokens,
    format_budget_summary,
)
from kbcore.model import Classification, Convention, Outcome, OutcomeStatus, Reference


def _convention(content, classification=Classification.TACTICAL,
                recorded_at="2024-01-01T00:00:00.000Z", outcomes=None):
    return Convention(
        content=content,
        classification=classification,
        recorded_at=recorded_at,
        outcomes=outcomes,
    )


def _reference(name):
    return Reference(
        name=name,
        description="d",
        classification=Classification.FOUNDATIONAL,
        recorded_at="2024-01-01T00:00:00.000Z",
    )


def _eight_chars(record, domain):
    return "abcdefgh"


def test_estimate_tokens_basic():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2
    assert estimate_tokens("abcdefgh") == 2


def test_format_budget_summary_singular():
    s = format_budget_summary(1, 1)
    assert "1 more record" in s
    assert "1 domain" in s
    assert "1 more records" not in s


def test_format_budget_summary_plural():
    s = format_budget_summary(5, 2)
    assert "5 more records" in s
    assert "2 domains" in s


def test_format_budget_summary_without_domains():
    s = format_budget_summary(3, 0)
    assert "across" not in s
    assert s.endswith("(use --budget <n> to show more)")


def test_large_budget_keeps_everything_in_order():
    a, b = _convention("a"), _convention("b")
    c = _reference("c")
    domains = [DomainRecords("one", [a, b]), DomainRecords("two", [c])]
    result = apply_budget(domains, 1000, _eight_chars)
    assert [(d.domain, d.records) for d in result.kept] == [("one", [a, b]), ("two", [c])]
    assert result.dropped_count == 0
    assert result.dropped_domain_count == 0


def test_zero_budget_drops_everything():
    domains = [DomainRecords("one", [_convention("a")]), DomainRecords("two", [_reference("b")])]
    result = apply_budget(domains, 0, _eight_chars)
    assert result.kept == []
    assert result.dropped_count == 2
    assert result.dropped_domain_count == 2


def test_conventions_win_over_references():
    ref = _reference("r")
    conv = _convention("c")
    domains = [DomainRecords("refs", [ref]), DomainRecords("convs", [conv])]
    result = apply_budget(domains, 2, _eight_chars)
    assert [(d.domain, d.records) for d in result.kept] == [("convs", [conv])]
    assert result.dropped_count == 1
    assert result.dropped_domain_count == 1


def test_foundational_wins_over_tactical():
    tactical = _convention("t", Classification.TACTICAL)
    foundational = _convention("f", Classification.FOUNDATIONAL)
    result = apply_budget([DomainRecords("d", [tactical, foundational])], 2, _eight_chars)
    assert result.kept[0].records == [foundational]


def test_confirmed_record_wins():
    plain = _convention("p")
    confirmed = _convention("c", outcomes=[Outcome(status=OutcomeStatus.SUCCESS)])
    result = apply_budget([DomainRecords("d", [plain, confirmed])], 2, _eight_chars)
    assert result.kept[0].records == [confirmed]


def test_newer_record_wins():
    old = _convention("o", recorded_at="2023-01-01T00:00:00.000Z")
    new = _convention("n", recorded_at="2024-06-01T00:00:00.000Z")
    result = apply_budget([DomainRecords("d", [old, new])], 2, _eight_chars)
    assert result.kept[0].records == [new]


def test_partially_kept_domain_counts_as_dropped():
    a, b = _convention("a"), _convention("b")
    result = apply_budget([DomainRecords("d", [a, b])], 3, _eight_chars)
    assert sum(len(d.records) for d in result.kept) == 1
    assert result.dropped_count == 1
    assert result.dropped_domain_count == 1


def test_format_record_receives_domain():
    seen = []

    def fmt(record, domain):
        seen.append(domain)
        return "x"

    record = _convention("a")
    result = apply_budget([DomainRecords("alpha", [record])], 10, fmt)
    assert seen == ["alpha"]
    assert [(d.domain, d.records) for d in result.kept] == [("alpha", [record])]
    assert result.dropped_count == 0