from datetime import datetime, timedelta, timezone

from kbcore.health import calculate_domain_health, is_record_stale
from kbcore.model import (
    Classification,
    Convention,
    Pattern,
    RecordType,
    ShelfLife,
)

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def stamp(moment):
    return moment.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def convention(content, classification, recorded_at):
    return Convention(content=content, classification=classification, recorded_at=recorded_at)


def test_foundational_never_stale():
    old = convention("a", Classification.FOUNDATIONAL, "2000-01-01T00:00:00.000Z")
    assert is_record_stale(old, NOW, ShelfLife()) is False


def test_tactical_stale_after_shelf_life():
    shelf = ShelfLife(tactical=14, observational=30)
    fresh = convention("a", Classification.TACTICAL, stamp(NOW - timedelta(days=14)))
    old = convention("b", Classification.TACTICAL, stamp(NOW - timedelta(days=15)))
    assert is_record_stale(fresh, NOW, shelf) is False
    assert is_record_stale(old, NOW, shelf) is True


def test_observational_uses_its_own_shelf_life():
    shelf = ShelfLife(tactical=14, observational=30)
    record = convention("a", Classification.OBSERVATIONAL, stamp(NOW - timedelta(days=20)))
    assert is_record_stale(record, NOW, shelf) is False
    record = convention("a", Classification.OBSERVATIONAL, stamp(NOW - timedelta(days=31)))
    assert is_record_stale(record, NOW, shelf) is True


def test_unparseable_timestamp_not_stale():
    record = convention("a", Classification.TACTICAL, "not a date")
    assert is_record_stale(record, NOW, ShelfLife()) is False


def test_offset_timestamp_parsed():
    record = convention("a", Classification.TACTICAL, "2020-01-01T00:00:00+02:00")
    assert is_record_stale(record, NOW, ShelfLife()) is True


def test_domain_health_distributions_and_bounds():
    records = [
        convention("a", Classification.FOUNDATIONAL, "2024-01-01T00:00:00.000Z"),
        convention("b", Classification.TACTICAL, "2020-01-01T00:00:00.000Z"),
        Pattern(
            name="p",
            description="d",
            classification=Classification.TACTICAL,
            recorded_at="2024-03-01T00:00:00.000Z",
        ),
    ]
    health = calculate_domain_health(records, len(records), ShelfLife())
    assert health.governance_utilization == 100
    assert health.type_distribution[RecordType.CONVENTION] == 2
    assert health.type_distribution[RecordType.PATTERN] == 1
    assert sum(health.classification_distribution.values()) == len(records)
    assert health.oldest_timestamp == "2020-01-01T00:00:00.000Z"
    assert health.newest_timestamp == "2024-03-01T00:00:00.000Z"
    assert health.stale_count >= 1


def test_domain_health_zero_max_entries():
    health = calculate_domain_health([], 0, ShelfLife())
    assert health.governance_utilization == 0
    assert health.stale_count == 0
    assert health.oldest_timestamp is None
    assert health.type_distribution == {}