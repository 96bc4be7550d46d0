from kbcore.model import Classification, Convention, Outcome, OutcomeStatus
from kbcore.scoring import (
    apply_confirmation_boost,
    compute_confirmation_score,
    get_failure_count,
    get_success_count,
    get_success_rate,
    get_total_applications,
    sort_by_confirmation_score,
)

TS = "2024-01-01T00:00:00.000Z"


def _record(outcomes=None, content="test"):
    return Convention(
        content=content,
        classification=Classification.TACTICAL,
        recorded_at=TS,
        outcomes=outcomes,
    )


def _outcomes(*statuses):
    return [Outcome(status=s) for s in statuses]


def test_no_outcomes_score_zero():
    assert compute_confirmation_score(_record()) == 0.0


def test_success_and_partial():
    r = _record(_outcomes(OutcomeStatus.SUCCESS, OutcomeStatus.PARTIAL, OutcomeStatus.FAILURE))
    assert compute_confirmation_score(r) == 1.5
    assert get_success_count(r) == 1
    assert get_failure_count(r) == 1
    assert get_total_applications(r) == 3


def test_boost_with_zero_score():
    assert apply_confirmation_boost(10.0, _record(), 0.1) == 10.0


def test_boost_with_score():
    r = _record(_outcomes(OutcomeStatus.SUCCESS, OutcomeStatus.SUCCESS))
    assert apply_confirmation_boost(10.0, r, 0.5) == 20.0


def test_success_rate():
    assert get_success_rate(_record()) == 0.0
    r = _record(_outcomes(OutcomeStatus.SUCCESS, OutcomeStatus.PARTIAL, OutcomeStatus.FAILURE))
    assert get_success_rate(r) == 0.5


def test_empty_outcome_list():
    r = _record([])
    assert compute_confirmation_score(r) == 0.0
    assert get_total_applications(r) == 0


def test_sort_by_confirmation_score_is_stable_descending():
    low = _record(content="low")
    high = _record(_outcomes(OutcomeStatus.SUCCESS, OutcomeStatus.SUCCESS), content="high")
    mid = _record(_outcomes(OutcomeStatus.SUCCESS), content="mid")
    other_low = _record(_outcomes(OutcomeStatus.FAILURE), content="other_low")
    ordered = sort_by_confirmation_score([low, high, other_low, mid])
    assert [r.content for r in ordered] == ["high", "mid", "low", "other_low"]