from datetime import date
from decimal import Decimal

import pytest

from finance_engine.controllers.occurrences import (
    month_view,
    occurrence_timeline,
    occurrences_in_period,
)
from finance_engine.controllers.resolution import (
    edit_targets,
    resolve_occurrence,
    skip_occurrence,
    toggle_occurrence_paid,
)
from finance_engine.data_model.interfaces import EditScope, Frequency, TransactionType
from finance_engine.data_model.records import Transaction


@pytest.fixture
def series() -> Transaction:
    return Transaction(
        id="t1",
        date="2024-01-15",
        amount=Decimal("100"),
        description="Streaming",
        category="Leisure",
        payment_method="Card",
        is_recurring=True,
        frequency=Frequency.MONTHLY,
        is_paid=True,
    )


# --- resolve_occurrence --------------------------------------------------------


def test_resolve_returns_exception_and_excluding_template_together(series):
    # Arrange
    occ = occurrences_in_period(series, 3, 2024)

    # Act
    res = resolve_occurrence(series, occ, {"amount": Decimal("80")}, "e1", 500.0)

    # Assert
    exc = res.exception
    assert exc is not None
    assert exc.id == "e1"
    assert exc.recurring_group_id == "t1"
    assert exc.is_recurring is False
    assert exc.frequency is None
    assert exc.excluded_dates == frozenset()
    assert exc.iso_date == "2024-03-15"
    assert exc.amount == Decimal("80")
    assert exc.created_at == 500.0
    assert exc.is_paid is False
    assert exc.description == "Streaming"
    assert "2024-03-15" in res.template.excluded_dates
    assert res.records == (res.template, exc)


def test_persisted_resolution_yields_exactly_one_occurrence(series):
    # Arrange
    occ = occurrences_in_period(series, 3, 2024)
    res = resolve_occurrence(series, occ, {"date": "2024-03-20"}, "e1", 500.0)
    snapshot = list(res.records)

    # Act
    resolved = occurrences_in_period(res.template, 3, 2024, snapshot)
    view = month_view(snapshot, 3, 2024)

    # Assert
    assert resolved.id == "e1"
    assert resolved.date == date(2024, 3, 20)
    assert [t.id for t in view.entries] == ["e1"]


def test_resolving_the_template_month_excludes_the_template_date(series):
    # Arrange
    first = occurrence_timeline(series, [series], 1, date(2023, 12, 1))[0]

    # Act
    res = resolve_occurrence(series, first, {"amount": Decimal("120")}, "e0", 7.0)

    # Assert
    assert first.id == "t1"
    assert res.template.excluded_dates == frozenset({"2024-01-15"})
    assert [t.id for t in month_view(list(res.records), 1, 2024).entries] == ["e0"]


def test_re_editing_an_exception_supersedes_it(series):
    # Arrange
    occ = occurrences_in_period(series, 3, 2024)
    first = resolve_occurrence(series, occ, {"amount": Decimal("80")}, "e1", 500.0)
    edited = occurrences_in_period(first.template, 3, 2024, first.records)

    # Act
    second = resolve_occurrence(first.template, edited, {"amount": Decimal("70")}, "e2", 600.0)
    snapshot = [second.template, first.exception, second.exception]

    # Assert
    assert occurrences_in_period(second.template, 3, 2024, snapshot).id == "e2"
    assert second.exception.amount == Decimal("70")


@pytest.mark.parametrize(
    "changes",
    [{"recurring_group_id": "x"}, {"id": "x"}, {"is_recurring": True}, {"not_a_field": 1}],
)
def test_resolve_rejects_bookkeeping_and_unknown_fields(series, changes):
    occ = occurrences_in_period(series, 3, 2024)
    with pytest.raises(ValueError):
        resolve_occurrence(series, occ, changes, "e1", 1.0)


def test_resolve_rejects_occurrence_of_another_series(series):
    other = Transaction(
        id="t2", date="2024-01-01", amount=Decimal("1"), is_recurring=True, frequency="monthly"
    )
    occ = occurrences_in_period(other, 3, 2024)
    with pytest.raises(ValueError):
        resolve_occurrence(series, occ, {}, "e1", 1.0)


# --- skip / toggle -------------------------------------------------------------


def test_skip_excludes_only_that_slot(series):
    # Arrange
    occ = occurrences_in_period(series, 4, 2024)

    # Act
    res = skip_occurrence(series, occ)

    # Assert
    assert res.exception is None
    assert res.records == (res.template,)
    assert occurrences_in_period(res.template, 4, 2024) is None
    assert occurrences_in_period(res.template, 5, 2024) is not None


def test_toggle_generated_occurrence_pays_only_that_month(series):
    # Arrange
    occ = occurrences_in_period(series, 3, 2024)

    # Act
    res = toggle_occurrence_paid(series, occ, "e2", 10.0)
    snapshot = list(res.records)

    # Assert
    assert res.exception.is_paid is True
    assert occurrences_in_period(res.template, 3, 2024, snapshot).is_paid is True
    assert occurrences_in_period(res.template, 4, 2024, snapshot).is_paid is False


def test_toggle_edited_occurrence_flips_its_exception_in_place(series):
    # Arrange
    exc = Transaction(
        id="e1",
        date="2024-03-15",
        amount=Decimal("100"),
        recurring_group_id="t1",
        is_paid=False,
        created_at=3.0,
    )
    template = series.with_excluded(["2024-03-15"])
    occ = occurrences_in_period(template, 3, 2024, [template, exc])

    # Act
    res = toggle_occurrence_paid(template, occ, "unused", 99.0)

    # Assert
    assert res.template is template
    assert res.exception.id == "e1"
    assert res.exception.is_paid is True
    assert res.exception.created_at == 3.0


def test_toggle_template_month_flips_the_template(series):
    first = occurrence_timeline(series, [series], 1, date(2024, 1, 2))[0]
    res = toggle_occurrence_paid(series, first, "unused", 1.0)
    assert res.exception is None
    assert res.template.is_paid is False
    assert res.template.excluded_dates == frozenset()


# --- edit_targets --------------------------------------------------------------


def _parcel(txn_id: str, index: int, group_id="g1", **overrides) -> Transaction:
    base = dict(
        id=txn_id,
        date=f"2024-{index:02d}-10",
        amount=Decimal("250"),
        type=TransactionType.EXPENSE,
        description="Sofa",
        category="Home",
        payment_method="Card",
        installments=4,
        current_installment=index,
        installment_group_id=group_id,
    )
    base.update(overrides)
    return Transaction(**base)


@pytest.fixture
def parcels():
    return [
        _parcel("p1", 1),
        _parcel("p2", 2),
        _parcel("p3", 3),
        _parcel("p4", 4),
        _parcel("q1", 1, group_id="g2"),
    ]


@pytest.mark.parametrize(
    "scope, expected",
    [
        (EditScope.SINGLE, ["p2"]),
        (EditScope.ALL, ["p1", "p2", "p3", "p4"]),
        (EditScope.ALL_FUTURE, ["p2", "p3", "p4"]),
        ("all_future", ["p2", "p3", "p4"]),
    ],
)
def test_edit_targets_for_installments(parcels, scope, expected):
    assert edit_targets(parcels, parcels[1], scope) == expected


def test_edit_targets_match_legacy_parcels_by_composite_key():
    # Arrange
    legacy = [_parcel(f"l{i}", i, group_id=None) for i in range(1, 4)]
    renamed = _parcel("l9", 4, group_id=None, description="Sofa (old)")

    # Act
    targets = edit_targets(legacy + [renamed], legacy[0], EditScope.ALL)

    # Assert
    assert targets == ["l1", "l2", "l3"]


def test_edit_targets_for_series_template_is_the_template_only(series):
    exc = Transaction(id="e1", date="2024-03-15", amount=Decimal("1"), recurring_group_id="t1")
    assert edit_targets([series, exc], series, EditScope.ALL) == ["t1"]
    assert edit_targets([series, exc], series, EditScope.ALL_FUTURE) == ["t1"]


def test_edit_targets_rejects_unknown_scope(parcels):
    with pytest.raises(ValueError):
        edit_targets(parcels, parcels[0], "everything")
