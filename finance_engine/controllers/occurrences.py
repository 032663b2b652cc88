"""
Recurring-occurrence materializer.

A recurring transaction is stored once, as a *series template*. This module
derives, on demand, which occurrences of that series exist in a calendar month
or over a forward-looking horizon, honoring the two ways a single slot can be
overridden:

• a *materialized exception* (a stored, non-recurring record whose
  ``recurring_group_id`` names the template) replaces the slot; when several
  exist for the same month the one with the latest ``created_at`` wins;
• an entry in the template's ``excluded_dates`` removes the slot, unless an
  exception replaces it.

At most one occurrence is produced per template and slot. Everything here is
pure: callers pass the snapshot and an explicit ``today`` where one matters.
"""

# finance_engine/controllers/occurrences.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from finance_engine.data_model.interfaces import Frequency, TransactionType
from finance_engine.data_model.records import (
    FinancialSummary,
    MonthView,
    Occurrence,
    RecurringStats,
    Transaction,
    synthetic_occurrence_id,
)
from finance_engine.utilities.calendar_util import Period, iter_periods, validate_period

log = logging.getLogger(__name__)


# --- Slot resolution ----------------------------------------------------------


def is_generating_series(t: Transaction) -> bool:
    """True when ``t`` is a stored template that produces occurrences.

    Installment parcels flagged as recurring never generate occurrences; their
    months already exist as stored parcels.
    """
    return (
        t.is_recurring
        and t.frequency is not None
        and not t.is_installment()
        and not t.is_virtual
    )


def exceptions_by_period(
    template: Transaction, records: Iterable[Transaction]
) -> Dict[Period, Transaction]:
    """Map each month to the materialized exception that replaces it.

    Duplicates for one month are resolved by last write (``created_at``); on equal
    timestamps the record later in the snapshot wins.
    """
    winners: Dict[Period, Transaction] = {}
    for r in records:
        if not r.is_exception_of(template):
            continue
        d = r.occurs_on
        if d is None:
            log.debug("Ignoring exception %s of %s: malformed date %r", r.id, template.id, r.date)
            continue
        period = Period.of(d)
        current = winners.get(period)
        if current is not None:
            log.debug(
                "Duplicate exceptions for %s in %s: %s vs %s",
                template.id,
                period.key(),
                current.id,
                r.id,
            )
            if r.created_at < current.created_at:
                continue
        winners[period] = r
    return winners


def _is_eligible(origin: Period, frequency: Frequency, target: Period) -> bool:
    if target <= origin:
        return False
    if frequency is Frequency.MONTHLY:
        return True
    return target.month == origin.month


def _exception_occurrence(template: Transaction, exception: Transaction) -> Occurrence:
    return Occurrence(
        id=exception.id,
        template_id=template.id,
        date=exception.occurs_on,  # type: ignore[arg-type]  # filtered in exceptions_by_period
        amount=exception.amount,
        type=exception.type,
        is_paid=exception.is_paid,
        source=exception,
        is_virtual=False,
        is_modified=True,
    )


def _template_slot(
    template: Transaction, start: date, exception: Optional[Transaction]
) -> Optional[Occurrence]:
    """The template's own month: the template itself unless edited or skipped."""
    if exception is not None:
        return _exception_occurrence(template, exception)
    if template.is_excluded(start):
        return None
    return Occurrence(
        id=template.id,
        template_id=template.id,
        date=start,
        amount=template.amount,
        type=template.type,
        is_paid=template.is_paid,
        source=template,
    )


def _generated_slot(
    template: Transaction, start: date, period: Period, exception: Optional[Transaction]
) -> Optional[Occurrence]:
    if exception is not None:
        return _exception_occurrence(template, exception)
    naive = period.on_day(start.day)
    if template.is_excluded(naive):
        return None
    # Paid state is per occurrence: a generated slot has never been paid.
    return Occurrence(
        id=synthetic_occurrence_id(template.id, period),
        template_id=template.id,
        date=naive,
        amount=template.amount,
        type=template.type,
        is_paid=False,
        source=template,
        is_virtual=True,
    )


def _series_anchor(series: Transaction) -> Optional[Tuple[date, Frequency]]:
    """Start date and step of a generating series; ``None`` when it generates nothing."""
    frequency = series.frequency
    if frequency is None or not is_generating_series(series):
        return None
    start = series.occurs_on
    if start is None:
        log.debug("Skipping series %s: malformed date %r", series.id, series.date)
        return None
    return start, frequency


# --- Public API ---------------------------------------------------------------


def occurrences_in_period(
    series: Transaction,
    month: int,
    year: int,
    records: Iterable[Transaction] = (),
) -> Optional[Occurrence]:
    """Materialize ``series`` for one calendar month.

    Parameters
    ----------
    series : Transaction
        The series template.
    month, year : int
        Target period; ``month`` is 1-based.
    records : Iterable[Transaction], optional
        Snapshot searched for materialized exceptions of ``series``.

    Returns
    -------
    Optional[Occurrence]
        ``None`` when the period is not after the template's own month, the
        series is not eligible in that month (yearly series outside their
        month), or the slot was excluded without a replacing exception.
        Otherwise the exception occurrence (``is_modified``) or a virtual one
        dated ``min(template day, days in target month)`` with the stable id
        ``{series.id}_recurring_{YYYY}-{MM}``.

    Raises
    ------
    ValueError
        If ``month`` or ``year`` is out of range. Malformed records never raise.
    """
    target = validate_period(month, year)
    anchor = _series_anchor(series)
    if anchor is None:
        return None
    start, frequency = anchor
    if not _is_eligible(Period.of(start), frequency, target):
        return None
    exception = exceptions_by_period(series, records).get(target)
    return _generated_slot(series, start, target, exception)


def _first_candidate(origin: Period, frequency: Frequency, floor: Period) -> Period:
    first = max(origin, floor)
    if frequency is Frequency.YEARLY:
        year = first.year if first.month <= origin.month else first.year + 1
        first = Period(year, origin.month)
    return first


def iter_occurrence_timeline(
    series: Transaction,
    records: Iterable[Transaction],
    horizon_count: int,
    today: date,
) -> Iterator[Occurrence]:
    """Lazily yield past exceptions, then up to ``horizon_count`` upcoming occurrences.

    Past exceptions are those dated before ``today``'s month, oldest first. The
    forward walk starts at the later of the template's month and ``today``'s
    month and applies the same override/exclusion rule as
    :func:`occurrences_in_period` to each step (the template's own month yields
    the template itself). A month is emitted at most once. ``occurrence_number``
    counts from 1 across both parts.

    Each call builds a fresh generator; nothing is cached between calls.
    """
    if horizon_count < 0:
        raise ValueError("horizon_count must not be negative")
    anchor = _series_anchor(series)
    if anchor is None:
        return
    start, frequency = anchor

    origin = Period.of(start)
    current = Period.of(today)
    exceptions = exceptions_by_period(series, records)
    resolved: set[Period] = set()
    number = 0

    for period in sorted(p for p in exceptions if p < current):
        number += 1
        resolved.add(period)
        yield _exception_occurrence(series, exceptions[period]).numbered(number)

    emitted = 0
    if horizon_count == 0:
        return
    first = _first_candidate(origin, frequency, current)
    for period in iter_periods(first, frequency.step_months):
        if period in resolved:
            continue
        resolved.add(period)
        exception = exceptions.get(period)
        if period == origin:
            occ = _template_slot(series, start, exception)
        else:
            occ = _generated_slot(series, start, period, exception)
        if occ is None:
            continue
        number += 1
        emitted += 1
        yield occ.numbered(number)
        if emitted >= horizon_count:
            return


def occurrence_timeline(
    series: Transaction,
    records: Iterable[Transaction],
    horizon_count: int,
    today: date,
) -> List[Occurrence]:
    """List form of :func:`iter_occurrence_timeline`."""
    return list(iter_occurrence_timeline(series, list(records), horizon_count, today))


def next_occurrence(
    series: Transaction,
    today: date,
    records: Iterable[Transaction] = (),
) -> Optional[Occurrence]:
    """The first occurrence dated strictly after ``today``."""
    # today's month may already be behind us, so look two slots ahead.
    for occ in iter_occurrence_timeline(series, list(records), 2, today):
        if occ.date > today:
            return occ
    return None


def occurrence_count(series: Transaction, today: date) -> int:
    """How many times ``series`` has come due up to and including ``today``'s month.

    Counts slots, not payments: 0 before the series starts, otherwise at least 1.
    """
    start = series.occurs_on
    if start is None or start > today or not series.is_recurring:
        return 0
    if series.frequency is Frequency.MONTHLY:
        return max(1, Period.of(start).months_until(Period.of(today)) + 1)
    if series.frequency is Frequency.YEARLY:
        return max(1, today.year - start.year + 1)
    return 1


def month_view(records: Sequence[Transaction], month: int, year: int) -> MonthView:
    """Everything displayed for one month, newest first, with income/expense totals.

    Stored records dated in the month are shown as they are, except that
    exceptions of a generating series are surfaced once through that series and
    a template whose own date is excluded is hidden. Each series then
    contributes its occurrence for the month, if any.
    """
    target = validate_period(month, year)
    snapshot = list(records)
    templates = {t.id: t for t in snapshot if is_generating_series(t)}

    entries: List[Transaction] = []
    for t in snapshot:
        if t.is_virtual or t.id in templates:
            continue
        d = t.occurs_on
        if d is None:
            log.debug("Skipping record %s: malformed date %r", t.id, t.date)
            continue
        if Period.of(d) != target:
            continue
        if not t.is_recurring and t.recurring_group_id in templates:
            continue
        if t.is_recurring and t.is_excluded(d):
            continue
        entries.append(t)

    for template in templates.values():
        anchor = _series_anchor(template)
        if anchor is None:
            continue
        start, frequency = anchor
        origin = Period.of(start)
        exception = exceptions_by_period(template, snapshot).get(target)
        occ: Optional[Occurrence] = None
        if target == origin:
            occ = _template_slot(template, start, exception)
        elif _is_eligible(origin, frequency, target):
            occ = _generated_slot(template, start, target, exception)
        if occ is not None:
            entries.append(occ.as_transaction())

    entries.sort(key=lambda t: (t.occurs_on, t.id), reverse=True)
    return MonthView(period=target, entries=tuple(entries), summary=FinancialSummary.of(entries))


def recurring_stats(records: Iterable[Transaction]) -> RecurringStats:
    """Totals of all stored series templates; annualized = monthly x 12 + yearly."""
    zero = Decimal("0")
    sums = {
        (Frequency.MONTHLY, TransactionType.INCOME): zero,
        (Frequency.MONTHLY, TransactionType.EXPENSE): zero,
        (Frequency.YEARLY, TransactionType.INCOME): zero,
        (Frequency.YEARLY, TransactionType.EXPENSE): zero,
    }
    total = income_count = expense_count = 0
    for t in records:
        if not t.is_recurring or t.is_virtual:
            continue
        total += 1
        if t.type is TransactionType.INCOME:
            income_count += 1
        else:
            expense_count += 1
        if t.frequency is not None:
            sums[(t.frequency, t.type)] += t.amount
    return RecurringStats(
        total=total,
        income_count=income_count,
        expense_count=expense_count,
        monthly_income=sums[(Frequency.MONTHLY, TransactionType.INCOME)],
        monthly_expense=sums[(Frequency.MONTHLY, TransactionType.EXPENSE)],
        yearly_income=sums[(Frequency.YEARLY, TransactionType.INCOME)],
        yearly_expense=sums[(Frequency.YEARLY, TransactionType.EXPENSE)],
    )
