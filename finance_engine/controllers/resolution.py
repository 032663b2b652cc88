"""
Edits of a single occurrence, expressed as one value.

Editing, skipping or marking one occurrence of a series as paid takes two
writes in the store: a materialized exception and an exclusion on the template.
Each function here returns both as an :class:`OccurrenceResolution` so the
caller can persist them together.
"""

# finance_engine/controllers/resolution.py
from __future__ import annotations

import logging
from dataclasses import fields, replace
from datetime import date
from typing import Any, Iterable, List, Mapping, Union

from finance_engine.data_model.interfaces import EditScope
from finance_engine.data_model.records import (
    Occurrence,
    OccurrenceResolution,
    Transaction,
)

from .installments import installment_group_key

log = logging.getLogger(__name__)

_TRANSACTION_FIELDS = frozenset(f.name for f in fields(Transaction))
# Identity and series bookkeeping are owned by this module.
_PROTECTED_FIELDS = frozenset(
    {"id", "recurring_group_id", "is_recurring", "frequency", "excluded_dates", "is_virtual"}
)


def _check_owner(template: Transaction, occurrence: Occurrence) -> None:
    if occurrence.template_id != template.id:
        raise ValueError(
            f"Occurrence {occurrence.id!r} belongs to {occurrence.template_id!r}, not {template.id!r}"
        )


def _slot_date(template: Transaction, occurrence: Occurrence) -> date:
    """The date under which the slot is (or would be) listed in ``excluded_dates``."""
    start = template.occurs_on
    if start is None:
        raise ValueError(f"Template {template.id!r} has a malformed date {template.date!r}")
    if occurrence.period == (start.year, start.month):
        return start
    return occurrence.period.on_day(start.day)


def resolve_occurrence(
    template: Transaction,
    occurrence: Occurrence,
    changes: Mapping[str, Any],
    exception_id: str,
    created_at: float,
) -> OccurrenceResolution:
    """
    Replace one occurrence of ``template`` with a stored exception.

    The exception starts from the occurrence's current values (the earlier
    exception when the slot was already edited), applies ``changes`` and is
    linked to the template through ``recurring_group_id``. The template comes
    back with the slot date excluded, so the slot resolves to the exception and
    never to a generated occurrence as well.

    Raises
    ------
    ValueError
        If the occurrence belongs to another series, or ``changes`` names an
        unknown field or one of the series bookkeeping fields.
    """
    _check_owner(template, occurrence)
    unknown = set(changes) - _TRANSACTION_FIELDS
    if unknown:
        raise ValueError(f"Unknown transaction fields: {sorted(unknown)}")
    protected = set(changes) & _PROTECTED_FIELDS
    if protected:
        raise ValueError(f"Fields cannot be changed on a single occurrence: {sorted(protected)}")

    slot = _slot_date(template, occurrence)
    exception = replace(
        occurrence.source,
        id=exception_id,
        date=occurrence.date.isoformat(),
        is_paid=occurrence.is_paid,
        created_at=created_at,
        is_recurring=False,
        frequency=None,
        excluded_dates=frozenset(),
        recurring_group_id=template.id,
        is_virtual=False,
    )
    if changes:
        exception = replace(exception, **dict(changes))
    log.debug("Resolved %s of %s into exception %s", slot, template.id, exception_id)
    return OccurrenceResolution(template=template.with_excluded([slot]), exception=exception)


def skip_occurrence(template: Transaction, occurrence: Occurrence) -> OccurrenceResolution:
    """Exclude one slot of the series.

    When the slot was already edited, the caller also deletes the exception
    (``occurrence.id``); otherwise it would keep replacing the slot.
    """
    _check_owner(template, occurrence)
    return OccurrenceResolution(
        template=template.with_excluded([_slot_date(template, occurrence)]),
        exception=None,
    )


def toggle_occurrence_paid(
    template: Transaction,
    occurrence: Occurrence,
    exception_id: str,
    created_at: float,
) -> OccurrenceResolution:
    """
    Flip the paid state of exactly one occurrence.

    • an edited slot flips its exception in place;
    • the template's own month flips the template;
    • a generated slot is resolved into an exception carrying the new state,
      so later months stay unpaid.

    ``exception_id`` and ``created_at`` are used only in the last case.
    """
    _check_owner(template, occurrence)
    if occurrence.is_modified:
        return OccurrenceResolution(
            template=template,
            exception=replace(occurrence.source, is_paid=not occurrence.is_paid),
        )
    if not occurrence.is_virtual:
        return OccurrenceResolution(
            template=replace(template, is_paid=not template.is_paid), exception=None
        )
    return resolve_occurrence(
        template, occurrence, {"is_paid": not occurrence.is_paid}, exception_id, created_at
    )


def edit_targets(
    records: Iterable[Transaction],
    original: Transaction,
    scope: Union[EditScope, str],
) -> List[str]:
    """
    Ids of the stored records an edit of ``original`` applies to.

    Installment parcels reach their siblings (same group key); ``all_future``
    keeps parcels whose index is at or after the edited one. A series template
    is a single record, so it only ever targets itself, as does any plain
    record or a ``single`` edit.
    """
    scope = EditScope(scope) if not isinstance(scope, EditScope) else scope
    if scope is EditScope.SINGLE or not original.is_installment():
        return [original.id]

    key = installment_group_key(original)
    floor = original.current_installment or 1
    targets: List[str] = []
    for t in records:
        if t.is_virtual or not t.is_installment() or installment_group_key(t) != key:
            continue
        if scope is EditScope.ALL_FUTURE and (t.current_installment or 1) < floor:
            continue
        targets.append(t.id)
    return targets
