"""
Installment grouper and date recalculator.

A parceled purchase is stored as one record per parcel. These helpers rebuild
the purchase view from the flat record list, split a new purchase into parcels
and re-project every parcel's due date from a new anchor.
"""

# finance_engine/controllers/installments.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from finance_engine.data_model.interfaces import InstallmentStatus, TransactionType
from finance_engine.data_model.records import (
    InstallmentGroup,
    InstallmentStats,
    PlannedParcel,
    Transaction,
)
from finance_engine.utilities.calendar_util import add_months, validate_period
from finance_engine.utilities.core_util import (
    contains_casefold,
    most_common_first_seen,
    round_money,
)

log = logging.getLogger(__name__)


# --- Grouping -----------------------------------------------------------------


def installment_group_key(t: Transaction) -> str:
    """Group key of a parcel: its ``installment_group_id``, else the legacy composite key.

    The composite ``description-payment_method-category-type-installments`` keeps
    parcels stored before group ids existed together.
    """
    if t.installment_group_id:
        return t.installment_group_id
    return f"{t.description}-{t.payment_method}-{t.category}-{t.type.value}-{t.installments}"


def _reimbursement_ids(records: Sequence[Transaction]) -> Set[str]:
    """Ids of income records that are the reimbursement side of a shared expense."""
    by_id = {r.id: r for r in records}
    found: Set[str] = set()
    for r in records:
        if r.type is not TransactionType.INCOME:
            continue
        linked = by_id.get(r.related_transaction_id) if r.related_transaction_id else None
        if linked is not None and linked.is_shared and linked.type is TransactionType.EXPENSE:
            found.add(r.id)
    for r in records:
        if r.is_shared and r.type is TransactionType.EXPENSE and r.related_transaction_id:
            target = by_id.get(r.related_transaction_id)
            if target is not None and target.type is TransactionType.INCOME:
                found.add(target.id)
    return found


def _parcel_sort_key(t: Transaction) -> Tuple[bool, int, date, str]:
    index = t.current_installment
    return (index is None, index or 0, t.occurs_on or date.max, t.id)


def _build_group(key: str, parcels: List[Transaction], is_reimbursement: bool) -> InstallmentGroup:
    ordered = sorted(parcels, key=_parcel_sort_key)
    first = ordered[0]
    total = sum((p.amount for p in ordered), Decimal("0"))
    paid = [p for p in ordered if p.is_paid is not False]
    dates = [d for d in (p.occurs_on for p in ordered) if d is not None]
    description = most_common_first_seen(p.description for p in ordered) or first.description
    return InstallmentGroup(
        key=key,
        description=description,
        category=first.category,
        payment_method=first.payment_method,
        type=first.type,
        total_installments=max(p.installments or 0 for p in ordered),
        total_amount=total,
        paid_amount=sum((p.amount for p in paid), Decimal("0")),
        paid_count=len(paid),
        parcels=tuple(ordered),
        start_date=min(dates) if dates else None,
        end_date=max(dates) if dates else None,
        is_shared=any(p.is_shared for p in ordered),
        shared_with=next((p.shared_with for p in ordered if p.shared_with), None),
        related_transaction_id=first.related_transaction_id,
        is_reimbursement=is_reimbursement,
    )


def group_installments(records: Iterable[Transaction]) -> List[InstallmentGroup]:
    """Group parcels (``installments > 1``) into purchases.

    Parameters
    ----------
    records : Iterable[Transaction]
        Snapshot of the store; non-parcel records are ignored.

    Returns
    -------
    List[InstallmentGroup]
        One group per key, newest purchase first (groups with no parseable
        date last, then by key). Reimbursement parcels of shared purchases
        are returned as separate groups flagged ``is_reimbursement``.
    """
    snapshot = [r for r in records if not r.is_virtual]
    reimbursements = _reimbursement_ids(snapshot)

    buckets: Dict[Tuple[bool, str], List[Transaction]] = {}
    for t in snapshot:
        if not t.is_installment():
            continue
        side = t.id in reimbursements
        buckets.setdefault((side, installment_group_key(t)), []).append(t)

    groups = [_build_group(key, items, side) for (side, key), items in buckets.items()]
    # Newest first; the sort is stable so ties keep key order.
    groups.sort(key=lambda g: (g.key, g.is_reimbursement))
    groups.sort(key=lambda g: g.start_date or date.min, reverse=True)
    log.debug("Grouped %d parcels into %d groups", sum(len(v) for v in buckets.values()), len(groups))
    return groups


# --- Date recalculation -------------------------------------------------------


def _parcel_positions(parcels: Sequence[Transaction]) -> List[int]:
    indices = [p.current_installment for p in parcels]
    if all(i is not None and i >= 1 for i in indices) and len(set(indices)) == len(indices):
        return [int(i) for i in indices]  # type: ignore[arg-type]
    return list(range(1, len(parcels) + 1))


def recalculate_installment_dates(
    group: InstallmentGroup,
    due_day: int,
    start_month: int,
    start_year: int,
) -> List[Tuple[str, date]]:
    """
    Re-project every parcel of ``group`` onto a new schedule.

    Parcel ``k`` is due on ``due_day`` of the month ``k - 1`` months after
    ``(start_year, start_month)``, clamped to the month's length. ``k`` is the
    parcel's ``current_installment``; when indices are missing or repeated, the
    parcel's position in the group is used instead. Nothing is renumbered.

    Returns
    -------
    List[Tuple[str, date]]
        ``(parcel id, new date)`` in parcel order; empty for an empty group.

    Raises
    ------
    ValueError
        If ``due_day`` is outside 1..31 or the start month/year is invalid.
    """
    if not 1 <= due_day <= 31:
        raise ValueError(f"Due day must be between 1 and 31, got {due_day!r}")
    anchor = validate_period(start_month, start_year)
    parcels = group.parcels
    return [
        (p.id, anchor.shift(k - 1).on_day(due_day))
        for p, k in zip(parcels, _parcel_positions(parcels))
    ]


def plan_installments(
    total: Union[Decimal, int, str],
    count: int,
    first_date: date,
) -> List[PlannedParcel]:
    """Split a purchase of ``total`` into ``count`` monthly parcels.

    Every parcel is ``total / count`` rounded to cents; the rounding remainder
    goes to the first parcel so the parcels add up to ``total`` exactly.
    """
    if count < 1:
        raise ValueError(f"Installment count must be positive, got {count!r}")
    total = Decimal(str(total))
    share = round_money(total / count)
    remainder = total - share * count
    return [
        PlannedParcel(
            current_installment=k,
            date=add_months(first_date, k - 1, anchor_day=first_date.day),
            amount=share + remainder if k == 1 else share,
        )
        for k in range(1, count + 1)
    ]


# --- Views --------------------------------------------------------------------


def filter_installment_groups(
    groups: Iterable[InstallmentGroup],
    status: Union[InstallmentStatus, str] = InstallmentStatus.ALL,
    txn_type: Optional[Union[TransactionType, str]] = None,
    search: str = "",
) -> List[InstallmentGroup]:
    """Filter groups by progress, type and a case-insensitive search term.

    The search matches description, category or payment method.
    """
    status = InstallmentStatus(status) if not isinstance(status, InstallmentStatus) else status
    wanted_type = TransactionType.from_value(txn_type) if txn_type not in (None, "", "all") else None
    out: List[InstallmentGroup] = []
    for g in groups:
        if status is not InstallmentStatus.ALL and g.status is not status:
            continue
        if wanted_type is not None and g.type is not wanted_type:
            continue
        if search and not any(
            contains_casefold(field, search)
            for field in (g.description, g.category, g.payment_method)
        ):
            continue
        out.append(g)
    return out


def installment_stats(groups: Iterable[InstallmentGroup]) -> InstallmentStats:
    in_progress = completed = shared = 0
    total_paid = Decimal("0")
    total_remaining = Decimal("0")
    for g in groups:
        total_paid += g.paid_amount
        if g.is_completed:
            completed += 1
        else:
            in_progress += 1
            total_remaining += g.remaining_amount
        if g.is_shared:
            shared += 1
    return InstallmentStats(
        in_progress_count=in_progress,
        completed_count=completed,
        total_paid=total_paid,
        total_remaining=total_remaining,
        shared_count=shared,
    )
