"""
Shared-expense ledger.

Balances between the user and each counterparty are derived from two kinds of
shared expense:

- split (``i_owe`` false): the user paid, the counterparty owes half. The
  half is settled once the linked reimbursement income is marked paid.
- full debt (``i_owe`` true): the counterparty paid, the user owes all of it.
  The expense's own ``is_paid`` says whether it was paid back.

Reimbursement incomes are the payment events of split expenses; they are never
counted as debts of their own.
"""

# finance_engine/controllers/ledger.py
from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from finance_engine.data_model.interfaces import PaymentStatus, TransactionType
from finance_engine.data_model.records import Balance, LedgerTotals, Transaction
from finance_engine.utilities.constants import (
    REIMBURSEMENT_CATEGORY,
    REIMBURSEMENT_SEPARATOR,
    SPLIT_SHARE,
)
from finance_engine.utilities.core_util import (
    contains_casefold,
    is_null_or_whitespace,
    round_money,
)

log = logging.getLogger(__name__)


class _Snapshot:
    """Stored records by id, plus reimbursement incomes by the expense they point at."""

    def __init__(self, records: Iterable[Transaction]) -> None:
        self.by_id: Dict[str, Transaction] = {r.id: r for r in records if not r.is_virtual}
        self.back_links: Dict[str, Transaction] = {}
        for r in self.by_id.values():
            if r.type is TransactionType.INCOME and r.related_transaction_id:
                self.back_links.setdefault(r.related_transaction_id, r)

    @classmethod
    def of(
        cls, records: Union[Iterable[Transaction], Mapping[str, Transaction]]
    ) -> "_Snapshot":
        return cls(records.values() if isinstance(records, Mapping) else records)

    def expenses(self) -> Iterable[Transaction]:
        return (t for t in self.by_id.values() if _is_shared_expense(t))

    def reimbursement_of(self, expense: Transaction) -> Optional[Transaction]:
        """The income settling ``expense``, following the link from either side.

        The expense's own link wins; an income pointing back at the expense is
        used when the expense has no link or its link is orphaned.
        """
        if expense.related_transaction_id:
            linked = self.by_id.get(expense.related_transaction_id)
            if linked is not None:
                return linked
            log.debug(
                "Expense %s links to missing record %s", expense.id, expense.related_transaction_id
            )
        return self.back_links.get(expense.id)


def _is_shared_expense(t: Transaction) -> bool:
    return (
        t.is_shared
        and not is_null_or_whitespace(t.shared_with)
        and t.type is TransactionType.EXPENSE
        and not t.is_virtual
    )


def _settlement_target(expense: Transaction, snapshot: _Snapshot) -> Optional[Transaction]:
    if expense.i_owe:
        return expense
    return snapshot.reimbursement_of(expense)


def settlement_target(
    expense: Transaction, records: Union[Iterable[Transaction], Mapping[str, Transaction]]
) -> Optional[Transaction]:
    """The record whose ``is_paid`` decides whether ``expense`` is settled.

    A full debt settles on itself; a split expense on its reimbursement income,
    whichever side carries the ``related_transaction_id`` link.
    ``None`` for a split expense without a (resolvable) reimbursement.
    """
    return _settlement_target(expense, _Snapshot.of(records))


def is_settled(
    expense: Transaction, records: Union[Iterable[Transaction], Mapping[str, Transaction]]
) -> bool:
    target = settlement_target(expense, records)
    return target is not None and target.is_paid


def _apply(balance: Balance, t: Transaction, snapshot: _Snapshot) -> None:
    """Add one shared expense to ``balance``."""
    balance.transaction_count += 1
    balance.expenses.append(t)
    if t.i_owe:
        balance.total_user_owes += t.amount
        if t.is_paid:
            balance.settled_user_owes += t.amount
        else:
            balance.pending_user_owes += t.amount
        return

    # Same cents as the reimbursement income planned for this expense.
    share = round_money(t.amount * SPLIT_SHARE)
    balance.total_owed_to_user += share
    income = snapshot.reimbursement_of(t)
    if income is not None:
        balance.reimbursements.append(income)
    if income is not None and income.is_paid:
        balance.settled_owed_to_user += share
    else:
        balance.pending_owed_to_user += share


def compute_ledger(records: Iterable[Transaction], counterparty: str) -> Balance:
    """Balance between the user and ``counterparty``.

    An unknown counterparty yields an all-zero balance.
    """
    snapshot = _Snapshot(records)
    balance = Balance(counterparty=counterparty)
    for t in snapshot.expenses():
        if t.shared_with == counterparty:
            _apply(balance, t, snapshot)
    return balance


def compute_all_ledgers(records: Iterable[Transaction]) -> Dict[str, Balance]:
    """Balances for every counterparty, in one pass, ordered by name."""
    snapshot = _Snapshot(records)
    balances: Dict[str, Balance] = {}
    for t in snapshot.expenses():
        name = t.shared_with or ""
        if name not in balances:
            balances[name] = Balance(counterparty=name)
        _apply(balances[name], t, snapshot)
    return {name: balances[name] for name in sorted(balances, key=str.casefold)}


def ledger_totals(balances: Iterable[Balance]) -> LedgerTotals:
    zero = Decimal("0")
    owed = owes = pending_owed = pending_owes = zero
    count = 0
    for b in balances:
        owed += b.total_owed_to_user
        owes += b.total_user_owes
        pending_owed += b.pending_owed_to_user
        pending_owes += b.pending_user_owes
        count += 1
    return LedgerTotals(
        total_owed_to_user=owed,
        total_user_owes=owes,
        pending_owed_to_user=pending_owed,
        pending_user_owes=pending_owes,
        counterparty_count=count,
    )


def counterparties(records: Iterable[Transaction], known: Iterable[str] = ()) -> List[str]:
    """Registered friends plus everyone named on a shared record, sorted by name."""
    names = {n for n in known if n}
    names.update(r.shared_with for r in records if r.is_shared and r.shared_with)
    return sorted(names, key=str.casefold)


def shared_entries(
    records: Iterable[Transaction],
    counterparty: Optional[str] = None,
    status: Union[PaymentStatus, str] = PaymentStatus.ALL,
    search: str = "",
) -> List[Transaction]:
    """Shared expenses, newest first, filtered by counterparty, settlement and text.

    The search matches description, category or counterparty name.
    """
    status = PaymentStatus(status) if not isinstance(status, PaymentStatus) else status
    snapshot = _Snapshot(records)
    out: List[Transaction] = []
    for t in snapshot.expenses():
        if counterparty is not None and t.shared_with != counterparty:
            continue
        if search and not any(
            contains_casefold(field, search) for field in (t.description, t.category, t.shared_with)
        ):
            continue
        if status is not PaymentStatus.ALL:
            target = _settlement_target(t, snapshot)
            paid = target is not None and target.is_paid
            if paid != (status is PaymentStatus.PAID):
                continue
        out.append(t)
    out.sort(key=lambda t: (t.iso_date, t.id), reverse=True)
    return out


def plan_reimbursement(
    expense: Transaction,
    reimbursement_id: str,
    created_at: float = 0.0,
) -> Tuple[Transaction, Transaction]:
    """
    Build the reimbursement income of a split expense and link both ways.

    Returns
    -------
    Tuple[Transaction, Transaction]
        ``(expense, income)``: the expense now pointing at the income, and the
        unpaid income for half the amount, rounded to cents. Persist both.

    Raises
    ------
    ValueError
        If ``expense`` is not a split shared expense.
    """
    if not _is_shared_expense(expense) or expense.i_owe:
        raise ValueError(f"Transaction {expense.id!r} is not a split shared expense")
    income = Transaction(
        id=reimbursement_id,
        date=expense.date,
        amount=round_money(expense.amount * SPLIT_SHARE),
        type=TransactionType.INCOME,
        description=f"{expense.description}{REIMBURSEMENT_SEPARATOR}{expense.shared_with}",
        category=REIMBURSEMENT_CATEGORY,
        payment_method=expense.payment_method,
        created_at=created_at,
        is_paid=False,
        is_recurring=expense.is_recurring,
        frequency=expense.frequency,
        related_transaction_id=expense.id,
    )
    return replace(expense, related_transaction_id=income.id), income
