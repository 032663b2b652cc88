from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from finance_engine.data_model.interfaces import TransactionType
from finance_engine.utilities.calendar_util import Period

from .transaction import Transaction


@dataclass(frozen=True)
class FinancialSummary:
    total_income: Decimal
    total_expense: Decimal

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expense

    @classmethod
    def of(cls, entries: Iterable[Transaction]) -> "FinancialSummary":
        income = Decimal("0")
        expense = Decimal("0")
        for t in entries:
            if t.type is TransactionType.INCOME:
                income += t.amount
            else:
                expense += t.amount
        return cls(total_income=income, total_expense=expense)


@dataclass(frozen=True)
class MonthView:
    """Everything displayed for one calendar month, newest first."""

    period: Period
    entries: Tuple[Transaction, ...]
    summary: FinancialSummary


@dataclass(frozen=True)
class RecurringStats:
    total: int
    income_count: int
    expense_count: int
    monthly_income: Decimal
    monthly_expense: Decimal
    yearly_income: Decimal
    yearly_expense: Decimal

    @property
    def monthly_balance(self) -> Decimal:
        return self.monthly_income - self.monthly_expense

    @property
    def annualized_income(self) -> Decimal:
        return self.monthly_income * 12 + self.yearly_income

    @property
    def annualized_expense(self) -> Decimal:
        return self.monthly_expense * 12 + self.yearly_expense

    @property
    def annualized_balance(self) -> Decimal:
        return self.annualized_income - self.annualized_expense


@dataclass(frozen=True)
class OccurrenceResolution:
    """
    The pair of writes that edits one occurrence.

    ``template`` is the series template as it must be stored afterwards (for a
    generated slot, with the slot date added to ``excluded_dates``);
    ``exception`` is the materialized record that replaces the slot (``None``
    when the occurrence is only skipped). Callers must persist both or neither.
    """

    template: Transaction
    exception: Optional[Transaction]

    @property
    def records(self) -> Tuple[Transaction, ...]:
        if self.exception is None:
            return (self.template,)
        return (self.template, self.exception)
