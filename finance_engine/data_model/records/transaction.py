from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable, Optional, Union

from finance_engine.data_model.interfaces import (
    Frequency,
    IToDict,
    ITransaction,
    RecursiveDictValue,
    TransactionType,
)
from finance_engine.utilities.converters_scalar import parse_iso_date


@dataclass(frozen=True)
class Transaction:
    """
    One stored transaction, as read from a snapshot of the store.

    A record plays one of several roles depending on its flags:

      • series template      ← ``is_recurring`` is true
      • materialized exception ← ``recurring_group_id`` names a template
      • installment parcel   ← ``installments`` > 1
      • shared expense       ← ``is_shared`` with a ``shared_with`` counterparty
      • reimbursement        ← income whose ``related_transaction_id`` names a shared expense

    ``date`` keeps whatever the store returned (ISO string or ``datetime.date``);
    :attr:`occurs_on` is the parsed view and is ``None`` for malformed values.
    Instances are immutable; edits are expressed with :func:`dataclasses.replace`.
    """

    # region Core Fields

    id: str
    date: Union[str, date]
    amount: Decimal
    type: TransactionType = TransactionType.EXPENSE
    description: str = ""
    category: str = ""
    payment_method: str = ""
    created_at: float = 0.0
    is_paid: bool = True

    # endregion Core Fields

    # region Recurrence

    is_recurring: bool = False
    frequency: Optional[Frequency] = None
    excluded_dates: frozenset[str] = field(default_factory=frozenset)
    recurring_group_id: Optional[str] = None

    # endregion Recurrence

    # region Installments

    installments: Optional[int] = None
    current_installment: Optional[int] = None
    installment_group_id: Optional[str] = None

    # endregion Installments

    # region Sharing

    is_shared: bool = False
    shared_with: Optional[str] = None
    i_owe: bool = False
    related_transaction_id: Optional[str] = None

    # endregion Sharing

    is_virtual: bool = False

    def __post_init__(self) -> None:
        # Accept plain values from callers; normalize once so every consumer sees one shape.
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))
        if not isinstance(self.type, TransactionType):
            object.__setattr__(self, "type", TransactionType.from_value(self.type))
        if self.frequency is not None and not isinstance(self.frequency, Frequency):
            object.__setattr__(self, "frequency", Frequency.from_value(self.frequency))
        if not isinstance(self.excluded_dates, frozenset):
            object.__setattr__(
                self, "excluded_dates", frozenset(_iso(d) for d in self.excluded_dates)
            )

    # region Derived views

    @property
    def occurs_on(self) -> Optional[date]:
        return parse_iso_date(self.date)

    @property
    def iso_date(self) -> str:
        parsed = self.occurs_on
        return parsed.isoformat() if parsed is not None else str(self.date)

    def is_series_template(self) -> bool:
        return bool(self.is_recurring)

    def is_installment(self) -> bool:
        return self.installments is not None and self.installments > 1

    def is_exception_of(self, template: "Transaction") -> bool:
        return (
            not self.is_recurring
            and self.recurring_group_id is not None
            and self.recurring_group_id == template.id
        )

    def is_excluded(self, d: date) -> bool:
        return d.isoformat() in self.excluded_dates

    @property
    def signed_amount(self) -> Decimal:
        return self.amount * self.type.sign

    # endregion Derived views

    def with_excluded(self, dates: Iterable[Union[str, date]]) -> "Transaction":
        """Return a copy whose ``excluded_dates`` also contain ``dates``."""
        return replace(
            self, excluded_dates=self.excluded_dates | frozenset(_iso(d) for d in dates)
        )

    def to_dict(self) -> dict[str, RecursiveDictValue]:
        """
        Convert the record to the store's snake_case row shape.
        """
        d: dict[str, RecursiveDictValue] = {
            "id": self.id,
            "date": self.iso_date,
            "amount": str(self.amount),
            "type": self.type.value,
            "description": self.description,
            "category": self.category,
            "payment_method": self.payment_method,
            "created_at": self.created_at,
            "is_paid": self.is_paid,
            "is_recurring": self.is_recurring,
            "frequency": self.frequency.value if self.frequency else None,
            "excluded_dates": sorted(self.excluded_dates),
            "recurring_group_id": self.recurring_group_id,
            "installments": self.installments,
            "current_installment": self.current_installment,
            "installment_group_id": self.installment_group_id,
            "is_shared": self.is_shared,
            "shared_with": self.shared_with,
            "i_owe": self.i_owe,
            "related_transaction_id": self.related_transaction_id,
        }
        if self.is_virtual:
            d["is_virtual"] = True
        return d


def _iso(value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


if TYPE_CHECKING:
    _is_i_transaction: type[ITransaction] = Transaction
    _is_i_to_dict: type[IToDict] = Transaction
