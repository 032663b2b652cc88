# finance_engine/data_model/interfaces/i_transaction.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from typing_extensions import Protocol, runtime_checkable

from .enum_frequency import Frequency
from .enum_transaction_type import TransactionType
from .i_to_dict import IToDict


@runtime_checkable
class ITransaction(IToDict, Protocol):
    """Structural shape of a stored transaction as the engine reads it."""

    id: str
    description: str
    amount: Decimal
    type: TransactionType
    category: str
    payment_method: str
    created_at: float

    # region Recurrence

    is_recurring: bool
    frequency: Optional[Frequency]
    excluded_dates: frozenset[str]
    recurring_group_id: Optional[str]

    # endregion Recurrence

    # region Installments

    installments: Optional[int]
    current_installment: Optional[int]
    installment_group_id: Optional[str]

    # endregion Installments

    # region Sharing

    is_shared: bool
    shared_with: Optional[str]
    i_owe: bool
    related_transaction_id: Optional[str]

    # endregion Sharing

    is_paid: bool
    is_virtual: bool

    @property
    def occurs_on(self) -> Optional[date]: ...
    def is_series_template(self) -> bool: ...
    def is_installment(self) -> bool: ...
