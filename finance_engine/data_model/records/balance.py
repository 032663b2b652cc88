from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, List

from finance_engine.data_model.interfaces import IToDict, RecursiveDictValue

from .transaction import Transaction

_ZERO = Decimal("0")


@dataclass
class Balance:
    """
    What the user and one counterparty owe each other.

    "Owed to user" comes from 50/50 expenses the user paid; "user owes" comes
    from expenses the counterparty paid in full (``i_owe``). Each side is split
    into settled and pending parts; ``net_balance`` is positive when the
    counterparty owes the user.
    """

    counterparty: str
    total_owed_to_user: Decimal = _ZERO
    total_user_owes: Decimal = _ZERO
    settled_owed_to_user: Decimal = _ZERO
    settled_user_owes: Decimal = _ZERO
    pending_owed_to_user: Decimal = _ZERO
    pending_user_owes: Decimal = _ZERO
    transaction_count: int = 0
    expenses: List[Transaction] = field(default_factory=list)
    reimbursements: List[Transaction] = field(default_factory=list)

    @property
    def net_balance(self) -> Decimal:
        return self.pending_owed_to_user - self.pending_user_owes

    @property
    def is_settled(self) -> bool:
        return self.pending_owed_to_user == _ZERO and self.pending_user_owes == _ZERO

    def to_dict(self) -> dict[str, RecursiveDictValue]:
        return {
            "counterparty": self.counterparty,
            "total_owed_to_user": str(self.total_owed_to_user),
            "total_user_owes": str(self.total_user_owes),
            "settled_owed_to_user": str(self.settled_owed_to_user),
            "settled_user_owes": str(self.settled_user_owes),
            "pending_owed_to_user": str(self.pending_owed_to_user),
            "pending_user_owes": str(self.pending_user_owes),
            "net_balance": str(self.net_balance),
            "transaction_count": self.transaction_count,
        }


@dataclass(frozen=True)
class LedgerTotals:
    total_owed_to_user: Decimal
    total_user_owes: Decimal
    pending_owed_to_user: Decimal
    pending_user_owes: Decimal
    counterparty_count: int

    @property
    def net_balance(self) -> Decimal:
        return self.pending_owed_to_user - self.pending_user_owes


if TYPE_CHECKING:
    _is_i_to_dict: type[IToDict] = Balance
