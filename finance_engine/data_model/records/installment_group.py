from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional, Tuple

from finance_engine.data_model.interfaces import (
    InstallmentStatus,
    IToDict,
    RecursiveDictValue,
    TransactionType,
)

from .transaction import Transaction


@dataclass(frozen=True)
class InstallmentGroup:
    """
    Represents one parceled purchase: every parcel sharing a group key.

    The key is the stored ``installment_group_id`` or, for legacy records
    without one, the composite ``description-payment_method-category-type-count``.
    ``parcels`` are ordered by installment index with date as tie-break, and
    ``description`` is the most common parcel description.
    Reimbursement parcels of shared purchases form their own groups
    (``is_reimbursement``) and never count toward a primary group.
    """

    key: str
    description: str
    category: str
    payment_method: str
    type: TransactionType
    total_installments: int
    total_amount: Decimal
    paid_amount: Decimal
    paid_count: int
    parcels: Tuple[Transaction, ...]
    start_date: Optional[date]
    end_date: Optional[date]
    is_shared: bool = False
    shared_with: Optional[str] = None
    related_transaction_id: Optional[str] = None
    is_reimbursement: bool = False

    @property
    def remaining_amount(self) -> Decimal:
        return self.total_amount - self.paid_amount

    @property
    def is_completed(self) -> bool:
        return self.paid_count >= self.total_installments

    @property
    def progress(self) -> float:
        """Paid fraction of the parcel count, in ``[0, 1]``."""
        if self.total_installments <= 0:
            return 0.0
        return min(1.0, self.paid_count / self.total_installments)

    @property
    def status(self) -> InstallmentStatus:
        return InstallmentStatus.COMPLETED if self.is_completed else InstallmentStatus.IN_PROGRESS

    def to_dict(self) -> dict[str, RecursiveDictValue]:
        return {
            "key": self.key,
            "description": self.description,
            "category": self.category,
            "payment_method": self.payment_method,
            "type": self.type.value,
            "total_installments": self.total_installments,
            "total_amount": str(self.total_amount),
            "paid_amount": str(self.paid_amount),
            "paid_count": self.paid_count,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "is_shared": self.is_shared,
            "shared_with": self.shared_with,
            "is_reimbursement": self.is_reimbursement,
            "parcels": [p.id for p in self.parcels],
        }


@dataclass(frozen=True)
class InstallmentStats:
    in_progress_count: int
    completed_count: int
    total_paid: Decimal
    total_remaining: Decimal
    shared_count: int


@dataclass(frozen=True)
class PlannedParcel:
    """One parcel of a purchase that is about to be split; not yet stored."""

    current_installment: int
    date: date
    amount: Decimal


if TYPE_CHECKING:
    _is_i_to_dict: type[IToDict] = InstallmentGroup
