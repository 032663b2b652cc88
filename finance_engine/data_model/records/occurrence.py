from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from finance_engine.data_model.interfaces import (
    IToDict,
    RecursiveDictValue,
    TransactionType,
)
from finance_engine.utilities.calendar_util import Period
from finance_engine.utilities.constants import SYNTHETIC_ID_MARKER

from .transaction import Transaction


def synthetic_occurrence_id(template_id: str, period: Period) -> str:
    """Stable id of a generated occurrence: ``{template_id}_recurring_{YYYY}-{MM}``."""
    return f"{template_id}{SYNTHETIC_ID_MARKER}{period.key()}"


def parse_synthetic_id(occurrence_id: str) -> Optional[tuple[str, Period]]:
    """Inverse of :func:`synthetic_occurrence_id`; ``None`` for ids of stored records."""
    template_id, marker, key = occurrence_id.rpartition(SYNTHETIC_ID_MARKER)
    if not marker or not template_id:
        return None
    year, _, month = key.partition("-")
    if not (year.isdigit() and month.isdigit()):
        return None
    return template_id, Period(int(year), int(month))


@dataclass(frozen=True)
class Occurrence:
    """
    One calendar slot of a recurring series.

    ``source`` is the record whose values were used: the template for generated
    (virtual) occurrences and for the template's own month, the materialized
    exception when the slot was edited (``is_modified``).
    """

    id: str
    template_id: str
    date: date
    amount: Decimal
    type: TransactionType
    is_paid: bool
    source: Transaction
    is_virtual: bool = False
    is_modified: bool = False
    occurrence_number: int = 0

    @property
    def period(self) -> Period:
        return Period.of(self.date)

    def numbered(self, n: int) -> "Occurrence":
        return replace(self, occurrence_number=n)

    def as_transaction(self) -> Transaction:
        """Project the occurrence back to a record for display alongside stored ones."""
        if not self.is_virtual:
            return self.source
        return replace(
            self.source,
            id=self.id,
            date=self.date.isoformat(),
            amount=self.amount,
            type=self.type,
            is_paid=self.is_paid,
            is_virtual=True,
        )

    def to_dict(self) -> dict[str, RecursiveDictValue]:
        return {
            "id": self.id,
            "template_id": self.template_id,
            "date": self.date.isoformat(),
            "amount": str(self.amount),
            "type": self.type.value,
            "is_paid": self.is_paid,
            "is_virtual": self.is_virtual,
            "is_modified": self.is_modified,
            "occurrence_number": self.occurrence_number,
            "source_id": self.source.id,
        }


if TYPE_CHECKING:
    _is_i_to_dict: type[IToDict] = Occurrence
