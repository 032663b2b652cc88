# finance_engine/data_model/records/__init__.py
from .balance import Balance, LedgerTotals
from .installment_group import InstallmentGroup, InstallmentStats, PlannedParcel
from .occurrence import Occurrence, parse_synthetic_id, synthetic_occurrence_id
from .summaries import FinancialSummary, MonthView, OccurrenceResolution, RecurringStats
from .transaction import Transaction

__all__ = [
    "Balance",
    "LedgerTotals",
    "InstallmentGroup",
    "InstallmentStats",
    "PlannedParcel",
    "Occurrence",
    "parse_synthetic_id",
    "synthetic_occurrence_id",
    "FinancialSummary",
    "MonthView",
    "OccurrenceResolution",
    "RecurringStats",
    "Transaction",
]
