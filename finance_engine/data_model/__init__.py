# finance_engine/data_model/__init__.py
from .interfaces import (
    EditScope, Frequency, InstallmentStatus, IToDict,
    ITransaction, PaymentStatus, RecursiveDictValue, TransactionType)
from .records import (
    Balance, FinancialSummary, InstallmentGroup, InstallmentStats, LedgerTotals,
    MonthView, Occurrence, OccurrenceResolution, PlannedParcel, RecurringStats,
    Transaction, parse_synthetic_id, synthetic_occurrence_id)
__all__ = [
    "EditScope", "Frequency", "InstallmentStatus", "IToDict",
    "ITransaction", "PaymentStatus", "RecursiveDictValue", "TransactionType",
    "Balance", "FinancialSummary", "InstallmentGroup", "InstallmentStats",
    "LedgerTotals", "MonthView", "Occurrence", "OccurrenceResolution",
    "PlannedParcel", "RecurringStats", "Transaction", "parse_synthetic_id",
    "synthetic_occurrence_id"]
