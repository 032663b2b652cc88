# finance_engine/data_model/interfaces/__init__.py
"""
Interfaces and Enums for the finance data model.
"""

from .enum_frequency import Frequency
from .enum_transaction_type import TransactionType
from .enum_view_filters import EditScope, InstallmentStatus, PaymentStatus
from .i_to_dict import IToDict, RecursiveDictValue
from .i_transaction import ITransaction

__all__ = [
    "Frequency",
    "TransactionType",
    "EditScope",
    "InstallmentStatus",
    "PaymentStatus",
    "IToDict",
    "RecursiveDictValue",
    "ITransaction",
]
