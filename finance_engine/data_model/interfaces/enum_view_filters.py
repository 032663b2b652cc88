from enum import Enum


class InstallmentStatus(Enum):
    """
    Progress filter for installment groups.
    """
    ALL = "all"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PaymentStatus(Enum):
    """
    Settlement filter for shared expenses.
    """
    ALL = "all"
    PENDING = "pending"
    PAID = "paid"


class EditScope(Enum):
    """
    How far an edit of a recurring or installment record reaches.
    """
    SINGLE = "single"
    ALL_FUTURE = "all_future"
    ALL = "all"
