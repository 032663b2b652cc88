from enum import Enum


class TransactionType(Enum):
    """
    Direction of a transaction.
    """
    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def from_value(cls, value: "str | TransactionType") -> "TransactionType":
        """
        Convert a stored string ("income" / "expense", any case) to the enum.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for kind in cls:
            if kind.value == text:
                return kind
        raise ValueError(f"Unknown transaction type: {value!r}")

    @property
    def sign(self) -> int:
        return 1 if self is TransactionType.INCOME else -1
