from enum import Enum
from typing import Optional


class Frequency(Enum):
    """
    Step of a recurring series. Only fixed monthly and yearly steps exist.
    """
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def from_value(cls, value: object) -> Optional["Frequency"]:
        """
        Convert a stored frequency; blank or missing values mean "no frequency".
        """
        if value is None or isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text in ("", "nan", "none"):
            return None
        for freq in cls:
            if freq.value == text:
                return freq
        raise ValueError(f"Unknown frequency: {value!r}")

    @property
    def step_months(self) -> int:
        return 1 if self is Frequency.MONTHLY else 12
