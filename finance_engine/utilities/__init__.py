from .calendar_util import Period, add_months, clamp_day, days_in_month, iter_periods
from .config_logging import LOGGING, configure_logging
from .converters_scalar import parse_iso_date, to_date, to_decimal
from .core_util import (
    contains_casefold,
    is_null_or_whitespace,
    most_common_first_seen,
    round_money,
)

__all__ = [
    "Period",
    "add_months",
    "clamp_day",
    "days_in_month",
    "iter_periods",
    "LOGGING",
    "configure_logging",
    "parse_iso_date",
    "to_date",
    "to_decimal",
    "contains_casefold",
    "is_null_or_whitespace",
    "most_common_first_seen",
    "round_money",
]
