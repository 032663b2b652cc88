# finance_engine/utilities/converters_scalar.py
from __future__ import annotations

import json
import math
import re
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Final, List, Optional, overload

from .constants import ISO_DATE_FORMAT


def _bad(value: Any, target: str) -> ValueError:
    return ValueError(f"Cannot convert {type(value).__name__} to {target}")


def is_missing(value: Any) -> bool:
    """True for ``None``, blank strings and NaN-like values (how pandas reports empty cells)."""
    if value is None:
        return True
    # NaN and NaT are the only values not equal to themselves
    if isinstance(value, (float, Decimal)) or type(value).__name__ == "NaTType":
        if value != value:
            return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def to_decimal(value: Any) -> Decimal:
    """
    Convert amounts coming from the store (numbers or strings) to Decimal.

    Accepts:
      • Decimal → returned as-is
      • int → exact Decimal
      • float → via ``str`` to avoid binary artifacts (``0.1`` → ``Decimal('0.1')``)
      • str → currency symbols and thousands separators removed; "1.234,56" and
        "1,234.56" are both understood (the last separator is the decimal mark)

    Raises:
        ValueError: bools, NaN, empty or digit-free strings.
    """
    if isinstance(value, bool):
        raise _bad(value, "Decimal")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"Cannot convert non-finite float {value!r} to Decimal")
        return Decimal(str(value))
    if not isinstance(value, str):
        raise _bad(value, "Decimal")

    cleaned = clean_number_like_string(value)
    try:
        return Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(
            f"Could not parse Decimal from {value!r} (normalized to {cleaned!r})"
        ) from e


def clean_number_like_string(value: str) -> str:
    s = value.strip().replace("\xa0", " ").replace(_UNICODE_MINUS, "-")
    if not s:
        raise ValueError("Empty string cannot be converted to Decimal")

    neg = False
    if s.startswith("(") and s.endswith(")"):
        neg = True
        s = s[1:-1].strip()
    if s.endswith("-"):
        neg = not neg
        s = s[:-1].strip()

    s = _NON_DIGIT_KEEP_SEP.sub("", s)
    if s.startswith("+"):
        s = s[1:]
    if s.startswith("-"):
        neg = not neg
        s = s[1:]

    if not re.search(r"\d", s):
        raise ValueError(f"No digits found in input: {value!r}")

    has_comma = "," in s
    has_dot = "." in s
    if has_comma and has_dot:
        # the last separator is the decimal mark
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif has_comma:
        after = len(s) - s.rfind(",") - 1
        s = s.replace(",", ".") if after in (1, 2) else s.replace(",", "")

    if neg:
        s = "-" + s
    return s


def to_bool(value: Any, default: bool = False) -> bool:
    """Lenient boolean: missing values fall back to ``default``."""
    if is_missing(value):
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, (int, float, Decimal)):
        return bool(value)
    raise _bad(value, "bool")


def to_optional_int(value: Any) -> Optional[int]:
    if is_missing(value):
        return None
    if isinstance(value, bool):
        raise _bad(value, "int")
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        if value != int(value):
            raise ValueError(f"Non-integer value {value} for int field")
        return int(value)
    if isinstance(value, str):
        return int(to_decimal(value))
    raise _bad(value, "int")


def to_optional_str(value: Any) -> Optional[str]:
    if is_missing(value):
        return None
    return str(value).strip()


@overload
def parse_iso_date(value: date, /) -> date: ...
@overload
def parse_iso_date(value: object, /) -> Optional[date]: ...


def parse_iso_date(value: object, /) -> Optional[date]:
    """
    Parse a stored ``YYYY-MM-DD`` date.

    ``datetime`` values are reduced to their date and ISO datetimes keep only the
    date part. Anything else, including impossible dates like ``2024-02-30``,
    yields ``None`` instead of raising.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    txt = value.strip()
    if "T" in txt:
        txt = txt.split("T", 1)[0]
    if not _ISO_DATE_RE.match(txt):
        return None
    try:
        return datetime.strptime(txt, ISO_DATE_FORMAT).date()
    except ValueError:
        return None


def to_date(value: object, /) -> date:
    """Strict variant of :func:`parse_iso_date`."""
    parsed = parse_iso_date(value)
    if parsed is None:
        raise ValueError(f"Unrecognized date: {value!r}")
    return parsed


def to_epoch_millis(value: Any) -> float:
    """
    Convert a creation timestamp to epoch milliseconds.

    Accepts numbers and numeric strings (already milliseconds), ``datetime`` (naive values are taken
    as UTC) and ISO 8601 strings with an optional trailing ``Z``. Missing values
    become ``0.0`` so they always lose a last-write-wins comparison.
    """
    if is_missing(value):
        return 0.0
    if isinstance(value, bool):
        raise _bad(value, "timestamp")
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time())
    if isinstance(value, str):
        s = value.strip()
        if _EPOCH_MILLIS_RE.match(s):
            # text-typed columns (CSV read as str) carry the raw millisecond count
            return float(s)
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(s)
        except ValueError as e:
            raise ValueError(f"Unrecognized timestamp: {value!r}") from e
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp() * 1000.0
    raise _bad(value, "timestamp")


def to_str_list(value: Any) -> List[str]:
    """
    Normalize a list-valued column.

    Accepts a real sequence, a JSON array string (``'["2024-05-15"]'``) or a
    ``;``/``,`` separated string. Missing values become an empty list.
    """
    if is_missing(value):
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(v).strip() for v in value if not is_missing(v)]
    if isinstance(value, str):
        s = value.strip()
        if s.startswith("["):
            try:
                loaded = json.loads(s)
            except json.JSONDecodeError as e:
                raise ValueError(f"Malformed list value: {value!r}") from e
            return to_str_list(loaded)
        return [part.strip() for part in re.split(r"[;,]", s) if part.strip()]
    raise _bad(value, "list[str]")


_ISO_DATE_RE: Final[re.Pattern[str]] = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_EPOCH_MILLIS_RE: Final[re.Pattern[str]] = re.compile(r"^[+-]?\d+(?:\.\d+)?$")
_NON_DIGIT_KEEP_SEP: Final[re.Pattern[str]] = re.compile(r"[^\d,.\-\(\)+]+")
_TRUE_STRINGS: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_UNICODE_MINUS = "\u2212"
