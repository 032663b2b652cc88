"""
Load a snapshot of the transaction store from a file.

This is the only module that touches the filesystem. Rows use the store's
snake_case column names (camelCase headers are accepted too) and are mapped
leniently: store defaults are applied to empty cells, rows whose amount, type
or id cannot be read are skipped with a warning, and malformed dates are kept
as-is so the engine can ignore them on its own.
"""

# finance_engine/controllers/record_loader.py
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import pandas as pd

from finance_engine.data_model.interfaces import Frequency, TransactionType
from finance_engine.data_model.records import Transaction
from finance_engine.utilities.converters_scalar import (
    is_missing,
    parse_iso_date,
    to_bool,
    to_decimal,
    to_epoch_millis,
    to_optional_int,
    to_optional_str,
    to_str_list,
)

log = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("id", "date", "amount")
SUPPORTED_SUFFIXES = (".csv", ".xlsx", ".xls", ".json")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", str(name).strip()).lower()


def _date_value(value: Any) -> str:
    if is_missing(value):
        return ""
    parsed = parse_iso_date(value)
    return parsed.isoformat() if parsed is not None else str(value).strip()


def transaction_from_row(row: Mapping[str, Any]) -> Transaction:
    """
    Map one store row to a :class:`Transaction`.

    ``is_paid`` defaults to true and ``excluded_dates`` to empty, as the store
    does for null columns.

    Raises
    ------
    ValueError
        If the id is missing, or the amount, type or frequency cannot be read.
    """
    r: Dict[str, Any] = {_snake(k): v for k, v in row.items()}
    txn_id = to_optional_str(r.get("id"))
    if not txn_id:
        raise ValueError("Row has no id")
    txn_type = r.get("type")
    return Transaction(
        id=txn_id,
        date=_date_value(r.get("date")),
        amount=to_decimal(r.get("amount")),
        type=TransactionType.from_value("expense" if is_missing(txn_type) else txn_type),
        description=to_optional_str(r.get("description")) or "",
        category=to_optional_str(r.get("category")) or "",
        payment_method=to_optional_str(r.get("payment_method")) or "",
        created_at=to_epoch_millis(r.get("created_at")),
        is_paid=to_bool(r.get("is_paid"), default=True),
        is_recurring=to_bool(r.get("is_recurring")),
        frequency=Frequency.from_value(None if is_missing(r.get("frequency")) else r.get("frequency")),
        excluded_dates=frozenset(to_str_list(r.get("excluded_dates"))),
        recurring_group_id=to_optional_str(r.get("recurring_group_id")),
        installments=to_optional_int(r.get("installments")),
        current_installment=to_optional_int(r.get("current_installment")),
        installment_group_id=to_optional_str(r.get("installment_group_id")),
        is_shared=to_bool(r.get("is_shared")),
        shared_with=to_optional_str(r.get("shared_with")),
        i_owe=to_bool(r.get("i_owe")),
        related_transaction_id=to_optional_str(r.get("related_transaction_id")),
    )


def _read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, dtype=str)
    if suffix in (".xlsx", ".xls"):
        return pd.read_excel(path, dtype=object)
    if suffix == ".json":
        return pd.read_json(path, orient="records", dtype=False, convert_dates=False)
    raise ValueError(
        f"Unsupported snapshot format {path.suffix!r}; expected one of {SUPPORTED_SUFFIXES}"
    )


def load_records(path: Union[str, Path]) -> List[Transaction]:
    """Load every readable transaction from a ``.csv``, ``.xlsx``/``.xls`` or ``.json`` snapshot.

    Parameters
    ----------
    path : str | Path
        Snapshot file. JSON files hold an array of row objects.

    Returns
    -------
    List[Transaction]
        Records in file order. Rows that fail :func:`transaction_from_row` are
        logged and skipped.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    ValueError
        If the format is unsupported or a required column is missing.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")

    df = _read_frame(path)
    df.columns = [_snake(c) for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Snapshot is missing columns: {missing}")

    df = df.astype(object).where(pd.notna(df), None)
    records: List[Transaction] = []
    for i, row in enumerate(df.to_dict(orient="records")):
        try:
            records.append(transaction_from_row(row))
        except ValueError as e:
            log.warning("Skipping row %d of %s: %s", i, path.name, e)
    log.info("Loaded %d of %d rows from %s", len(records), len(df), path)
    return records
