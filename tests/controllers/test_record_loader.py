import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

from finance_engine.controllers.record_loader import load_records, transaction_from_row
from finance_engine.data_model.interfaces import Frequency, TransactionType

CSV_TEXT = """id,date,amount,type,description,category,payment_method,is_paid,is_recurring,frequency,excluded_dates,installments,current_installment,created_at
t1,2024-01-15,100.00,expense,Rent,Housing,Checking,,true,monthly,2024-05-15;2024-06-15,,,2024-01-01T10:00:00Z
p1,2024-02-05,"1.234,56",expense,Laptop,Tech,Card,false,false,,,6,1,
bad,2024-02-05,abc,expense,Broken,Misc,Card,,,,,,,
odd,31/02/2024,5,income,Odd date,Misc,Cash,true,,,,,,
"""


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_csv_applies_store_defaults_and_skips_bad_rows(tmp_path, caplog):
    # Arrange
    path = _write(tmp_path / "snapshot.csv", CSV_TEXT)

    # Act
    with caplog.at_level(logging.WARNING, logger="finance_engine.controllers.record_loader"):
        records = load_records(path)

    # Assert
    assert [r.id for r in records] == ["t1", "p1", "odd"]
    t1, p1, odd = records

    assert t1.is_paid is True
    assert t1.is_recurring is True
    assert t1.frequency is Frequency.MONTHLY
    assert t1.excluded_dates == frozenset({"2024-05-15", "2024-06-15"})
    assert t1.amount == Decimal("100.00")
    assert t1.occurs_on == date(2024, 1, 15)
    assert t1.created_at == pytest.approx(1704103200000.0)

    assert p1.amount == Decimal("1234.56")
    assert p1.is_paid is False
    assert p1.installments == 6
    assert p1.current_installment == 1
    assert p1.frequency is None
    assert p1.created_at == 0.0

    assert odd.type is TransactionType.INCOME
    assert odd.occurs_on is None
    assert odd.date == "31/02/2024"

    assert any("Skipping row 2" in r.getMessage() for r in caplog.records)


def test_load_csv_keeps_rows_with_numeric_created_at(tmp_path, caplog):
    # Arrange
    path = _write(
        tmp_path / "snapshot.csv",
        "id,date,amount,type,created_at\n"
        "t1,2024-01-15,100,expense,1704103200000\n"
        "t2,2024-01-16,50,income,2024-01-01T10:00:00Z\n",
    )

    # Act
    with caplog.at_level(logging.WARNING, logger="finance_engine.controllers.record_loader"):
        records = load_records(path)

    # Assert
    assert [r.id for r in records] == ["t1", "t2"]
    assert records[0].created_at == pytest.approx(1704103200000.0)
    assert records[0].created_at == pytest.approx(records[1].created_at)
    assert not any("Skipping row" in r.getMessage() for r in caplog.records)


def test_load_json_accepts_camel_case_and_lists(tmp_path):
    # Arrange
    rows = [
        {
            "id": "x1",
            "date": "2024-03-10",
            "amount": 200,
            "type": "expense",
            "description": "Dinner",
            "paymentMethod": "Card",
            "isShared": True,
            "sharedWith": "Alex",
            "relatedTransactionId": "r1",
            "excludedDates": ["2024-04-10"],
            "isPaid": None,
        },
        {
            "id": "r1",
            "date": "2024-03-10",
            "amount": 100.5,
            "type": "income",
            "isPaid": False,
            "relatedTransactionId": "x1",
        },
    ]
    path = _write(tmp_path / "snapshot.json", json.dumps(rows))

    # Act
    x1, r1 = load_records(path)

    # Assert
    assert x1.payment_method == "Card"
    assert x1.is_shared is True
    assert x1.shared_with == "Alex"
    assert x1.related_transaction_id == "r1"
    assert x1.excluded_dates == frozenset({"2024-04-10"})
    assert x1.is_paid is True
    assert x1.amount == Decimal("200")
    assert r1.amount == Decimal("100.5")
    assert r1.is_paid is False
    assert r1.excluded_dates == frozenset()


def test_load_xlsx(tmp_path):
    # Arrange
    path = tmp_path / "snapshot.xlsx"
    pd.DataFrame(
        [
            {"id": "a", "date": "2024-01-31", "amount": 10, "type": "expense", "is_paid": True},
            {"id": "b", "date": "2024-02-01", "amount": 20.25, "type": "income", "is_paid": False},
        ]
    ).to_excel(path, index=False)

    # Act
    records = load_records(path)

    # Assert
    assert [r.id for r in records] == ["a", "b"]
    assert records[0].occurs_on == date(2024, 1, 31)
    assert records[1].amount == Decimal("20.25")
    assert records[1].is_paid is False


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_records(tmp_path / "nope.csv")


def test_unsupported_format_raises(tmp_path):
    path = _write(tmp_path / "snapshot.txt", "id,date,amount\n")
    with pytest.raises(ValueError, match="Unsupported"):
        load_records(path)


def test_missing_required_column_raises(tmp_path):
    path = _write(tmp_path / "snapshot.csv", "id,date\nx,2024-01-01\n")
    with pytest.raises(ValueError, match="amount"):
        load_records(path)


# --- transaction_from_row ------------------------------------------------------


def test_row_defaults():
    t = transaction_from_row({"id": " a ", "date": "2024-01-01", "amount": "12"})
    assert t.id == "a"
    assert t.type is TransactionType.EXPENSE
    assert t.is_paid is True
    assert t.is_recurring is False
    assert t.frequency is None
    assert t.description == ""
    assert t.excluded_dates == frozenset()


def test_row_with_json_encoded_excluded_dates():
    t = transaction_from_row(
        {"id": "a", "date": "2024-01-01", "amount": 1, "excluded_dates": '["2024-02-01"]'}
    )
    assert t.excluded_dates == frozenset({"2024-02-01"})


@pytest.mark.parametrize(
    "row",
    [
        {"id": None, "date": "2024-01-01", "amount": "1"},
        {"id": "a", "date": "2024-01-01", "amount": "n/a"},
        {"id": "a", "date": "2024-01-01", "amount": "1", "type": "transfer"},
        {"id": "a", "date": "2024-01-01", "amount": "1", "frequency": "weekly"},
    ],
)
def test_unreadable_rows_raise_value_error(row):
    with pytest.raises(ValueError):
        transaction_from_row(row)
