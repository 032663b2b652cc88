# finance_engine/utilities/constants.py
from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Final

ISO_DATE_FORMAT: Final[str] = "%Y-%m-%d"
MONTH_KEY_FORMAT: Final[str] = "{year:04d}-{month:02d}"

# {template_id}_recurring_{YYYY}-{MM}
SYNTHETIC_ID_MARKER: Final[str] = "_recurring_"

MONEY_QUANTUM: Final[Decimal] = Decimal("0.01")
SPLIT_SHARE: Final[Decimal] = Decimal("0.5")

REIMBURSEMENT_CATEGORY: Final[str] = "Other"
REIMBURSEMENT_SEPARATOR: Final[str] = " - "

DEFAULT_TIMELINE_HORIZON: Final[int] = 12

DEFAULT_LOG_DIR: Final[Path] = Path("logs")
LOG_FILE_NAME: Final[str] = "finance_engine.log"
