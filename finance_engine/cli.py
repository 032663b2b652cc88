"""
Command line front end: load a snapshot and print one derived view as JSON.

    finance-engine SNAPSHOT month --month 5 --year 2024
    finance-engine SNAPSHOT timeline SERIES_ID --horizon 6 --today 2024-05-10
    finance-engine SNAPSHOT installments --status in_progress
    finance-engine SNAPSHOT recalc GROUP_KEY --due-day 15 --start-month 1 --start-year 2024
    finance-engine SNAPSHOT ledger --counterparty Alex
    finance-engine SNAPSHOT recurring
"""

# finance_engine/cli.py
from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from finance_engine.controllers.installments import (
    filter_installment_groups,
    group_installments,
    installment_stats,
    recalculate_installment_dates,
)
from finance_engine.controllers.ledger import (
    compute_all_ledgers,
    compute_ledger,
    ledger_totals,
)
from finance_engine.controllers.occurrences import (
    month_view,
    next_occurrence,
    occurrence_count,
    occurrence_timeline,
    recurring_stats,
)
from finance_engine.controllers.record_loader import load_records
from finance_engine.data_model.interfaces import InstallmentStatus
from finance_engine.data_model.records import Transaction
from finance_engine.utilities.config_logging import configure_logging
from finance_engine.utilities.constants import DEFAULT_LOG_DIR, DEFAULT_TIMELINE_HORIZON
from finance_engine.utilities.converters_scalar import to_date

log = logging.getLogger(__name__)


def _iso_date(value: str) -> date:
    try:
        return to_date(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="finance-engine",
        description="Derive occurrences, installment groups and shared balances from a transaction snapshot.",
    )
    ap.add_argument("snapshot", type=Path, help="Snapshot file (.csv, .xlsx, .xls or .json)")
    ap.add_argument("--today", type=_iso_date, default=None,
                    help="Reference date (yyyy-mm-dd) for past/future partitioning (default: today)")
    ap.add_argument("--output", type=Path, default=None, help="Write JSON here instead of stdout")
    ap.add_argument("--log-dir", type=Path, default=DEFAULT_LOG_DIR,
                    help=f"Directory for the rotating log file (default: {DEFAULT_LOG_DIR})")
    ap.add_argument("--verbose", action="store_true", help="Echo debug logging to the console")

    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("month", help="Entries and totals for one calendar month")
    p.add_argument("--month", type=int, required=True)
    p.add_argument("--year", type=int, required=True)

    p = sub.add_parser("timeline", help="Past exceptions and upcoming occurrences of one series")
    p.add_argument("series_id")
    p.add_argument("--horizon", type=int, default=DEFAULT_TIMELINE_HORIZON,
                   help=f"Upcoming occurrences to list (default: {DEFAULT_TIMELINE_HORIZON})")

    sub.add_parser("recurring", help="Totals of all recurring series")

    p = sub.add_parser("installments", help="Installment purchases and their progress")
    p.add_argument("--status", choices=[s.value for s in InstallmentStatus], default="all")
    p.add_argument("--type", dest="txn_type", choices=["all", "income", "expense"], default="all")
    p.add_argument("--search", default="")

    p = sub.add_parser("recalc", help="New due dates for every parcel of one installment group")
    p.add_argument("group_key")
    p.add_argument("--due-day", type=int, required=True)
    p.add_argument("--start-month", type=int, required=True)
    p.add_argument("--start-year", type=int, required=True)

    p = sub.add_parser("ledger", help="Balances with counterparties")
    p.add_argument("--counterparty", default=None, help="Only this counterparty (default: all)")
    return ap


def _find(records: Sequence[Transaction], txn_id: str) -> Transaction:
    for r in records:
        if r.id == txn_id:
            return r
    raise SystemExit(f"No transaction with id {txn_id!r} in snapshot")


def run(args: argparse.Namespace, records: List[Transaction], today: date) -> Dict[str, Any]:
    """Compute the payload for the selected subcommand."""
    if args.command == "month":
        view = month_view(records, args.month, args.year)
        return {
            "period": view.period.key(),
            "total_income": str(view.summary.total_income),
            "total_expense": str(view.summary.total_expense),
            "balance": str(view.summary.balance),
            "entries": [t.to_dict() for t in view.entries],
        }

    if args.command == "timeline":
        series = _find(records, args.series_id)
        upcoming = next_occurrence(series, today, records)
        return {
            "series_id": series.id,
            "occurrence_count": occurrence_count(series, today),
            "next_occurrence": upcoming.date.isoformat() if upcoming else None,
            "occurrences": [
                o.to_dict() for o in occurrence_timeline(series, records, args.horizon, today)
            ],
        }

    if args.command == "recurring":
        stats = recurring_stats(records)
        return {
            "total": stats.total,
            "income_count": stats.income_count,
            "expense_count": stats.expense_count,
            "monthly_income": str(stats.monthly_income),
            "monthly_expense": str(stats.monthly_expense),
            "monthly_balance": str(stats.monthly_balance),
            "annualized_income": str(stats.annualized_income),
            "annualized_expense": str(stats.annualized_expense),
            "annualized_balance": str(stats.annualized_balance),
        }

    if args.command == "installments":
        groups = group_installments(records)
        primary = [g for g in groups if not g.is_reimbursement]
        progress = installment_stats(primary)
        shown = filter_installment_groups(primary, args.status, args.txn_type, args.search)
        return {
            "in_progress_count": progress.in_progress_count,
            "completed_count": progress.completed_count,
            "total_paid": str(progress.total_paid),
            "total_remaining": str(progress.total_remaining),
            "shared_count": progress.shared_count,
            "groups": [g.to_dict() for g in shown],
            "reimbursement_groups": [g.to_dict() for g in groups if g.is_reimbursement],
        }

    if args.command == "recalc":
        group = next((g for g in group_installments(records) if g.key == args.group_key), None)
        if group is None:
            raise SystemExit(f"No installment group with key {args.group_key!r} in snapshot")
        dates = recalculate_installment_dates(
            group, args.due_day, args.start_month, args.start_year
        )
        return {"group_key": group.key, "dates": {txn_id: d.isoformat() for txn_id, d in dates}}

    if args.command == "ledger":
        if args.counterparty is not None:
            balances = {args.counterparty: compute_ledger(records, args.counterparty)}
        else:
            balances = compute_all_ledgers(records)
        totals = ledger_totals(balances.values())
        return {
            "net_balance": str(totals.net_balance),
            "pending_owed_to_user": str(totals.pending_owed_to_user),
            "pending_user_owes": str(totals.pending_user_owes),
            "balances": [b.to_dict() for b in balances.values()],
        }

    raise SystemExit(f"Unknown command: {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    log_file = configure_logging(args.log_dir, console_level="DEBUG" if args.verbose else "WARNING")
    log.debug("Logging to %s", log_file)

    if not args.snapshot.exists():
        raise SystemExit(f"Snapshot not found: {args.snapshot}")
    if not args.snapshot.is_file():
        raise SystemExit(f"Snapshot path is not a file: {args.snapshot}")

    try:
        records = load_records(args.snapshot)
        payload = run(args, records, args.today or date.today())
    except ValueError as e:
        raise SystemExit(str(e)) from e

    text = json.dumps(payload, indent=2)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


if __name__ == "__main__":
    main()
