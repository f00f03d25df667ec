"""
Reconcile the map exports of a data directory from the command line.

Runs one full pass over the six CSV exports:
- status (03.03.12)
- timing log (03.11.40)
- driver assignment (03.11.29)
- invoices (03.02.37)
- payment confirmations (cora)
- payment-condition lookup (01.20.01.27)

and prints the category counts plus the maps matching --category / --search.
"""

import argparse
import json
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

import sys
sys.path.append(str(Path(__file__).resolve().parents[1]))

from core.config import get_settings
from core.observability import configure_logging
from models.maps import AggregateResult, FilterCategory, MapRecord
from reconciliation.engine import run_pass
from reconciliation.errors import ReconciliationError
from reconciliation.filters import filter_maps
from reconciliation.normalize import DATE_FORMAT, format_local_date
from sources.loader import load_directory


def parse_reference_date(value: str) -> date:
    """argparse type for --today (dd/mm/yyyy)."""
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected dd/mm/yyyy, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Reconcile logistics map exports")
    parser.add_argument("--data-dir", type=Path, help="Directory with the CSV exports (default: MAPS_DATA_DIR)")
    parser.add_argument("--today", type=parse_reference_date, help="Reference date, dd/mm/yyyy (default: today)")
    parser.add_argument(
        "--category",
        choices=[c.value for c in FilterCategory],
        help="Only list maps in this category",
    )
    parser.add_argument("--search", default="", help="Filter by map, driver, plate or invoice")
    parser.add_argument("--output", type=Path, help="Output JSON file for the full result")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON structured logs")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    configure_logging(
        level=settings.log_level,
        json_format=args.json_logs or settings.log_json,
        force=True,
    )

    data_dir = args.data_dir or settings.data_dir
    today = args.today or date.today()

    print("=" * 60)
    print(f"MAP RECONCILIATION - {format_local_date(today)}")
    print("=" * 60)

    try:
        sources = load_directory(data_dir, settings.source_encoding)
        result = run_pass(sources, today)
    except ReconciliationError as e:
        print(f"\n❌ {e}")
        return 1

    category = FilterCategory(args.category) if args.category else None
    maps = filter_maps(result, category=category, search=args.search, today=today)

    print_result(result)
    print_maps(maps, category, args.search)

    if args.output:
        args.output.write_text(result.model_dump_json(indent=2), encoding="utf-8")
        print(f"\nResults written to {args.output}")

    return 0


def print_result(result: AggregateResult) -> None:
    """Print category counts in a readable format."""
    print(f"\nMaps: {len(result.maps)}")
    print("\nCOUNTS:")
    for category in FilterCategory:
        label = result.future_label if category == FilterCategory.FUTURE else category.value
        print(f"  {label:<20} {result.count(category):>5}")


def print_maps(maps: List[MapRecord], category: Optional[FilterCategory], search: str) -> None:
    """Print one line per map, flagging auto-reopened and pickup-only maps."""
    heading = category.value if category else "All maps"
    if search:
        heading += f" matching {search!r}"
    print(f"\n{heading.upper()} ({len(maps)}):")

    for m in maps:
        flags = []
        if m.is_auto_reopened:
            flags.append("⚠️ REABERTO")
        if m.is_pickup_only:
            flags.append("RECOLHA")
        print(
            f"  - [{m.id}] {m.issue_date_text} {m.status or '---'} | {m.driver} / {m.plate} | "
            f"NFs: {len(m.invoices)} | pago {m.financial.paid:.2f} prazo {m.financial.deferred:.2f} "
            f"pendente {m.financial.pending:.2f} {' '.join(flags)}".rstrip()
        )


if __name__ == "__main__":
    sys.exit(main())
