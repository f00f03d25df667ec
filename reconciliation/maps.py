"""Map reconciliation.

Joins one status row with the other exports by normalized key and assembles
the MapRecord:

    status row ──┬── status (raw, positional)  → issue date
                 ├── timing log (positional)   → TimingLog, auto-reopen
                 ├── driver assignment         → driver, plate
                 └── invoices (0..n)           → InvoiceRecords, FinancialSummary

Absent join targets degrade to defaults (placeholders, "--:--"); nothing in
here raises for dirty data.
"""

from typing import Optional

from core.observability import get_logger, with_correlation
from models.maps import EMPTY_TIME, PLACEHOLDER, MapRecord, TimingLog
from reconciliation.invoices import classify_invoices
from reconciliation.normalize import (
    is_blank_or_placeholder,
    is_time_empty,
    parse_currency,
    parse_local_date,
    to_upper_or_default,
)
from sources.columns import (
    AUTO_REOPEN_COLUMNS,
    DRIVER_NAME,
    DRIVER_PLATE,
    STATUS_ISSUE_DATE_POSITION,
    STATUS_MAP_ID,
    STATUS_SITUACAO,
    STATUS_TOTAL_VALUE,
    TIMING_COLUMNS,
)
from sources.parser import SourceRow
from sources.tables import SourceSet

logger = get_logger(__name__)

OPEN_STATUS = "aberto"
DEFAULT_TOTAL_VALUE = "0,00"


def read_timing(row: Optional[SourceRow]) -> TimingLog:
    """Read the eight timing fields of a timing-log row (all "--:--" if absent)."""
    if row is None:
        return TimingLog()
    values = {}
    for name, position in TIMING_COLUMNS.items():
        value = row.at(position).strip()
        values[name] = value or EMPTY_TIME
    return TimingLog(**values)


def is_auto_reopened(timing_row: Optional[SourceRow], status: str) -> bool:
    """True iff every checked timing column is recorded and the status is open."""
    if timing_row is None:
        return False
    if status.strip().lower() != OPEN_STATUS:
        return False
    return all(not is_time_empty(timing_row.at(position)) for position in AUTO_REOPEN_COLUMNS)


def is_pickup_only(driver: str, plate: str, total_value: str) -> bool:
    """True for a map with no driver, no plate and a zero declared total."""
    return (
        is_blank_or_placeholder(driver)
        and is_blank_or_placeholder(plate)
        and parse_currency(total_value) == 0
    )


def read_issue_date_text(raw_row: Optional[SourceRow]) -> str:
    if raw_row is None:
        return PLACEHOLDER
    return raw_row.at(STATUS_ISSUE_DATE_POSITION).strip() or PLACEHOLDER


def reconcile_map(row: SourceRow, key: str, sources: SourceSet) -> MapRecord:
    """Build the MapRecord for one status row.

    Args:
        row: Header-mapped status record
        key: The row's normalized (non-empty) map key
        sources: Indexed sources of the pass

    Returns:
        The assembled MapRecord
    """
    map_id = STATUS_MAP_ID.resolve(row).replace(".", "").strip()

    with with_correlation(map_id=map_id):
        status = STATUS_SITUACAO.resolve(row).strip()
        total_value = STATUS_TOTAL_VALUE.resolve(row).strip() or DEFAULT_TOTAL_VALUE

        issue_date_text = read_issue_date_text(sources.status_raw.first(key))

        timing_row = sources.timing_log.first(key)
        if timing_row is None:
            logger.debug("No timing log row", extra_fields={"key": key})

        driver_row = sources.drivers.first(key)
        if driver_row is None:
            logger.debug("No driver assignment row", extra_fields={"key": key})
            driver, plate = PLACEHOLDER, PLACEHOLDER
        else:
            driver = to_upper_or_default(DRIVER_NAME.resolve(driver_row))
            plate = to_upper_or_default(DRIVER_PLATE.resolve(driver_row))

        invoices, financial = classify_invoices(
            sources.invoices.all(key),
            sources.conditions,
            sources.confirmations,
        )

        return MapRecord(
            id=map_id,
            key=key,
            status=status,
            total_value=total_value,
            issue_date=parse_local_date(issue_date_text),
            issue_date_text=issue_date_text,
            driver=driver,
            plate=plate,
            timing=read_timing(timing_row),
            financial=financial,
            invoices=invoices,
            is_auto_reopened=is_auto_reopened(timing_row, status),
            is_pickup_only=is_pickup_only(driver, plate, total_value),
        )
