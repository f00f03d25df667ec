"""Reconciliation engine for logistics maps.

Exposes high-level functions:
- reconcile(source_set, today) -> AggregateResult
- run_pass(sources, today) -> AggregateResult

A pass is rebuilt from scratch every time: parse the six exports, index them
by normalized key, reconcile each status row into a MapRecord, then count
categories. Nothing is cached between passes.
"""

import time
import uuid
from datetime import date
from typing import Mapping, Optional, Set

from core.observability import (
    get_logger,
    record_pass_completed,
    record_pass_failed,
    record_pass_started,
    record_processing_time,
    record_source_rows,
    with_correlation,
)
from core.observability.logging import log_pass_complete, log_pass_error, log_pass_start
from models.maps import AggregateResult
from reconciliation.aggregate import Aggregator
from reconciliation.maps import reconcile_map
from reconciliation.normalize import normalize_key
from sources.columns import STATUS_MAP_ID
from sources.tables import SourceSet

logger = get_logger(__name__)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


# =============================================================================
# Core Pass
# =============================================================================

def reconcile(source_set: SourceSet, today: date) -> AggregateResult:
    """Reconcile indexed sources into an AggregateResult.

    One MapRecord is produced per distinct normalized key of the status
    export, in status order. Rows with an empty key are skipped; when a key
    repeats, its first row wins.

    Args:
        source_set: Parsed and indexed sources
        today: Reference date for the past/today/future boundary

    Returns:
        AggregateResult with maps, category counts and the future label
    """
    aggregator = Aggregator(today)
    seen: Set[str] = set()

    for row in source_set.status:
        key = normalize_key(STATUS_MAP_ID.resolve(row))
        if not key:
            continue
        if key in seen:
            logger.debug("Duplicate status row skipped", extra_fields={"key": key})
            continue
        seen.add(key)
        aggregator.add(reconcile_map(row, key, source_set))

    return aggregator.result()


# =============================================================================
# Main Entry Point
# =============================================================================

def run_pass(sources: Mapping, today: Optional[date] = None) -> AggregateResult:
    """Run one full reconciliation pass over decoded CSV texts.

    Args:
        sources: Logical source name → decoded CSV text
        today: Reference date; defaults to the local calendar date

    Returns:
        AggregateResult

    Raises:
        NoRecognizedSources: if none of the six sources is supplied
    """
    today = today or date.today()
    pass_id = uuid.uuid4().hex[:12]
    started = time.perf_counter()

    with with_correlation(pass_id=pass_id, stage="reconcile"):
        record_pass_started(pass_id)
        log_pass_start(pass_id, sources=sorted(str(getattr(k, "value", k)) for k in sources), today=str(today))

        try:
            parse_started = time.perf_counter()
            source_set = SourceSet.from_texts(sources)
            record_processing_time("parse", _elapsed_ms(parse_started))

            for missing in source_set.missing:
                logger.warning(
                    f"Source not supplied, continuing with an empty table: {missing.value}",
                    extra_fields={"source": missing.value},
                )
            for name, rows in source_set.row_counts().items():
                record_source_rows(name, rows)

            join_started = time.perf_counter()
            result = reconcile(source_set, today)
            record_processing_time("reconcile", _elapsed_ms(join_started))
        except Exception as e:
            record_pass_failed(pass_id, str(e))
            log_pass_error(pass_id, str(e), error_type=type(e).__name__)
            raise

        duration_ms = _elapsed_ms(started)
        invoices = sum(len(m.invoices) for m in result.maps)
        record_pass_completed(pass_id, duration_ms=duration_ms, maps=len(result.maps), invoices=invoices)
        log_pass_complete(
            pass_id,
            duration_ms=round(duration_ms, 2),
            maps=len(result.maps),
            invoices=invoices,
            future_label=result.future_label,
        )

    return result
