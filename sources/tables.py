"""Keyed source tables for one reconciliation pass.

Each table indexes its rows by normalized key once, so every join in the pass
is a dictionary lookup. Rows whose key normalizes to "" are kept for iteration
but never indexed, so they can never be joined.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List, Mapping, Optional

from reconciliation.errors import NoRecognizedSources
from reconciliation.normalize import normalize_key
from sources.columns import (
    CONDITION_CODE,
    CONFIRMATION_INVOICE_NUMBER,
    DRIVER_MAP_ID,
    INVOICE_MAP_ID,
    STATUS_MAP_ID,
    STATUS_RAW_MAP_ID,
    TIMING_MAP_ID,
    FieldSpec,
    SourceName,
)
from sources.parser import ParsedSource, SourceRow, parse_source


class SourceTable:
    """Rows of one source with a key index (key → rows in source order)."""

    def __init__(self, name: str, rows: List[SourceRow], key: FieldSpec):
        self.name = name
        self.rows = list(rows)
        self.key = key
        self._index: Dict[str, List[SourceRow]] = defaultdict(list)
        for row in self.rows:
            row_key = normalize_key(key.resolve(row))
            if row_key:
                self._index[row_key].append(row)

    @classmethod
    def empty(cls, name: str, key: FieldSpec) -> "SourceTable":
        return cls(name, [], key)

    def first(self, key: str) -> Optional[SourceRow]:
        """First row matching a normalized key, or None."""
        if not key:
            return None
        matches = self._index.get(key)
        return matches[0] if matches else None

    def all(self, key: str) -> List[SourceRow]:
        """Every row matching a normalized key, in source order."""
        if not key:
            return []
        return list(self._index.get(key, ()))

    def __contains__(self, key: str) -> bool:
        return bool(key) and key in self._index

    def __iter__(self) -> Iterator[SourceRow]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class SourceSet:
    """The six sources of a pass, parsed and indexed.

    The status export appears twice: as header-mapped records (iteration
    order of the pass) and as raw positional rows (issue date lookup).
    The timing log is positional only.
    """
    status: SourceTable
    status_raw: SourceTable
    timing_log: SourceTable
    drivers: SourceTable
    invoices: SourceTable
    confirmations: SourceTable
    conditions: SourceTable
    supplied: FrozenSet[SourceName] = field(default_factory=frozenset)

    @property
    def missing(self) -> List[SourceName]:
        return [name for name in SourceName if name not in self.supplied]

    def row_counts(self) -> Dict[str, int]:
        """Data rows per supplied source (header rows excluded)."""
        tables = {
            SourceName.STATUS: self.status,
            SourceName.TIMING_LOG: self.timing_log,
            SourceName.DRIVER_ASSIGNMENT: self.drivers,
            SourceName.INVOICES: self.invoices,
            SourceName.PAYMENT_CONFIRMATIONS: self.confirmations,
            SourceName.CONDITION_LOOKUP: self.conditions,
        }
        counts = {}
        for name in self.supplied:
            rows = len(tables[name])
            # Positional tables still carry their header row
            if name == SourceName.TIMING_LOG and rows:
                rows -= 1
            counts[name.value] = rows
        return counts

    @classmethod
    def from_texts(cls, texts: Mapping) -> "SourceSet":
        """Parse and index the sources of a pass.

        Args:
            texts: Logical source name (str or SourceName) → decoded CSV text.
                Unknown names are ignored; None or empty texts count as absent.

        Raises:
            NoRecognizedSources: if none of the six sources is present
        """
        by_name: Dict[str, str] = {}
        for name, text in texts.items():
            key = name.value if isinstance(name, SourceName) else str(name)
            if text:
                by_name[key] = text

        supplied = frozenset(s for s in SourceName if s.value in by_name)
        if not supplied:
            raise NoRecognizedSources(
                supplied=[str(k) for k in texts.keys()],
                expected=[s.value for s in SourceName],
            )

        parsed: Dict[SourceName, ParsedSource] = {
            s: parse_source(by_name[s.value]) if s in supplied else ParsedSource()
            for s in SourceName
        }

        return cls(
            status=SourceTable(SourceName.STATUS.value, parsed[SourceName.STATUS].records, STATUS_MAP_ID),
            status_raw=SourceTable(SourceName.STATUS.value, parsed[SourceName.STATUS].rows, STATUS_RAW_MAP_ID),
            timing_log=SourceTable(SourceName.TIMING_LOG.value, parsed[SourceName.TIMING_LOG].rows, TIMING_MAP_ID),
            drivers=SourceTable(
                SourceName.DRIVER_ASSIGNMENT.value, parsed[SourceName.DRIVER_ASSIGNMENT].records, DRIVER_MAP_ID
            ),
            invoices=SourceTable(SourceName.INVOICES.value, parsed[SourceName.INVOICES].records, INVOICE_MAP_ID),
            confirmations=SourceTable(
                SourceName.PAYMENT_CONFIRMATIONS.value,
                parsed[SourceName.PAYMENT_CONFIRMATIONS].records,
                CONFIRMATION_INVOICE_NUMBER,
            ),
            conditions=SourceTable(
                SourceName.CONDITION_LOOKUP.value, parsed[SourceName.CONDITION_LOOKUP].records, CONDITION_CODE
            ),
            supplied=supplied,
        )
