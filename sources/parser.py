"""CSV parsing for the exports.

Exports arrive as decoded text. They are read with pandas as plain strings
(no type inference, blank cells as "") and exposed as SourceRow objects that
answer both header lookups and positional lookups.
"""

import csv
from dataclasses import dataclass, field
from io import StringIO
from typing import Dict, List, Optional, Sequence

import pandas as pd

from core.observability.logging import get_logger


logger = get_logger(__name__)

CANDIDATE_DELIMITERS = (",", ";", "\t")


class SourceRow:
    """One CSV row, addressable by header name or by column position."""

    __slots__ = ("values", "_columns")

    def __init__(self, values: Sequence[str], columns: Optional[Dict[str, int]] = None):
        self.values = tuple(values)
        self._columns = columns or {}

    def at(self, position: int) -> str:
        if 0 <= position < len(self.values):
            return self.values[position]
        return ""

    def get(self, name: str) -> str:
        position = self._columns.get(name)
        if position is None:
            return ""
        return self.at(position)

    def is_blank(self) -> bool:
        return not any(v.strip() for v in self.values)

    def __repr__(self) -> str:
        return f"SourceRow({list(self.values)!r})"


@dataclass
class ParsedSource:
    """A parsed export: the header, header-mapped records and raw rows."""
    header: List[str] = field(default_factory=list)
    records: List[SourceRow] = field(default_factory=list)
    rows: List[SourceRow] = field(default_factory=list)


def detect_delimiter(text: str) -> str:
    """Pick the delimiter occurring most often in the first non-blank line."""
    for line in text.splitlines():
        if not line.strip():
            continue
        counts = {d: line.count(d) for d in CANDIDATE_DELIMITERS}
        best = max(CANDIDATE_DELIMITERS, key=lambda d: counts[d])
        return best if counts[best] else ","
    return ","


def _max_field_count(text: str, delimiter: str, quoted: bool = True) -> int:
    """Upper bound on fields per record.

    When quoted, lines are joined while a quote is left open, so a quoted
    cell spanning lines counts as one record. Quoted delimiters only
    overestimate.
    """
    widest = 0
    pending = 0
    open_quote = False
    for line in text.splitlines():
        pending += line.count(delimiter)
        if quoted and line.count('"') % 2:
            open_quote = not open_quote
        if not open_quote:
            widest = max(widest, pending)
            pending = 0
    return max(widest, pending) + 1


def _read_frame(text: str, delimiter: str, quoting: int) -> pd.DataFrame:
    width = _max_field_count(text, delimiter, quoted=quoting != csv.QUOTE_NONE)
    return pd.read_csv(
        StringIO(text),
        sep=delimiter,
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        quoting=quoting,
        engine="python",
    ).fillna("")


def parse_rows(text: str) -> List[List[str]]:
    """Parse CSV text into raw rows, header row included.

    Blank lines are skipped. Short rows are padded with "" up to the widest
    line, so every row has the same width. Text with an unbalanced quote is
    re-read with quoting disabled: quote characters stay in the cells and
    every line is one row.
    """
    if not text:
        return []
    text = text.lstrip("\ufeff")
    if not text.strip():
        return []

    delimiter = detect_delimiter(text)

    try:
        frame = _read_frame(text, delimiter, csv.QUOTE_MINIMAL)
    except pd.errors.ParserError as e:
        logger.warning(
            f"Malformed quoting, re-reading without quotes: {e}",
            extra_fields={"delimiter": delimiter},
        )
        frame = _read_frame(text, delimiter, csv.QUOTE_NONE)

    return [[str(v) for v in row] for row in frame.values.tolist()]


def parse_source(text: Optional[str]) -> ParsedSource:
    """Parse an export into header, header-mapped records and raw rows.

    Header names are trimmed; when a header repeats, its first column wins.
    Records skip rows whose cells are all blank.
    """
    raw = parse_rows(text or "")
    if not raw:
        return ParsedSource()

    header = [name.strip() for name in raw[0]]
    columns: Dict[str, int] = {}
    for position, name in enumerate(header):
        if name and name not in columns:
            columns[name] = position

    rows = [SourceRow(values) for values in raw]
    records = [SourceRow(values, columns) for values in raw[1:]]
    records = [r for r in records if not r.is_blank()]

    return ParsedSource(header=header, records=records, rows=rows)
