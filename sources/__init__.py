"""Sources - parsing, indexing and loading of the six CSV exports.

Usage:
    from sources import SourceSet, load_directory

    texts = load_directory("data/")
    source_set = SourceSet.from_texts(texts)
    row = source_set.drivers.first("1234")
"""

from sources.columns import (
    AUTO_REOPEN_COLUMNS,
    FIELDS,
    SOURCE_FILE_PATTERNS,
    TIMING_COLUMNS,
    FieldSpec,
    SourceName,
)
from sources.parser import ParsedSource, SourceRow, detect_delimiter, parse_rows, parse_source
from sources.tables import SourceSet, SourceTable
from sources.loader import identify_source, load_directory

__all__ = [
    # Registry
    "SourceName",
    "SOURCE_FILE_PATTERNS",
    "FieldSpec",
    "FIELDS",
    "TIMING_COLUMNS",
    "AUTO_REOPEN_COLUMNS",
    # Parsing
    "SourceRow",
    "ParsedSource",
    "detect_delimiter",
    "parse_rows",
    "parse_source",
    # Tables
    "SourceTable",
    "SourceSet",
    # Loading
    "identify_source",
    "load_directory",
]
