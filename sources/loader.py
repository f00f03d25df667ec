"""Directory loader for the CSV exports.

Scans a directory tree for ``.csv`` files, identifies each one by the export
code in its file name and decodes it with the legacy encoding the exporting
system writes (ISO-8859-1 by default).
"""

from pathlib import Path
from typing import Dict, Optional, Union

from core.config import get_settings
from core.observability.logging import get_logger
from reconciliation.errors import SourceDirectoryNotFound
from sources.columns import SOURCE_FILE_PATTERNS, SourceName


logger = get_logger(__name__)


def identify_source(filename: Union[str, Path]) -> Optional[SourceName]:
    """Map a file name to its logical source, or None if unrecognized.

    Examples:
        >>> identify_source("Relatorio 03.03.12 - Situacao.CSV")
        <SourceName.STATUS: 'status'>
        >>> identify_source("notes.txt") is None
        True
    """
    name = Path(filename).name.lower()
    if not name.endswith(".csv"):
        return None
    for source, pattern in SOURCE_FILE_PATTERNS.items():
        if pattern in name:
            return source
    return None


def load_directory(path: Union[str, Path], encoding: Optional[str] = None) -> Dict[str, str]:
    """Read every recognized export under a directory.

    Files are visited in sorted path order; when two files map to the same
    source, the later one wins.

    Args:
        path: Directory to scan (recursively)
        encoding: Byte encoding of the exports; defaults to MAPS_SOURCE_ENCODING

    Returns:
        Logical source name → decoded CSV text (only recognized sources)

    Raises:
        SourceDirectoryNotFound: if ``path`` is not a directory
    """
    root = Path(path)
    if not root.is_dir():
        raise SourceDirectoryNotFound(root)

    encoding = encoding or get_settings().source_encoding
    texts: Dict[str, str] = {}

    for file_path in sorted(root.rglob("*")):
        if not file_path.is_file():
            continue
        source = identify_source(file_path.name)
        if source is None:
            continue
        if source.value in texts:
            logger.warning(
                f"Replacing earlier {source.value} export with {file_path.name}",
                extra_fields={"source_name": source.value},
            )
        texts[source.value] = file_path.read_bytes().decode(encoding, errors="replace")
        logger.debug(
            f"Loaded {file_path.name} as {source.value}",
            extra_fields={"bytes": file_path.stat().st_size},
        )

    logger.info(
        f"Loaded {len(texts)} source(s) from {root}",
        extra_fields={"sources": sorted(texts)},
    )
    return texts
