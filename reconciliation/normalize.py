"""Key Normalization and Field Coercion Utilities.

Every export formats the map number differently ("0001234", "1.234",
"MAPA 1234"), so all joins go through ``normalize_key``:
1. Removes every non-digit character
2. Strips leading zeros
3. Trims whitespace

Examples:
    "0001.234"  → "1234"
    "MAPA 1234" → "1234"
    ""          → ""  (never joins)

The coercers below are total functions: dirty cells degrade to documented
defaults instead of raising.
"""

import math
import re
from datetime import date
from typing import Any, Optional

from models.maps import EPOCH_DATE, PLACEHOLDER


# Values the source systems write for "not yet recorded"
EMPTY_TIME_VALUES = {"", "00:00", "--:--", "00:00:00", "0"}

CURRENCY_SYMBOL = "R$"
DATE_FORMAT = "%d/%m/%Y"

_NON_DIGITS = re.compile(r"\D")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def normalize_key(value: Any) -> str:
    """Normalize an identifier into a join key.

    Args:
        value: Raw identifier cell (any type)

    Returns:
        Digit-only key without leading zeros; "" for empty input

    Examples:
        >>> normalize_key("0001")
        '1'
        >>> normalize_key("1.234/5")
        '12345'
        >>> normalize_key(None)
        ''
    """
    text = _text(value)
    if not text:
        return ""
    return _NON_DIGITS.sub("", text).lstrip("0").strip()


def to_upper_or_default(value: Any) -> str:
    """Uppercase and trim a text cell; PLACEHOLDER when empty.

    Examples:
        >>> to_upper_or_default(" joão ")
        'JOÃO'
        >>> to_upper_or_default("")
        '---'
    """
    text = _text(value).strip()
    if not text:
        return PLACEHOLDER
    return text.upper()


def is_blank_or_placeholder(value: Any) -> bool:
    text = _text(value).strip()
    return text == "" or text == PLACEHOLDER


def parse_currency(value: Any) -> float:
    """Parse a pt-BR currency cell ("R$ 1.234,56") into a float.

    Thousands separators (".") are dropped and the decimal comma becomes a
    point. Absent or unparsable input yields 0.0.

    Examples:
        >>> parse_currency("R$ 1.234,56")
        1234.56
        >>> parse_currency("abc")
        0.0
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    text = _text(value).replace(CURRENCY_SYMBOL, "").replace(".", "").replace(",", ".", 1).strip()
    if not text:
        return 0.0
    try:
        number = float(text)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def parse_local_date(text: Any) -> date:
    """Parse a "dd/mm/yyyy" date.

    Empty or malformed input yields EPOCH_DATE, which sorts before every real
    date and is never "today" or "future".

    Examples:
        >>> parse_local_date("05/01/2024")
        datetime.date(2024, 1, 5)
        >>> parse_local_date("")
        datetime.date(1970, 1, 1)
    """
    raw = _text(text).strip()
    if not raw:
        return EPOCH_DATE

    parts = raw.split("/")
    if len(parts) != 3:
        return EPOCH_DATE
    try:
        day, month, year = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError:
        return EPOCH_DATE


def format_local_date(value: date) -> str:
    """Format a date as "dd/mm/yyyy", the counterpart of parse_local_date."""
    return value.strftime(DATE_FORMAT)


def today_label(today: Optional[date] = None) -> str:
    """Reference date formatted like the exports ("dd/mm/yyyy").

    Args:
        today: Reference date; defaults to the local calendar date
    """
    return format_local_date(today or date.today())


def is_time_empty(text: Any) -> bool:
    """True when a time cell means "not yet recorded".

    Examples:
        >>> is_time_empty("--:--")
        True
        >>> is_time_empty("08:15")
        False
    """
    return _text(text).strip() in EMPTY_TIME_VALUES
