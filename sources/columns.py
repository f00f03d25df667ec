"""Source registry and field accessor table.

Each export names its columns differently across versions, so every logical
field is read through a FieldSpec: an ordered tuple of candidates tried in
priority order. A string candidate is a header name, an int candidate is a
column position. The first candidate holding a non-blank value wins.

Some fields are read by position only, because their header text changes
between export versions (the status issue date, the whole timing log).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union


class SourceName(str, Enum):
    """Logical names of the six exports."""
    STATUS = "status"
    TIMING_LOG = "timingLog"
    DRIVER_ASSIGNMENT = "driverAssignment"
    INVOICES = "invoices"
    PAYMENT_CONFIRMATIONS = "paymentConfirmations"
    CONDITION_LOOKUP = "conditionLookup"


# Case-insensitive substrings identifying each export's .csv file name
SOURCE_FILE_PATTERNS: Dict[SourceName, str] = {
    SourceName.STATUS: "03.03.12",
    SourceName.TIMING_LOG: "03.11.40",
    SourceName.DRIVER_ASSIGNMENT: "03.11.29",
    SourceName.INVOICES: "03.02.37",
    SourceName.PAYMENT_CONFIRMATIONS: "cora",
    SourceName.CONDITION_LOOKUP: "01.20.01.27",
}


Candidate = Union[str, int]


@dataclass(frozen=True)
class FieldSpec:
    """A logical field and its ordered candidate accessors."""
    name: str
    candidates: Tuple[Candidate, ...]

    def resolve(self, row) -> str:
        """Return the first non-blank candidate value of a row, or ""."""
        for candidate in self.candidates:
            if isinstance(candidate, int):
                value = row.at(candidate)
            else:
                value = row.get(candidate)
            if value.strip():
                return value
        return ""


# =============================================================================
# Header-mapped fields
# =============================================================================

# Status (03.03.12)
STATUS_MAP_ID = FieldSpec("map_id", ("Mapa",))
STATUS_SITUACAO = FieldSpec("situacao", ("Situacao", "Situação"))
STATUS_TOTAL_VALUE = FieldSpec("total_value", ("Valor Total",))

# Driver assignment (03.11.29)
DRIVER_MAP_ID = FieldSpec("map_id", ("Mapa",))
DRIVER_NAME = FieldSpec("driver", ("Nome Motorista",))
DRIVER_PLATE = FieldSpec("plate", ("Placa",))

# Invoices (03.02.37)
INVOICE_MAP_ID = FieldSpec("map_id", ("Mapa",))
INVOICE_NUMBER = FieldSpec("number", ("Nota",))
INVOICE_CUSTOMER = FieldSpec("customer_code", ("Cliente",))
INVOICE_LEGAL_NAME = FieldSpec("legal_name", ("Nome", "Razão Social"))
INVOICE_CONDITION = FieldSpec("payment_condition", ("Cond. pagt", "Cond. pag"))
INVOICE_TOTAL = FieldSpec("total", ("Total",))
INVOICE_CANCELLATION = FieldSpec("cancellation_reason", ("Mot. Cancelamento",))

# Payment confirmations (cora)
CONFIRMATION_INVOICE_NUMBER = FieldSpec("invoice_number", ("Nota fiscal",))
CONFIRMATION_STATUS = FieldSpec("status", ("Status",))

# Payment-condition lookup (01.20.01.27)
CONDITION_CODE = FieldSpec("code", ("Condição", 1))
CONDITION_DESCRIPTION = FieldSpec("description", ("Descrição", 2))

FIELDS: Dict[SourceName, Tuple[FieldSpec, ...]] = {
    SourceName.STATUS: (STATUS_MAP_ID, STATUS_SITUACAO, STATUS_TOTAL_VALUE),
    SourceName.DRIVER_ASSIGNMENT: (DRIVER_MAP_ID, DRIVER_NAME, DRIVER_PLATE),
    SourceName.INVOICES: (
        INVOICE_MAP_ID,
        INVOICE_NUMBER,
        INVOICE_CUSTOMER,
        INVOICE_LEGAL_NAME,
        INVOICE_CONDITION,
        INVOICE_TOTAL,
        INVOICE_CANCELLATION,
    ),
    SourceName.PAYMENT_CONFIRMATIONS: (CONFIRMATION_INVOICE_NUMBER, CONFIRMATION_STATUS),
    SourceName.CONDITION_LOOKUP: (CONDITION_CODE, CONDITION_DESCRIPTION),
}


# =============================================================================
# Positional fields
# =============================================================================

# Raw status rows: key in column 0, issue date in column 3
STATUS_RAW_MAP_ID = FieldSpec("map_id", (0,))
STATUS_ISSUE_DATE_POSITION = 3

# Raw timing log rows (03.11.40)
TIMING_MAP_ID = FieldSpec("map_id", (0,))
TIMING_COLUMNS: Dict[str, int] = {
    "load": 6,
    "depart": 7,
    "arrive": 8,
    "physical_confirm": 9,
    "financial_confirm": 10,
    "physical_duration": 12,
    "financial_duration": 13,
    "internal_duration": 14,
}

# Timing columns that must all be recorded for an open map to count as
# auto-reopened. Column 11 is not surfaced in TimingLog.
AUTO_REOPEN_COLUMNS: Tuple[int, ...] = (7, 8, 9, 10, 11, 13, 14)
