"""Models Package.

Data models for the map monitor including:
- Reconciled map models (maps, invoices, timing, aggregate result)
- API request/response models
"""

from models.maps import (
    AggregateResult,
    FilterCategory,
    FinancialSummary,
    InvoiceCategory,
    InvoiceRecord,
    MapRecord,
    TimingLog,
    DEFAULT_FUTURE_LABEL,
    EMPTY_TIME,
    EPOCH_DATE,
    PLACEHOLDER,
)

from models.api_responses import (
    MapsResponse,
    ReconcileRequest,
)

__all__ = [
    # Maps
    "AggregateResult",
    "FilterCategory",
    "FinancialSummary",
    "InvoiceCategory",
    "InvoiceRecord",
    "MapRecord",
    "TimingLog",
    "DEFAULT_FUTURE_LABEL",
    "EMPTY_TIME",
    "EPOCH_DATE",
    "PLACEHOLDER",
    # API
    "MapsResponse",
    "ReconcileRequest",
]
