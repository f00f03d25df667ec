"""Reconciled map models.

These models are the output of a reconciliation pass:
- InvoiceRecord: one classified invoice (NF) of a map
- TimingLog: the eight time-of-day fields of the timing log export
- FinancialSummary: paid / deferred / pending sums of a map's invoices
- MapRecord: one denormalized record per map
- AggregateResult: every MapRecord plus category counts and the future label

All models are frozen: a pass builds them once and never mutates them.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


EMPTY_TIME = "--:--"
PLACEHOLDER = "---"
EPOCH_DATE = date(1970, 1, 1)
DEFAULT_FUTURE_LABEL = "FAT FUTUROS"


# =============================================================================
# ENUMS
# =============================================================================

class InvoiceCategory(str, Enum):
    """Payment category of an invoice."""
    PAID = "PAID"
    DEFERRED = "DEFERRED"
    PENDING = "PENDING"
    RETURNED = "RETURNED"
    OTHER = "OTHER"


class FilterCategory(str, Enum):
    """Triage categories counted by the aggregator.

    Categories are not mutually exclusive; only FUTURE excludes every other.
    """
    ALL = "All"
    PRIOR_DAYS = "PriorDays"
    OPEN = "Open"
    RELEASED = "Released"
    FINANCE_RELEASED = "FinanceReleased"
    NOT_DEPARTED = "NotDeparted"
    EN_ROUTE = "EnRoute"
    PHYSICAL_DELAY = "PhysicalDelay"
    AUTO_REOPENED = "AutoReopened"
    NON_FINANCIAL = "NonFinancial"
    FUTURE = "Future"


# =============================================================================
# RECORDS
# =============================================================================

class FrozenModel(BaseModel):
    """Base class for immutable pass output."""
    model_config = ConfigDict(frozen=True)


class InvoiceRecord(FrozenModel):
    """A single invoice (NF) attached to a map."""
    number: str = Field(default="", description="Invoice number as exported")
    customer_code: str = Field(default=PLACEHOLDER, description="Customer (PDV) code, uppercased")
    legal_name: str = Field(default=PLACEHOLDER, description="Customer legal name, uppercased")
    payment_condition: str = Field(
        default=PLACEHOLDER,
        description="Resolved payment-condition description, uppercased",
    )
    total_display: str = Field(default="", description="Invoice total with its original formatting")
    status_label: str = Field(..., description="Human-readable status (e.g. PAGO, PENDENTE)")
    category: InvoiceCategory


class TimingLog(FrozenModel):
    """Time-of-day fields from the timing log; EMPTY_TIME when not recorded."""
    load: str = EMPTY_TIME
    depart: str = EMPTY_TIME
    arrive: str = EMPTY_TIME
    physical_confirm: str = EMPTY_TIME
    financial_confirm: str = EMPTY_TIME
    physical_duration: str = EMPTY_TIME
    financial_duration: str = EMPTY_TIME
    internal_duration: str = EMPTY_TIME


class FinancialSummary(FrozenModel):
    """Monetary sums of a map's invoices, by category."""
    paid: float = 0.0
    deferred: float = 0.0
    pending: float = 0.0


class MapRecord(FrozenModel):
    """One reconciled map (delivery manifest)."""
    id: str = Field(..., description="Map identifier with dots removed")
    key: str = Field(..., description="Normalized join key")
    status: str = Field(default="", description="Workflow status (situacao) as exported")
    total_value: str = Field(default="0,00", description="Declared total, display formatting")
    issue_date: date = Field(default=EPOCH_DATE, description="Issue date; EPOCH_DATE when unknown")
    issue_date_text: str = Field(default=PLACEHOLDER, description="Issue date as exported")
    driver: str = PLACEHOLDER
    plate: str = PLACEHOLDER
    timing: TimingLog = Field(default_factory=TimingLog)
    financial: FinancialSummary = Field(default_factory=FinancialSummary)
    invoices: List[InvoiceRecord] = Field(default_factory=list)
    is_auto_reopened: bool = False
    is_pickup_only: bool = False

    @property
    def status_lower(self) -> str:
        return self.status.strip().lower()

    @property
    def is_non_financial(self) -> bool:
        """True when the map has no invoice with a financial category."""
        return all(inv.category == InvoiceCategory.OTHER for inv in self.invoices)


class AggregateResult(FrozenModel):
    """Output of a reconciliation pass."""
    maps: List[MapRecord] = Field(default_factory=list)
    counts: Dict[str, int] = Field(default_factory=dict)
    future_label: str = DEFAULT_FUTURE_LABEL

    def count(self, category: FilterCategory) -> int:
        return self.counts.get(category.value, 0)
