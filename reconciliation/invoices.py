"""Invoice classification.

Classifies each invoice (NF) of a map by payment status. Rules are checked in
priority order and the first match wins, since a description can satisfy
several substring tests ("CREDITO EM CONTA" also contains "CREDITO" and
"CONTA"):

1. Cancellation reason present          → RETURNED  "NF DEVOLVIDA"
2. Description has "CREDITO EM CONTA",
   or a payment confirmation says PAGO  → PAID      "PAGO"
3. Description has "BOLETO"             → DEFERRED  "VENDA A PRAZO"
4. Description has a cash-like term     → PENDING   "PENDENTE"
5. Anything else                        → OTHER     "NÃO FINANCEIRO"

PAID, DEFERRED and PENDING invoices add their total to the matching sum of
the map's FinancialSummary.
"""

from typing import Dict, Iterable, List, Tuple

from models.maps import FinancialSummary, InvoiceCategory, InvoiceRecord
from reconciliation.normalize import normalize_key, parse_currency, to_upper_or_default
from sources.columns import (
    CONDITION_DESCRIPTION,
    CONFIRMATION_STATUS,
    INVOICE_CANCELLATION,
    INVOICE_CONDITION,
    INVOICE_CUSTOMER,
    INVOICE_LEGAL_NAME,
    INVOICE_NUMBER,
    INVOICE_TOTAL,
)
from sources.parser import SourceRow
from sources.tables import SourceTable


PAID_MARKERS = ("CREDITO EM CONTA",)
DEFERRED_MARKERS = ("BOLETO",)
PENDING_MARKERS = ("PIX", "DINHEIRO", "CREDITO", "À VISTA", "A VISTA", "CONTA")
CONFIRMED_PAYMENT_MARKER = "PAGO"

STATUS_LABELS: Dict[InvoiceCategory, str] = {
    InvoiceCategory.RETURNED: "NF DEVOLVIDA",
    InvoiceCategory.PAID: "PAGO",
    InvoiceCategory.DEFERRED: "VENDA A PRAZO",
    InvoiceCategory.PENDING: "PENDENTE",
    InvoiceCategory.OTHER: "NÃO FINANCEIRO",
}


def _contains_any(text: str, markers: Iterable[str]) -> bool:
    return any(marker in text for marker in markers)


def resolve_payment_condition(invoice: SourceRow, conditions: SourceTable) -> str:
    """Resolve an invoice's payment-condition description.

    The condition code is matched against the lookup table by normalized key.
    Unmatched codes fall back to the raw condition text. The result is
    uppercased ("---" when nothing is available).
    """
    raw_condition = INVOICE_CONDITION.resolve(invoice)
    match = conditions.first(normalize_key(raw_condition))
    if match is not None:
        return to_upper_or_default(CONDITION_DESCRIPTION.resolve(match))
    return to_upper_or_default(raw_condition)


def is_confirmed_paid(invoice_number: str, confirmations: SourceTable) -> bool:
    """True if any confirmation for this invoice number has a PAGO status."""
    for confirmation in confirmations.all(normalize_key(invoice_number)):
        if CONFIRMED_PAYMENT_MARKER in to_upper_or_default(CONFIRMATION_STATUS.resolve(confirmation)):
            return True
    return False


def categorize_invoice(
    invoice: SourceRow,
    description: str,
    confirmations: SourceTable,
) -> InvoiceCategory:
    """Apply the priority rules to one invoice."""
    if INVOICE_CANCELLATION.resolve(invoice).strip():
        return InvoiceCategory.RETURNED
    if _contains_any(description, PAID_MARKERS) or is_confirmed_paid(
        INVOICE_NUMBER.resolve(invoice), confirmations
    ):
        return InvoiceCategory.PAID
    if _contains_any(description, DEFERRED_MARKERS):
        return InvoiceCategory.DEFERRED
    if _contains_any(description, PENDING_MARKERS):
        return InvoiceCategory.PENDING
    return InvoiceCategory.OTHER


def classify_invoice(
    invoice: SourceRow,
    conditions: SourceTable,
    confirmations: SourceTable,
) -> InvoiceRecord:
    """Build the classified InvoiceRecord for one invoice row."""
    description = resolve_payment_condition(invoice, conditions)
    category = categorize_invoice(invoice, description, confirmations)

    return InvoiceRecord(
        number=INVOICE_NUMBER.resolve(invoice).strip(),
        customer_code=to_upper_or_default(INVOICE_CUSTOMER.resolve(invoice)),
        legal_name=to_upper_or_default(INVOICE_LEGAL_NAME.resolve(invoice)),
        payment_condition=description,
        total_display=INVOICE_TOTAL.resolve(invoice),
        status_label=STATUS_LABELS[category],
        category=category,
    )


def summarize(invoices: Iterable[InvoiceRecord]) -> FinancialSummary:
    """Sum invoice totals into paid / deferred / pending."""
    sums = {
        InvoiceCategory.PAID: 0.0,
        InvoiceCategory.DEFERRED: 0.0,
        InvoiceCategory.PENDING: 0.0,
    }
    for invoice in invoices:
        if invoice.category in sums:
            sums[invoice.category] += parse_currency(invoice.total_display)

    return FinancialSummary(
        paid=sums[InvoiceCategory.PAID],
        deferred=sums[InvoiceCategory.DEFERRED],
        pending=sums[InvoiceCategory.PENDING],
    )


def classify_invoices(
    invoices: Iterable[SourceRow],
    conditions: SourceTable,
    confirmations: SourceTable,
) -> Tuple[List[InvoiceRecord], FinancialSummary]:
    """Classify a map's invoice rows and compute its financial summary.

    Returns:
        Tuple of (invoice records in source order, financial summary)
    """
    records = [classify_invoice(row, conditions, confirmations) for row in invoices]
    return records, summarize(records)
