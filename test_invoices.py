"""
Invoice classification tests.

Validates the priority order cancellation > paid > deferred > pending > other,
payment-condition resolution through the lookup table, confirmations and the
per-map financial sums.
"""

import pytest


CONDITIONS = (
    "Empresa,Condição,Descrição\n"
    "1,001,Boleto 28 dias\n"
    "1,002,Pix\n"
    "1,003,Credito em conta\n"
    "1,004,Bonificacao\n"
)

CONFIRMATIONS = (
    "Nota fiscal,Status\n"
    "0000500,Pago\n"
    "501,Aguardando\n"
)


def _tables(conditions=CONDITIONS, confirmations=CONFIRMATIONS):
    from sources.columns import CONDITION_CODE, CONFIRMATION_INVOICE_NUMBER
    from sources.parser import parse_source
    from sources.tables import SourceTable
    return (
        SourceTable("conditionLookup", parse_source(conditions).records, CONDITION_CODE),
        SourceTable("paymentConfirmations", parse_source(confirmations).records, CONFIRMATION_INVOICE_NUMBER),
    )


def _invoice(number="100", condition="001", total="1.000,00", cancellation="", customer="c1", name="cliente um"):
    from sources.parser import SourceRow
    columns = {
        "Mapa": 0, "Nota": 1, "Cliente": 2, "Nome": 3,
        "Cond. pagt": 4, "Total": 5, "Mot. Cancelamento": 6,
    }
    return SourceRow(["1", number, customer, name, condition, total, cancellation], columns)


class TestPaymentCondition:
    """Condition code resolution."""

    def test_lookup_by_normalized_code(self):
        from reconciliation.invoices import resolve_payment_condition
        conditions, _ = _tables()
        assert resolve_payment_condition(_invoice(condition="1"), conditions) == "BOLETO 28 DIAS"

    def test_unmatched_code_falls_back_to_raw_text(self):
        from reconciliation.invoices import resolve_payment_condition
        conditions, _ = _tables()
        assert resolve_payment_condition(_invoice(condition="dinheiro"), conditions) == "DINHEIRO"

    def test_empty_condition(self):
        from reconciliation.invoices import resolve_payment_condition
        conditions, _ = _tables()
        assert resolve_payment_condition(_invoice(condition=""), conditions) == "---"


class TestClassification:
    """Priority order of the rules."""

    def test_deferred_boleto(self):
        """BOLETO with total 1.000,00 is DEFERRED and sums 1000.0."""
        from models.maps import InvoiceCategory
        from reconciliation.invoices import classify_invoices
        conditions, confirmations = _tables()
        records, summary = classify_invoices([_invoice(condition="001", total="1.000,00")], conditions, confirmations)
        assert records[0].category == InvoiceCategory.DEFERRED
        assert records[0].status_label == "VENDA A PRAZO"
        assert summary.deferred == pytest.approx(1000.0)
        assert summary.paid == 0.0
        assert summary.pending == 0.0

    def test_cancellation_always_returned(self):
        """A cancelled invoice is RETURNED whatever its condition says."""
        from models.maps import InvoiceCategory
        from reconciliation.invoices import classify_invoice
        conditions, confirmations = _tables()
        for condition in ("001", "002", "003", "004"):
            record = classify_invoice(_invoice(number="500", condition=condition, cancellation="Recusa"), conditions, confirmations)
            assert record.category == InvoiceCategory.RETURNED
            assert record.status_label == "NF DEVOLVIDA"

    def test_returned_does_not_accumulate(self):
        from reconciliation.invoices import classify_invoices
        conditions, confirmations = _tables()
        _, summary = classify_invoices([_invoice(cancellation="Avaria")], conditions, confirmations)
        assert (summary.paid, summary.deferred, summary.pending) == (0.0, 0.0, 0.0)

    def test_credito_em_conta_is_paid_not_pending(self):
        """'CREDITO EM CONTA' also contains CREDITO and CONTA; paid wins."""
        from models.maps import InvoiceCategory
        from reconciliation.invoices import classify_invoices
        conditions, confirmations = _tables()
        records, summary = classify_invoices([_invoice(condition="003", total="R$ 250,50")], conditions, confirmations)
        assert records[0].category == InvoiceCategory.PAID
        assert records[0].status_label == "PAGO"
        assert summary.paid == pytest.approx(250.5)

    def test_confirmation_marks_paid(self):
        """A PAGO confirmation beats a BOLETO condition."""
        from models.maps import InvoiceCategory
        from reconciliation.invoices import classify_invoice
        conditions, confirmations = _tables()
        record = classify_invoice(_invoice(number="500", condition="001"), conditions, confirmations)
        assert record.category == InvoiceCategory.PAID

    def test_confirmation_without_pago(self):
        from models.maps import InvoiceCategory
        from reconciliation.invoices import classify_invoice
        conditions, confirmations = _tables()
        record = classify_invoice(_invoice(number="501", condition="001"), conditions, confirmations)
        assert record.category == InvoiceCategory.DEFERRED

    def test_empty_invoice_number_never_confirmed(self):
        from reconciliation.invoices import is_confirmed_paid
        _, confirmations = _tables(confirmations="Nota fiscal,Status\n,Pago\n")
        assert not is_confirmed_paid("", confirmations)

    @pytest.mark.parametrize("condition", ["002", "Dinheiro", "A vista", "À vista", "Cartao de credito"])
    def test_pending(self, condition):
        from models.maps import InvoiceCategory
        from reconciliation.invoices import classify_invoice
        conditions, confirmations = _tables()
        record = classify_invoice(_invoice(condition=condition), conditions, confirmations)
        assert record.category == InvoiceCategory.PENDING
        assert record.status_label == "PENDENTE"

    def test_other(self):
        from models.maps import InvoiceCategory
        from reconciliation.invoices import classify_invoice
        conditions, confirmations = _tables()
        record = classify_invoice(_invoice(condition="004"), conditions, confirmations)
        assert record.category == InvoiceCategory.OTHER
        assert record.status_label == "NÃO FINANCEIRO"


class TestInvoiceRecord:
    """Fields carried onto the record."""

    def test_fields(self):
        from reconciliation.invoices import classify_invoice
        conditions, confirmations = _tables()
        record = classify_invoice(
            _invoice(number="123", customer=" pdv9 ", name="mercado são joão", total="1.234,56"),
            conditions,
            confirmations,
        )
        assert record.number == "123"
        assert record.customer_code == "PDV9"
        assert record.legal_name == "MERCADO SÃO JOÃO"
        assert record.payment_condition == "BOLETO 28 DIAS"
        assert record.total_display == "1.234,56"

    def test_legal_name_variant(self):
        from reconciliation.invoices import classify_invoice
        from sources.parser import SourceRow
        conditions, confirmations = _tables()
        row = SourceRow(["1", "9", "Loja"], {"Mapa": 0, "Nota": 1, "Razão Social": 2})
        assert classify_invoice(row, conditions, confirmations).legal_name == "LOJA"

    def test_order_and_sums(self):
        """Records keep source order; sums split by category."""
        from reconciliation.invoices import classify_invoices
        conditions, confirmations = _tables()
        rows = [
            _invoice(number="1", condition="002", total="10,00"),
            _invoice(number="2", condition="001", total="20,00"),
            _invoice(number="3", condition="003", total="30,00"),
            _invoice(number="4", condition="002", total="5,50"),
            _invoice(number="5", condition="004", total="99,00"),
        ]
        records, summary = classify_invoices(rows, conditions, confirmations)
        assert [r.number for r in records] == ["1", "2", "3", "4", "5"]
        assert summary.pending == pytest.approx(15.5)
        assert summary.deferred == pytest.approx(20.0)
        assert summary.paid == pytest.approx(30.0)

    def test_no_invoices(self):
        from reconciliation.invoices import classify_invoices
        conditions, confirmations = _tables()
        records, summary = classify_invoices([], conditions, confirmations)
        assert records == []
        assert (summary.paid, summary.deferred, summary.pending) == (0.0, 0.0, 0.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
