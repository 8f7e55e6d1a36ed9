import pytest
from orjson import loads

from accounts.models import TicketUser
from conftest import FakePaymentProcessor
from events.models import Event, LightningInvoice, Ticket
from events.service import invoice_service
from lightning.exceptions import InvalidUMAAddressError, InvoiceIssuerError

pytestmark = pytest.mark.django_db


@pytest.fixture
def ticket(event: Event, user: TicketUser) -> Ticket:
    return Ticket.objects.create(event=event, user=user, uma_address="$alice@wallet.test")


class TestIssueInvoice:
    def test_issues_and_stores_invoice(
        self, ticket: Ticket, payment_processor: FakePaymentProcessor
    ) -> None:
        # Act
        invoice = invoice_service.issue_invoice(ticket, " $alice@wallet.test ", 1000, "Ticket #1 for Summit")

        # Assert
        call = payment_processor.create_calls[0]
        assert call["amount_msats"] == 1_000_000
        assert call["expiry_secs"] == 600
        assert loads(call["metadata"]) == [["text/plain", "Ticket #1 for Summit"]]

        issued = payment_processor.invoices[invoice.processor_invoice_id]
        assert invoice.encoded_payment_request == issued.encoded_payment_request
        assert invoice.payment_hash == issued.payment_hash
        assert invoice.ticket == ticket
        assert invoice.event_id == ticket.event_id
        assert invoice.uma_address == "$alice@wallet.test"
        assert invoice.status == LightningInvoice.InvoiceStatus.OPEN

    def test_malformed_address_issues_nothing(
        self, ticket: Ticket, payment_processor: FakePaymentProcessor
    ) -> None:
        with pytest.raises(InvalidUMAAddressError):
            invoice_service.issue_invoice(ticket, "alice@wallet.test", 1000, "Ticket")

        assert payment_processor.create_calls == []
        assert not LightningInvoice.objects.exists()

    def test_non_positive_amount_is_rejected(self, ticket: Ticket, payment_processor: FakePaymentProcessor) -> None:
        with pytest.raises(InvoiceIssuerError):
            invoice_service.issue_invoice(ticket, "$alice@wallet.test", 0, "Ticket")

        assert payment_processor.create_calls == []

    def test_processor_failure_stores_nothing(self, ticket: Ticket, payment_processor: FakePaymentProcessor) -> None:
        payment_processor.unavailable = True

        with pytest.raises(InvoiceIssuerError):
            invoice_service.issue_invoice(ticket, "$alice@wallet.test", 1000, "Ticket")

        assert not LightningInvoice.objects.exists()


def test_purchase_description(ticket: Ticket) -> None:
    assert invoice_service.purchase_description(ticket) == f"Ticket #{ticket.ticket_code} for Lightning Summit"


def test_retry_description(ticket: Ticket) -> None:
    assert invoice_service.retry_description(ticket) == f"Retry payment for ticket {ticket.ticket_code}"
