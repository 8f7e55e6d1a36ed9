import typing as t
from datetime import timedelta
from unittest.mock import MagicMock, patch
from uuid import uuid4

import orjson
import pytest
from django.utils import timezone

from accounts.models import TicketUser
from events.models import Event, Payment
from events.service import protocol_responder, ticket_service
from events.tests.conftest import BUYER_ADDRESS
from lightning.exceptions import ProtocolEnvelopeError

pytestmark = pytest.mark.django_db


class TestAnswerPayRequest:
    def test_bare_query_gets_stored_invoice(self, pending_payment: Payment) -> None:
        response = protocol_responder.answer_pay_request(pending_payment.ticket_id, b"")

        assert response == {"pr": pending_payment.encoded_payment_request, "routes": []}

    def test_non_uma_body_gets_stored_invoice(self, pending_payment: Payment) -> None:
        response = protocol_responder.answer_pay_request(pending_payment.ticket_id, b'{"amount": 1000000}')

        assert response["pr"] == pending_payment.encoded_payment_request

    def test_uma_request_gets_envelope_with_stored_invoice(self, pending_payment: Payment) -> None:
        pay_request = MagicMock()
        envelope = {"pr": pending_payment.encoded_payment_request, "payeeData": {}, "converted": {}}
        with (
            patch("events.service.protocol_responder.parse_uma_pay_request", return_value=pay_request),
            patch("events.service.protocol_responder.build_pay_req_envelope", return_value=envelope) as mock_build,
        ):
            response = protocol_responder.answer_pay_request(pending_payment.ticket_id, b"{...}")

        assert response == envelope
        args = mock_build.call_args.args
        assert args[0] is pay_request
        assert args[1] == pending_payment.encoded_payment_request
        ticket = pending_payment.ticket
        assert orjson.loads(args[2]) == [["text/plain", f"Ticket #{ticket.ticket_code} for {ticket.event.title}"]]

    def test_envelope_failure_degrades_to_bare_invoice(self, pending_payment: Payment) -> None:
        with (
            patch("events.service.protocol_responder.parse_uma_pay_request", return_value=MagicMock()),
            patch(
                "events.service.protocol_responder.build_pay_req_envelope",
                side_effect=ProtocolEnvelopeError("no signing key"),
            ),
        ):
            response = protocol_responder.answer_pay_request(pending_payment.ticket_id, b"{...}")

        assert response == {"pr": pending_payment.encoded_payment_request, "routes": []}

    @pytest.mark.parametrize("status", [Payment.PaymentStatus.PAID, Payment.PaymentStatus.FAILED])
    def test_closed_payment_gets_error_envelope(self, pending_payment: Payment, status: str) -> None:
        Payment.objects.filter(pk=pending_payment.pk).update(status=status)

        response = protocol_responder.answer_pay_request(pending_payment.ticket_id, b"")

        assert response == {"status": "ERROR", "reason": f"Payment is {status}"}

    def test_unknown_ticket_gets_error_envelope(self) -> None:
        response = protocol_responder.answer_pay_request(uuid4(), b"")

        assert response["status"] == "ERROR"


class TestAnswerAmountQuery:
    def test_returns_oldest_pending_payment_of_amount(
        self, event: Event, user: TicketUser, pending_payment: Payment
    ) -> None:
        newer = ticket_service.purchase_ticket(event.pk, user, BUYER_ADDRESS)
        assert newer.invoice is not None

        response = protocol_responder.answer_amount_query(event.price_sats * 1000)

        assert response == {"pr": pending_payment.encoded_payment_request, "routes": []}

    def test_skips_expired_invoices(self, event: Event, user: TicketUser, pending_payment: Payment) -> None:
        Payment.objects.filter(pk=pending_payment.pk).update(expires_at=timezone.now() - timedelta(seconds=1))
        newer = ticket_service.purchase_ticket(event.pk, user, BUYER_ADDRESS)
        assert newer.invoice is not None

        response = protocol_responder.answer_amount_query(event.price_sats * 1000)

        assert response["pr"] == newer.invoice.encoded_payment_request

    def test_no_match(self, pending_payment: Payment) -> None:
        response = protocol_responder.answer_amount_query(123_000)

        assert response == {"status": "ERROR", "reason": "No pending payment found for this amount"}

    def test_amount_below_one_sat(self, pending_payment: Payment) -> None:
        assert protocol_responder.answer_amount_query(999)["status"] == "ERROR"

    def test_disabled(self, settings: t.Any, pending_payment: Payment) -> None:
        settings.LNURL_AMOUNT_MATCHING_ENABLED = False

        assert protocol_responder.answer_amount_query(pending_payment.amount_sats * 1000)["status"] == "ERROR"


class TestDocuments:
    def test_lnurlp_document(self) -> None:
        document = protocol_responder.lnurlp_document("tickets")

        assert document["tag"] == "payRequest"
        assert document["callback"] == "https://api.tickets.test/api/lnurl/callback"
        assert document["minSendable"] <= document["maxSendable"]
        assert orjson.loads(document["metadata"]) == [["text/plain", "Ticket payments to $tickets@tickets.test"]]

    def test_lnurlp_document_for_unknown_user(self) -> None:
        assert protocol_responder.lnurlp_document("bob") == {"status": "ERROR", "reason": "Unknown user bob"}

    def test_uma_configuration(self) -> None:
        document = protocol_responder.uma_configuration()

        assert document["uma_request_endpoint"] == "https://api.tickets.test/uma/request_invoice_payment"
        assert 1 in document["uma_major_versions"]
