import typing as t
from unittest.mock import patch

import pytest
from django.test.client import Client
from django.urls import reverse

from events.models import Payment

pytestmark = pytest.mark.django_db


def test_lnurlp_discovery(client: Client) -> None:
    response = client.get("/.well-known/lnurlp/tickets")

    assert response.status_code == 200
    data = response.json()
    assert data["tag"] == "payRequest"
    assert data["callback"] == "https://api.tickets.test/api/lnurl/callback"


def test_lnurlp_unknown_user_gets_error_envelope(client: Client) -> None:
    response = client.get(reverse("protocol:lnurlp", kwargs={"username": "bob"}))

    assert response.status_code == 200
    assert response.json()["status"] == "ERROR"


def test_uma_configuration(client: Client) -> None:
    response = client.get("/.well-known/uma-configuration")

    assert response.status_code == 200
    assert response.json()["uma_request_endpoint"] == "https://api.tickets.test/uma/request_invoice_payment"


def test_pubkey_unconfigured(client: Client, settings: t.Any) -> None:
    settings.UMA_SIGNING_CERT_CHAIN = ""

    response = client.get(reverse("protocol:lnurlpubkey"))

    assert response.status_code == 503


def test_pubkey_configured(client: Client) -> None:
    document = {"signingCertChain": ["abc"], "encryptionCertChain": ["def"], "expirationTimestamp": 1}
    with patch("events.controllers.protocol.build_pubkey_response", return_value=document):
        response = client.get(reverse("protocol:lnurlpubkey"))

    assert response.status_code == 200
    assert response.json() == document


class TestPayreqCallback:
    def test_post_returns_stored_invoice(self, client: Client, pending_payment: Payment) -> None:
        url = reverse("protocol:uma_payreq", kwargs={"ticket_id": pending_payment.ticket_id})

        response = client.post(url, data=b"", content_type="application/json")

        assert response.status_code == 200
        assert response.json() == {"pr": pending_payment.encoded_payment_request, "routes": []}

    def test_get_returns_stored_invoice(self, client: Client, pending_payment: Payment) -> None:
        url = reverse("protocol:uma_payreq", kwargs={"ticket_id": pending_payment.ticket_id})

        response = client.get(url)

        assert response.status_code == 200
        assert response.json()["pr"] == pending_payment.encoded_payment_request

    def test_paid_ticket_gets_error_envelope(self, client: Client, pending_payment: Payment) -> None:
        Payment.objects.filter(pk=pending_payment.pk).update(status=Payment.PaymentStatus.PAID)
        url = reverse("protocol:uma_payreq", kwargs={"ticket_id": pending_payment.ticket_id})

        response = client.post(url, data=b"", content_type="application/json")

        assert response.status_code == 200
        assert response.json() == {"status": "ERROR", "reason": "Payment is paid"}


def test_request_invoice_payment_is_declined(client: Client) -> None:
    response = client.post(reverse("protocol:uma_request_invoice_payment"), data={}, content_type="application/json")

    assert response.status_code == 200
    assert response.json()["status"] == "ERROR"


class TestLnurlCallback:
    def test_amount_lookup(self, client: Client, pending_payment: Payment) -> None:
        response = client.get(reverse("api:lnurl_callback"), {"amount": pending_payment.amount_sats * 1000})

        assert response.status_code == 200
        assert response.json()["pr"] == pending_payment.encoded_payment_request

    def test_missing_amount(self, client: Client) -> None:
        response = client.get(reverse("api:lnurl_callback"))

        assert response.status_code == 200
        assert response.json() == {"status": "ERROR", "reason": "Missing amount parameter"}
