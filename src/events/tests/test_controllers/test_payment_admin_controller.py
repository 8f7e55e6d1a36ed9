import typing as t
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from django.test.client import Client
from django.urls import reverse
from ninja_jwt.tokens import RefreshToken

from conftest import TicketUserFactory
from events.models import Event, Payment, Ticket

pytestmark = pytest.mark.django_db


@pytest.fixture
def listed_admin_client(user_factory: TicketUserFactory, settings: t.Any) -> Client:
    """A non-staff user whose email is listed as a payment administrator."""
    settings.ADMIN_EMAILS = ["ops@tickets.test"]
    admin = user_factory(username="ops", email="ops@tickets.test")
    refresh = RefreshToken.for_user(admin)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]


class TestPendingPayments:
    def test_staff_lists_pending(self, staff_client: Client, pending_payment: Payment) -> None:
        response = staff_client.get(reverse("api:admin_pending_payments"))

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["id"] == str(pending_payment.pk)
        assert data[0]["ticket_code"] == pending_payment.ticket.ticket_code
        assert data[0]["event_title"] == "Lightning Summit"
        assert data[0]["uma_address"] == "$alice@wallet.test"

    def test_listed_admin_email(self, listed_admin_client: Client, pending_payment: Payment) -> None:
        response = listed_admin_client.get(reverse("api:admin_pending_payments"))

        assert response.status_code == 200

    def test_regular_user_is_rejected(self, auth_client: Client) -> None:
        response = auth_client.get(reverse("api:admin_pending_payments"))

        assert response.status_code == 401

    def test_anonymous_is_rejected(self, client: Client) -> None:
        response = client.get(reverse("api:admin_pending_payments"))

        assert response.status_code == 401


class TestRetryPayment:
    def test_retry_failed_payment(
        self,
        staff_client: Client,
        failed_payment: Payment,
        uma_request_client: MagicMock,
        django_capture_on_commit_callbacks: t.Any,
    ) -> None:
        # Arrange
        old_bolt11 = failed_payment.encoded_payment_request
        url = reverse("api:admin_retry_payment", kwargs={"payment_id": failed_payment.pk})

        # Act
        with django_capture_on_commit_callbacks(execute=True):
            response = staff_client.post(url)

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["payment"]["status"] == "pending"
        assert data["new_invoice"]["bolt11"] != old_bolt11
        assert data["payment"]["bolt11"] == data["new_invoice"]["bolt11"]
        ticket = Ticket.objects.get(pk=failed_payment.ticket_id)
        assert ticket.payment_status == Ticket.PaymentStatus.PENDING
        uma_request_client.send_payment_request.assert_called_once()

    def test_retry_pending_payment_is_400(self, staff_client: Client, pending_payment: Payment) -> None:
        url = reverse("api:admin_retry_payment", kwargs={"payment_id": pending_payment.pk})

        response = staff_client.post(url)

        assert response.status_code == 400

    def test_retry_when_sold_out_is_409(
        self, staff_client: Client, failed_payment: Payment, event: Event, user_factory: TicketUserFactory
    ) -> None:
        Event.objects.filter(pk=event.pk).update(capacity=1)
        Ticket.objects.create(event=event, user=user_factory(), payment_status=Ticket.PaymentStatus.PAID)
        url = reverse("api:admin_retry_payment", kwargs={"payment_id": failed_payment.pk})

        response = staff_client.post(url)

        assert response.status_code == 409

    def test_retry_unknown_payment_is_404(self, staff_client: Client) -> None:
        response = staff_client.post(reverse("api:admin_retry_payment", kwargs={"payment_id": uuid4()}))

        assert response.status_code == 404

    def test_regular_user_cannot_retry(self, auth_client: Client, failed_payment: Payment) -> None:
        url = reverse("api:admin_retry_payment", kwargs={"payment_id": failed_payment.pk})

        response = auth_client.post(url)

        assert response.status_code == 401
        failed_payment.refresh_from_db()
        assert failed_payment.status == Payment.PaymentStatus.FAILED
