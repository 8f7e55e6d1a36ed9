"""Project-wide fixtures.

No test talks to Lightspark, a UMA provider or a wallet bridge: the processor is replaced
by an in-memory fake and the outbound clients by mocks.
"""

import secrets
import string
import typing as t
from datetime import timedelta
from unittest.mock import MagicMock
from uuid import uuid4

import faker
import orjson
import pytest
from django.test.client import Client
from django.utils import timezone
from ninja_jwt.tokens import RefreshToken
from pytest import MonkeyPatch

from accounts.models import TicketUser
from lightning.entities import ProcessorInvoice, ProcessorWebhookEvent, SettlementEntity
from lightning.exceptions import InvoiceIssuerError, SettlementResolutionError, WebhookVerificationError
from lightning.uma_requests import UMARequestClient
from umatickets.celery import app as celery_app

VALID_SIGNATURE = "valid-signature"


class FakePaymentProcessor:
    """An in-memory stand-in for the Lightspark processor."""

    def __init__(self) -> None:
        self.invoices: dict[str, ProcessorInvoice] = {}
        self.entities: dict[str, SettlementEntity] = {}
        self.create_calls: list[dict[str, t.Any]] = []
        self.unavailable = False

    def create_invoice(self, amount_msats: int, metadata: str, expiry_secs: int) -> ProcessorInvoice:
        self.create_calls.append({"amount_msats": amount_msats, "metadata": metadata, "expiry_secs": expiry_secs})
        if self.unavailable:
            raise InvoiceIssuerError("Processor unavailable")
        invoice = ProcessorInvoice(
            invoice_id=f"Invoice:{uuid4()}",
            payment_hash=secrets.token_hex(32),
            encoded_payment_request=f"lnbc{amount_msats // 1000}n1p{secrets.token_hex(20)}",
            expires_at=timezone.now() + timedelta(seconds=expiry_secs),
        )
        self.invoices[invoice.invoice_id] = invoice
        return invoice

    def parse_webhook(self, body: bytes, signature: str) -> ProcessorWebhookEvent:
        if signature != VALID_SIGNATURE:
            raise WebhookVerificationError("Signature mismatch")
        data = orjson.loads(body)
        return ProcessorWebhookEvent(
            event_id=data["event_id"], event_type=data["event_type"], entity_id=data["entity_id"]
        )

    def fetch_settlement_entity(self, entity_id: str) -> SettlementEntity:
        try:
            return self.entities[entity_id]
        except KeyError:
            raise SettlementResolutionError(f"Entity {entity_id!r} not found")

    def fetch_encoded_payment_request(self, invoice_id: str) -> str:
        try:
            return self.invoices[invoice_id].encoded_payment_request
        except KeyError:
            raise SettlementResolutionError(f"Invoice {invoice_id!r} not found")


@pytest.fixture(autouse=True)
def enable_celery_eager_mode(settings: t.Any) -> None:
    """Enable Celery eager mode for tests so tasks execute synchronously."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True
    celery_app.conf.update(task_always_eager=True, task_eager_propagates=True)


@pytest.fixture(autouse=True)
def lightning_settings(settings: t.Any) -> None:
    """Deterministic Lightning and UMA configuration."""
    settings.UMA_DOMAIN = "tickets.test"
    settings.UMA_RECEIVER_USERNAME = "tickets"
    settings.PUBLIC_API_BASE_URL = "https://api.tickets.test"
    settings.INVOICE_EXPIRY_SECONDS = 600
    settings.LNURL_AMOUNT_MATCHING_ENABLED = True


@pytest.fixture(autouse=True)
def payment_processor(monkeypatch: MonkeyPatch) -> FakePaymentProcessor:
    """Replace the processor singleton with an in-memory fake."""
    processor = FakePaymentProcessor()
    monkeypatch.setattr("lightning.processor._payment_processor", processor)
    return processor


@pytest.fixture(autouse=True)
def uma_request_client(monkeypatch: MonkeyPatch) -> MagicMock:
    """Replace the UMA request client singleton with a mock that accepts every request."""
    client = MagicMock(spec=UMARequestClient)
    client.build_request_invoice.return_value = "uma1invoicefortests"
    client.send_payment_request.return_value = None
    monkeypatch.setattr("lightning.uma_requests._uma_request_client", client)
    return client


@pytest.fixture(autouse=True)
def wallet_connect_payer(monkeypatch: MonkeyPatch) -> MagicMock:
    """Replace the wallet connect payer singleton with a mock that pays successfully."""
    payer = MagicMock()
    payer.pay_invoice.return_value = "preimage"
    monkeypatch.setattr("lightning.wallet_connect._wallet_connect_payer", payer)
    return payer


class TicketUserFactory:
    """Factory for creating TicketUser instances for testing."""

    fake = faker.Faker()

    def create_user(self, **kwargs: t.Any) -> TicketUser:
        username = kwargs.pop("username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(8)))
        email = kwargs.pop("email", f"{username}@user.test")
        password = kwargs.pop("password", "password")
        first_name = kwargs.pop("first_name", self.fake.first_name())
        last_name = kwargs.pop("last_name", self.fake.last_name())
        return TicketUser.objects.create_user(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            **kwargs,
        )

    def __call__(self, **kwargs: t.Any) -> TicketUser:
        return self.create_user(**kwargs)


@pytest.fixture
def user_factory() -> TicketUserFactory:
    return TicketUserFactory()


@pytest.fixture
def user(user_factory: TicketUserFactory) -> TicketUser:
    return user_factory(username="buyer")


@pytest.fixture
def staff_user(user_factory: TicketUserFactory) -> TicketUser:
    return user_factory(username="staff", is_staff=True)


@pytest.fixture
def auth_client(user: TicketUser) -> Client:
    """An API client authenticated as the standard user."""
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]


@pytest.fixture
def staff_client(staff_user: TicketUser) -> Client:
    """An API client authenticated as a staff user."""
    refresh = RefreshToken.for_user(staff_user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]
