from datetime import datetime, timedelta

import pytest
from django.utils import timezone

from accounts.models import TicketUser
from events.models import Event, Payment, Ticket
from events.service import ticket_service

BUYER_ADDRESS = "$alice@wallet.test"


@pytest.fixture
def next_week() -> datetime:
    return timezone.now() + timedelta(days=7)


@pytest.fixture
def event(next_week: datetime) -> Event:
    """A priced event with ten seats."""
    return Event.objects.create(
        title="Lightning Summit",
        description="Talks about payments.",
        start=next_week,
        end=next_week + timedelta(hours=3),
        capacity=10,
        price_sats=1000,
        stream_url="https://stream.tickets.test/summit",
    )


@pytest.fixture
def free_event(next_week: datetime) -> Event:
    return Event.objects.create(
        title="Community Meetup",
        start=next_week,
        end=next_week + timedelta(hours=2),
        capacity=2,
        price_sats=0,
    )


@pytest.fixture
def running_event() -> Event:
    """A priced event taking place right now."""
    now = timezone.now()
    return Event.objects.create(
        title="Live Workshop",
        start=now - timedelta(hours=1),
        end=now + timedelta(hours=1),
        capacity=5,
        price_sats=2100,
    )


@pytest.fixture
def pending_ticket(event: Event, user: TicketUser) -> Ticket:
    """A ticket with a pending payment and an open invoice.

    The dispatch task is scheduled on commit and never runs, since the test transaction is not committed.
    """
    return ticket_service.purchase_ticket(event.pk, user, BUYER_ADDRESS).ticket


@pytest.fixture
def pending_payment(pending_ticket: Ticket) -> Payment:
    return Payment.objects.get(ticket=pending_ticket)


@pytest.fixture
def failed_payment(pending_payment: Payment) -> Payment:
    Payment.objects.filter(pk=pending_payment.pk).update(status=Payment.PaymentStatus.FAILED, failure_reason="boom")
    Ticket.objects.filter(pk=pending_payment.ticket_id).update(payment_status=Ticket.PaymentStatus.FAILED)
    pending_payment.refresh_from_db()
    return pending_payment
