"""Capacity guard.

Checking the remaining capacity and creating the ticket happen under a row lock on
the event, so two purchases racing for the last seat are serialized and the second
one sees the first one's ticket.
"""

import typing as t
from uuid import UUID

import structlog
from django.db import transaction

from events.exceptions import EventNotAvailableError, EventSoldOutError
from events.models import Event, Ticket

logger = structlog.get_logger(__name__)


def lock_event(event_id: UUID | str) -> Event:
    """Lock an active event row for the rest of the current transaction.

    Raises:
        EventNotAvailableError: if the event does not exist or is not on sale.
    """
    event = Event.objects.select_for_update().filter(pk=event_id, is_active=True).first()
    if event is None:
        raise EventNotAvailableError(f"Event {event_id} is not available")
    return event


def ensure_seat_available(event: Event) -> None:
    """Raise EventSoldOutError unless the locked event has a seat left."""
    occupied = event.occupied_ticket_count()
    if occupied >= event.capacity:
        logger.info("event_sold_out", event_id=str(event.pk), capacity=event.capacity, occupied=occupied)
        raise EventSoldOutError(f"Event {event.title} is sold out")


@transaction.atomic
def claim_seat(event_id: UUID | str, **ticket_fields: t.Any) -> Ticket:
    """Create a ticket for the event if, and only if, a seat is left.

    Runs in its own savepoint when called inside a wider transaction; the event row stays
    locked until the outermost transaction ends.

    Raises:
        EventNotAvailableError: if the event is missing or inactive.
        EventSoldOutError: if every seat is taken.
    """
    event = lock_event(event_id)
    ensure_seat_available(event)
    return Ticket.objects.create(event=event, **ticket_fields)
