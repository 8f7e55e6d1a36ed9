import typing as t
from datetime import datetime

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from common.models import TimeStampedModel


class EventQuerySet(models.QuerySet["Event"]):
    def active(self) -> t.Self:
        """Events open for ticket sales."""
        return self.filter(is_active=True)


class Event(TimeStampedModel):
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    start = models.DateTimeField(db_index=True)
    end = models.DateTimeField()
    capacity = models.PositiveIntegerField(help_text="Maximum number of tickets that can be sold")
    price_sats = models.PositiveBigIntegerField(default=0, help_text="Ticket price in satoshis. 0 means free.")
    stream_url = models.URLField(blank=True, default="")
    is_active = models.BooleanField(default=True, db_index=True)

    objects = EventQuerySet.as_manager()

    class Meta:
        ordering = ["start"]

    def __str__(self) -> str:
        return self.title

    def clean(self) -> None:
        """Validate the time window."""
        super().clean()
        if self.start and self.end and self.end <= self.start:
            raise ValidationError({"end": ["Event must end after it starts."]})

    @property
    def is_free(self) -> bool:
        """Whether tickets are issued without payment."""
        return self.price_sats == 0

    def is_running(self, at: datetime | None = None) -> bool:
        """Whether the event is taking place at the given time (default: now)."""
        at = at or timezone.now()
        return self.start <= at <= self.end

    def occupied_ticket_count(self) -> int:
        """Tickets that hold a seat: paid, free, or awaiting payment."""
        from .ticket import Ticket

        return self.tickets.filter(payment_status__in=Ticket.OCCUPYING_STATUSES).count()

    def remaining_capacity(self) -> int:
        """Seats still available."""
        return max(self.capacity - self.occupied_ticket_count(), 0)
