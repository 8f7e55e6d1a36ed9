import secrets
import string
import typing as t

from django.conf import settings
from django.db import models
from django.utils import timezone

from common.models import TimeStampedModel

from .event import Event

TICKET_CODE_ALPHABET = string.ascii_uppercase + string.digits
TICKET_CODE_LENGTH = 16


def generate_ticket_code() -> str:
    """A random, human-presentable ticket code."""
    return "".join(secrets.choice(TICKET_CODE_ALPHABET) for _ in range(TICKET_CODE_LENGTH))


class TicketQuerySet(models.QuerySet["Ticket"]):
    def with_payment(self) -> t.Self:
        """Select the event and the payment."""
        return self.select_related("event", "payment")


class Ticket(TimeStampedModel):
    class PaymentStatus(models.TextChoices):
        PENDING = "pending", "Pending"
        PAID = "paid", "Paid"
        FAILED = "failed", "Failed"
        EXPIRED = "expired", "Expired"
        FREE = "free", "Free"

    OCCUPYING_STATUSES: t.ClassVar[tuple[str, ...]] = (PaymentStatus.PENDING, PaymentStatus.PAID, PaymentStatus.FREE)
    ADMITTING_STATUSES: t.ClassVar[tuple[str, ...]] = (PaymentStatus.PAID, PaymentStatus.FREE)

    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="tickets")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tickets")
    ticket_code = models.CharField(max_length=32, unique=True, default=generate_ticket_code, editable=False)
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING, db_index=True
    )
    processor_invoice_id = models.CharField(
        max_length=255, null=True, blank=True, help_text="Processor id of the invoice currently awaiting payment"
    )
    uma_address = models.CharField(max_length=255, blank=True, default="")
    paid_at = models.DateTimeField(null=True, blank=True)

    objects = TicketQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.ticket_code} ({self.payment_status})"

    @property
    def admits(self) -> bool:
        """Whether the ticket grants entry."""
        return self.payment_status in self.ADMITTING_STATUSES


class PaymentQuerySet(models.QuerySet["Payment"]):
    def pending(self) -> t.Self:
        """Payments still awaiting settlement."""
        return self.filter(status=Payment.PaymentStatus.PENDING)

    def stale(self) -> t.Self:
        """Pending payments whose invoice has expired."""
        return self.pending().filter(expires_at__lt=timezone.now())


class Payment(TimeStampedModel):
    class PaymentStatus(models.TextChoices):
        PENDING = "pending", "Pending"
        PAID = "paid", "Paid"
        FAILED = "failed", "Failed"
        EXPIRED = "expired", "Expired"

    RETRYABLE_STATUSES: t.ClassVar[tuple[str, ...]] = (PaymentStatus.FAILED, PaymentStatus.EXPIRED)

    ticket = models.OneToOneField(Ticket, on_delete=models.CASCADE, related_name="payment")
    encoded_payment_request = models.TextField(
        unique=True, help_text="bolt11 of the invoice awaiting payment; settlement notifications are matched on it"
    )
    amount_sats = models.PositiveBigIntegerField()
    status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING, db_index=True
    )
    expires_at = models.DateTimeField(null=True, blank=True, db_index=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.CharField(max_length=500, blank=True, default="")

    objects = PaymentQuerySet.as_manager()

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"Payment {self.pk} for {self.ticket_id} ({self.status})"

    @property
    def has_expired(self) -> bool:
        """Whether the invoice can no longer be paid."""
        return self.expires_at is not None and self.expires_at < timezone.now()
