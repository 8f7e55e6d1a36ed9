from django.db import models

from common.models import TimeStampedModel

from .event import Event
from .ticket import Ticket


class LightningInvoice(TimeStampedModel):
    """An invoice issued by the processor for exactly one ticket.

    A ticket accumulates one invoice per payment attempt (purchase, then each admin retry);
    only the most recent one is open. Invoices are never shared between tickets.
    """

    class InvoiceStatus(models.TextChoices):
        OPEN = "open", "Open"
        PAID = "paid", "Paid"
        EXPIRED = "expired", "Expired"
        SUPERSEDED = "superseded", "Superseded"

    ticket = models.ForeignKey(Ticket, on_delete=models.CASCADE, related_name="invoices")
    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="invoices")
    processor_invoice_id = models.CharField(max_length=255, unique=True)
    payment_hash = models.CharField(max_length=64, db_index=True)
    encoded_payment_request = models.TextField(unique=True)
    amount_sats = models.PositiveBigIntegerField()
    status = models.CharField(max_length=20, choices=InvoiceStatus.choices, default=InvoiceStatus.OPEN)
    uma_address = models.CharField(max_length=255, blank=True, default="")
    description = models.CharField(max_length=640)
    expires_at = models.DateTimeField()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.processor_invoice_id} ({self.status})"
