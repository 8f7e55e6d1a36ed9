"""Payment administration: listing stuck payments and retrying failed ones."""

from uuid import UUID

import structlog
from django.db import transaction

from events.models import LightningInvoice, Payment, PaymentQuerySet
from events.service import payment_router, payment_service

logger = structlog.get_logger(__name__)


def pending_payments() -> PaymentQuerySet:
    """Pending payments with their ticket and event, oldest first."""
    return Payment.objects.pending().select_related("ticket", "ticket__event", "ticket__user").order_by("created_at")


@transaction.atomic
def retry_payment(payment_id: UUID) -> tuple[Payment, LightningInvoice]:
    """Issue a fresh invoice for a failed or expired payment and push it to the buyer's provider again.

    The stored wallet credential is not used on retry; the payment request goes straight to the
    buyer's provider.

    Raises:
        Payment.DoesNotExist: if there is no such payment.
        PaymentNotRetryableError: if the payment is not failed or expired.
        EventSoldOutError: if the event has no seat left for the ticket.
        InvoiceIssuerError: if the processor cannot issue the invoice.
    """
    payment, invoice = payment_service.reopen_with_new_invoice(payment_id)
    payment_router.schedule_dispatch(payment.ticket_id, allow_wallet=False)
    logger.info("payment_retry_scheduled", payment_id=str(payment.pk), ticket_id=str(payment.ticket_id))
    return payment, invoice
