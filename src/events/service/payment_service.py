"""Payment record store: every status transition of a ticket/payment pair.

A ticket and its payment always move together. Each transition locks the payment
row, re-reads its status and only acts on ``pending`` payments, so transitions that
race (settlement vs. push failure vs. expiry) resolve to whichever committed first.
"""

import typing as t
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from events.exceptions import PaymentNotRetryableError
from events.models import LightningInvoice, Payment, Ticket
from events.service import capacity_service, invoice_service
from events.signals import ticket_paid
from lightning.processor import PaymentProcessor

logger = structlog.get_logger(__name__)

FAILURE_REASON_MAX_LENGTH = 500


def _lock_payment(**lookup: t.Any) -> Payment | None:
    return Payment.objects.select_for_update().filter(**lookup).first()


def _close(payment: Payment, status: str, **payment_fields: t.Any) -> Ticket:
    ticket = Ticket.objects.select_for_update().get(pk=payment.ticket_id)
    payment.status = status
    for field, value in payment_fields.items():
        setattr(payment, field, value)
    payment.save(update_fields=["status", *payment_fields, "updated_at"])

    ticket.payment_status = status
    update_fields = ["payment_status", "updated_at"]
    if "paid_at" in payment_fields:
        ticket.paid_at = payment_fields["paid_at"]
        update_fields.append("paid_at")
    ticket.save(update_fields=update_fields)
    return ticket


@transaction.atomic
def mark_paid(encoded_payment_request: str) -> Payment | None:
    """Record the settlement of the invoice with this bolt11 string.

    Idempotent: settling an already paid payment is a no-op. Payments that are unknown,
    failed or expired are left untouched.

    Returns:
        The payment matched by the bolt11 string, or None if no payment matches.
    """
    payment = _lock_payment(encoded_payment_request=encoded_payment_request)
    if payment is None:
        logger.warning("settlement_unknown_invoice", encoded_payment_request=encoded_payment_request[:32])
        return None

    if payment.status == Payment.PaymentStatus.PAID:
        logger.warning("settlement_duplicate", payment_id=str(payment.pk), ticket_id=str(payment.ticket_id))
        return payment

    if payment.status != Payment.PaymentStatus.PENDING:
        logger.error(
            "settlement_for_closed_payment",
            payment_id=str(payment.pk),
            ticket_id=str(payment.ticket_id),
            status=payment.status,
        )
        return payment

    ticket = _close(payment, Payment.PaymentStatus.PAID, paid_at=timezone.now())
    LightningInvoice.objects.filter(encoded_payment_request=encoded_payment_request).update(
        status=LightningInvoice.InvoiceStatus.PAID, updated_at=timezone.now()
    )
    transaction.on_commit(lambda: ticket_paid.send_robust(sender=Payment, payment=payment, ticket=ticket))
    logger.info(
        "settlement_recorded",
        payment_id=str(payment.pk),
        ticket_id=str(ticket.pk),
        amount_sats=payment.amount_sats,
    )
    return payment


@transaction.atomic
def mark_failed(payment_id: UUID | str, reason: str) -> bool:
    """Fail a pending payment and its ticket after the payment request could not be delivered.

    Returns:
        Whether the payment was still pending and has been failed.
    """
    payment = _lock_payment(pk=payment_id)
    if payment is None or payment.status != Payment.PaymentStatus.PENDING:
        logger.info("payment_fail_skipped", payment_id=str(payment_id), status=getattr(payment, "status", None))
        return False

    _close(payment, Payment.PaymentStatus.FAILED, failure_reason=reason[:FAILURE_REASON_MAX_LENGTH])
    logger.warning("payment_failed", payment_id=str(payment.pk), ticket_id=str(payment.ticket_id), reason=reason)
    return True


@transaction.atomic
def mark_expired(payment_id: UUID | str) -> bool:
    """Expire a pending payment whose invoice can no longer be paid.

    Returns:
        Whether the payment was expired.
    """
    payment = _lock_payment(pk=payment_id)
    if payment is None or payment.status != Payment.PaymentStatus.PENDING or not payment.has_expired:
        return False

    _close(payment, Payment.PaymentStatus.EXPIRED)
    LightningInvoice.objects.filter(
        encoded_payment_request=payment.encoded_payment_request, status=LightningInvoice.InvoiceStatus.OPEN
    ).update(status=LightningInvoice.InvoiceStatus.EXPIRED, updated_at=timezone.now())
    logger.info("payment_expired", payment_id=str(payment.pk), ticket_id=str(payment.ticket_id))
    return True


@transaction.atomic
def reopen_with_new_invoice(
    payment_id: UUID | str, *, processor: PaymentProcessor | None = None
) -> tuple[Payment, LightningInvoice]:
    """Give a failed or expired payment a fresh invoice and put it back to pending.

    The ticket takes its seat back, so the event must still have one.

    Raises:
        Payment.DoesNotExist: if there is no such payment.
        PaymentNotRetryableError: if the payment is not failed or expired.
        EventSoldOutError: if the event filled up in the meantime.
        InvoiceIssuerError: if the processor cannot issue the new invoice.
    """
    payment = Payment.objects.select_for_update().select_related("ticket", "ticket__event").get(pk=payment_id)
    if payment.status not in Payment.RETRYABLE_STATUSES:
        raise PaymentNotRetryableError(f"Only failed or expired payments can be retried (status: {payment.status})")

    ticket = payment.ticket
    event = capacity_service.lock_event(ticket.event_id)
    capacity_service.ensure_seat_available(event)

    LightningInvoice.objects.filter(ticket=ticket, status=LightningInvoice.InvoiceStatus.OPEN).update(
        status=LightningInvoice.InvoiceStatus.SUPERSEDED, updated_at=timezone.now()
    )
    invoice = invoice_service.issue_invoice(
        ticket,
        ticket.uma_address,
        payment.amount_sats,
        invoice_service.retry_description(ticket),
        processor=processor,
    )

    payment.encoded_payment_request = invoice.encoded_payment_request
    payment.status = Payment.PaymentStatus.PENDING
    payment.expires_at = invoice.expires_at
    payment.paid_at = None
    payment.failure_reason = ""
    payment.save()

    ticket.payment_status = Ticket.PaymentStatus.PENDING
    ticket.processor_invoice_id = invoice.processor_invoice_id
    ticket.paid_at = None
    ticket.save(update_fields=["payment_status", "processor_invoice_id", "paid_at", "updated_at"])

    logger.info(
        "payment_reopened",
        payment_id=str(payment.pk),
        ticket_id=str(ticket.pk),
        invoice_id=invoice.processor_invoice_id,
    )
    return payment, invoice
