"""Celery tasks for ticket payments.

This module contains asynchronous tasks for:
- Delivering a ticket's invoice to the buyer (wallet payment or UMA payment request)
- Expiring payments whose invoice can no longer be paid
"""

import structlog
from celery import shared_task

from .models import Payment, Ticket
from .service import payment_service
from .service.payment_router import PaymentRouter

logger = structlog.get_logger(__name__)


@shared_task(name="events.dispatch_ticket_payment")
def dispatch_ticket_payment(ticket_id: str, allow_wallet: bool = True) -> str:
    """Deliver the invoice of a pending ticket to its buyer.

    Nobody waits for this task: its only visible effects are the ticket failing, or nothing
    until the settlement webhook arrives.
    """
    ticket = Ticket.objects.select_related("event").filter(pk=ticket_id).first()
    if ticket is None:
        logger.warning("payment_dispatch_ticket_missing", ticket_id=ticket_id)
        return "skipped"

    outcome = PaymentRouter(ticket).dispatch(allow_wallet=allow_wallet)
    logger.info("payment_dispatch_completed", ticket_id=ticket_id, outcome=outcome)
    return outcome.value


@shared_task(name="events.expire_stale_payments")
def expire_stale_payments() -> int:
    """Move pending payments whose invoice has expired, and their tickets, to expired.

    Idempotent and safe to run periodically; each payment is re-checked under a row lock.
    """
    payment_ids = list(Payment.objects.stale().values_list("id", flat=True))
    if not payment_ids:
        return 0

    expired = sum(1 for payment_id in payment_ids if payment_service.mark_expired(payment_id))
    logger.info("stale_payments_expired", found=len(payment_ids), expired=expired)
    return expired
