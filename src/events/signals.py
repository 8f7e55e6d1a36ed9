import typing as t

import structlog
from django.dispatch import Signal, receiver

logger = structlog.get_logger(__name__)

# Sent after the transaction recording a settlement commits. kwargs: payment, ticket.
# Sent with send_robust: receiver errors are returned to the sender, never raised.
ticket_paid = Signal()


@receiver(ticket_paid, dispatch_uid="events.notify_uma_settlement")
def notify_uma_settlement(sender: t.Any, payment: t.Any, ticket: t.Any, **kwargs: t.Any) -> None:
    """Report the settlement on the UMA callback channel of the buyer's provider."""
    logger.info(
        "uma_settlement_callback",
        ticket_id=str(ticket.pk),
        payment_id=str(payment.pk),
        buyer_address=ticket.uma_address,
        amount_sats=payment.amount_sats,
        paid_at=payment.paid_at.isoformat() if payment.paid_at else None,
    )
