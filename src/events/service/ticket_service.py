"""Ticket purchase and validation."""

from dataclasses import dataclass
from uuid import UUID

import structlog
from django.db import transaction

from accounts.models import TicketUser
from events.exceptions import EventNotAvailableError
from events.models import Event, LightningInvoice, Payment, Ticket, TicketQuerySet
from events.service import capacity_service, invoice_service, payment_router
from lightning.address import validate_uma_address

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PurchaseResult:
    ticket: Ticket
    invoice: LightningInvoice | None = None

    @property
    def payment_required(self) -> bool:
        """Whether the buyer still has to pay."""
        return self.invoice is not None


def purchase_ticket(event_id: UUID, user: TicketUser, buyer_address: str) -> PurchaseResult:
    """Sell a ticket.

    Free events get a ticket that admits immediately, with no payment and no invoice. Priced events
    get a pending ticket, a payment and an invoice. The seat is claimed first, in its own short
    transaction, so the event row is not locked while the processor issues the invoice; if
    issuing fails the claimed ticket is deleted again. The invoice is delivered to the buyer by a
    background task once the payment has been committed.

    Raises:
        EventNotAvailableError: if the event does not exist or is not on sale.
        InvalidUMAAddressError: if the buyer address of a priced purchase is malformed.
        EventSoldOutError: if no seat is left.
        InvoiceIssuerError: if the processor cannot issue the invoice. Nothing is persisted.
    """
    event = Event.objects.active().filter(pk=event_id).first()
    if event is None:
        raise EventNotAvailableError(f"Event {event_id} is not available")

    buyer_address = buyer_address.strip()
    if event.is_free:
        ticket = capacity_service.claim_seat(
            event.pk, user=user, uma_address=buyer_address, payment_status=Ticket.PaymentStatus.FREE
        )
        logger.info("ticket_purchase_free", ticket_id=str(ticket.pk), event_id=str(event.pk), user_id=str(user.pk))
        return PurchaseResult(ticket=ticket)

    buyer_address = validate_uma_address(buyer_address)

    ticket = capacity_service.claim_seat(
        event.pk, user=user, uma_address=buyer_address, payment_status=Ticket.PaymentStatus.PENDING
    )
    try:
        invoice = invoice_service.issue_invoice(
            ticket, buyer_address, ticket.event.price_sats, invoice_service.purchase_description(ticket)
        )
        with transaction.atomic():
            Payment.objects.create(
                ticket=ticket,
                encoded_payment_request=invoice.encoded_payment_request,
                amount_sats=invoice.amount_sats,
                expires_at=invoice.expires_at,
            )
            ticket.processor_invoice_id = invoice.processor_invoice_id
            ticket.save(update_fields=["processor_invoice_id", "updated_at"])
            payment_router.schedule_dispatch(ticket.pk)
    except Exception:
        logger.warning("ticket_purchase_released", ticket_id=str(ticket.pk), event_id=str(event.pk))
        ticket.delete()
        raise

    logger.info(
        "ticket_purchase_created",
        ticket_id=str(ticket.pk),
        event_id=str(event.pk),
        user_id=str(user.pk),
        amount_sats=invoice.amount_sats,
    )
    return PurchaseResult(ticket=ticket, invoice=invoice)


@dataclass(frozen=True)
class TicketValidation:
    valid: bool
    reason: str
    ticket: Ticket | None = None


def validate_ticket(ticket_code: str, event_id: UUID) -> TicketValidation:
    """Check a ticket at the door: it must belong to the event, be paid or free, and the event must be running."""
    ticket = Ticket.objects.select_related("event", "user").filter(ticket_code=ticket_code, event_id=event_id).first()
    if ticket is None:
        return TicketValidation(valid=False, reason="Ticket not found for this event")
    if not ticket.admits:
        return TicketValidation(valid=False, reason=f"Ticket is {ticket.payment_status}", ticket=ticket)
    if not ticket.event.is_running():
        return TicketValidation(valid=False, reason="Event is not currently running", ticket=ticket)
    return TicketValidation(valid=True, reason="Ticket is valid", ticket=ticket)


def tickets_for_user(user: TicketUser) -> TicketQuerySet:
    """The user's tickets, newest first."""
    return Ticket.objects.with_payment().filter(user=user)
