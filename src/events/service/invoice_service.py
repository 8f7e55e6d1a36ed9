"""Invoice issuer.

Validates the purchase inputs, asks the processor for an LNURL invoice and stores
the resulting invoice locally, scoped to a single ticket.
"""

import structlog
from django.conf import settings

from events.models import LightningInvoice, Ticket
from lightning.address import UMAAddress
from lightning.exceptions import InvoiceIssuerError
from lightning.processor import PaymentProcessor, get_payment_processor
from lightning.uma_protocol import MSATS_PER_SAT, lnurl_metadata

logger = structlog.get_logger(__name__)

MAX_DESCRIPTION_LENGTH = 640


def purchase_description(ticket: Ticket) -> str:
    """Description of the invoice issued at purchase time."""
    return f"Ticket #{ticket.ticket_code} for {ticket.event.title}"[:MAX_DESCRIPTION_LENGTH]


def retry_description(ticket: Ticket) -> str:
    """Description of an invoice issued by an admin retry."""
    return f"Retry payment for ticket {ticket.ticket_code}"


def issue_invoice(
    ticket: Ticket,
    buyer_address: str,
    amount_sats: int,
    description: str,
    *,
    processor: PaymentProcessor | None = None,
) -> LightningInvoice:
    """Issue and persist an invoice for one ticket.

    Args:
        ticket: The ticket the invoice pays for.
        buyer_address: The buyer's ``$user@domain`` address.
        amount_sats: Invoice amount in satoshis.
        description: Human-readable description, committed to by the invoice.
        processor: Override of the configured payment processor.

    Returns:
        The stored invoice.

    Raises:
        InvalidUMAAddressError: if the address is malformed. Nothing is issued.
        InvoiceIssuerError: if the amount is not positive or the processor fails.
    """
    address = UMAAddress.parse(buyer_address)
    if amount_sats <= 0:
        raise InvoiceIssuerError(f"Invoice amount must be positive, got {amount_sats} sats")

    processor = processor or get_payment_processor()
    issued = processor.create_invoice(
        amount_msats=amount_sats * MSATS_PER_SAT,
        metadata=lnurl_metadata(description),
        expiry_secs=settings.INVOICE_EXPIRY_SECONDS,
    )

    invoice = LightningInvoice.objects.create(
        ticket=ticket,
        event_id=ticket.event_id,
        processor_invoice_id=issued.invoice_id,
        payment_hash=issued.payment_hash,
        encoded_payment_request=issued.encoded_payment_request,
        amount_sats=amount_sats,
        uma_address=str(address),
        description=description,
        expires_at=issued.expires_at,
    )
    logger.info(
        "invoice_issued",
        ticket_id=str(ticket.pk),
        invoice_id=issued.invoice_id,
        amount_sats=amount_sats,
        expires_at=issued.expires_at.isoformat(),
    )
    return invoice
