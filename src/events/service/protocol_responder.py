"""LNURL and UMA documents and callbacks answered on behalf of our ``$tickets`` address.

Protocol failures are reported in the LNURL error envelope with HTTP 200, never as HTTP errors.
"""

import typing as t
from uuid import UUID

import structlog
from django.conf import settings
from django.db.models import Q
from django.urls import reverse
from django.utils import timezone

from events.models import LightningInvoice, Payment
from lightning.exceptions import ProtocolEnvelopeError
from lightning.uma_protocol import (
    MSATS_PER_SAT,
    build_pay_req_envelope,
    lnurl_metadata,
    parse_uma_pay_request,
)

logger = structlog.get_logger(__name__)


def _absolute(url_name: str) -> str:
    return f"{settings.PUBLIC_API_BASE_URL.rstrip('/')}{reverse(url_name)}"


def error_envelope(reason: str) -> dict[str, str]:
    """LNURL error response."""
    return {"status": "ERROR", "reason": reason}


def bare_pay_response(encoded_payment_request: str) -> dict[str, t.Any]:
    """LNURL pay response carrying only the invoice."""
    return {"pr": encoded_payment_request, "routes": []}


def lnurlp_document(username: str) -> dict[str, t.Any]:
    """LNURL pay discovery document for our receiving address."""
    if username != settings.UMA_RECEIVER_USERNAME:
        return error_envelope(f"Unknown user {username}")
    return {
        "callback": _absolute("api:lnurl_callback"),
        "maxSendable": settings.LNURL_MAX_SENDABLE_MSATS,
        "minSendable": settings.LNURL_MIN_SENDABLE_MSATS,
        "metadata": lnurl_metadata(f"Ticket payments to ${username}@{settings.UMA_DOMAIN}"),
        "tag": "payRequest",
        "uma_major_versions": settings.UMA_MAJOR_VERSIONS,
    }


def uma_configuration() -> dict[str, t.Any]:
    """UMA configuration document of our VASP."""
    return {
        "uma_major_versions": settings.UMA_MAJOR_VERSIONS,
        "uma_request_endpoint": _absolute("protocol:uma_request_invoice_payment"),
    }


def answer_pay_request(ticket_id: UUID, body: bytes) -> dict[str, t.Any]:
    """Hand the counterparty the invoice issued for this ticket.

    A full UMA pay request gets the invoice wrapped in the UMA response envelope; a bare amount
    query, or a request whose envelope cannot be built, gets the bare invoice.
    """
    payment = Payment.objects.filter(ticket_id=ticket_id).first()
    if payment is None:
        return error_envelope("No payment found for this ticket")
    if payment.status != Payment.PaymentStatus.PENDING:
        return error_envelope(f"Payment is {payment.status}")

    bare = bare_pay_response(payment.encoded_payment_request)
    pay_request = parse_uma_pay_request(body)
    if pay_request is None:
        logger.info("payreq_answered", ticket_id=str(ticket_id), envelope=False)
        return bare

    invoice = LightningInvoice.objects.filter(encoded_payment_request=payment.encoded_payment_request).first()
    metadata = lnurl_metadata(invoice.description if invoice else "")
    try:
        response = build_pay_req_envelope(pay_request, payment.encoded_payment_request, metadata)
    except ProtocolEnvelopeError as e:
        logger.warning("payreq_envelope_degraded", ticket_id=str(ticket_id), error=str(e))
        return bare
    logger.info("payreq_answered", ticket_id=str(ticket_id), envelope=True)
    return response


def answer_amount_query(amount_msats: int) -> dict[str, t.Any]:
    """Return the invoice of the oldest pending payment of exactly this amount.

    Several tickets with the same price can be pending at once, so the match is ambiguous;
    the ticket-specific payreq callback is the reliable path.
    """
    if not settings.LNURL_AMOUNT_MATCHING_ENABLED:
        return error_envelope("Amount based invoice lookup is disabled")
    if amount_msats < MSATS_PER_SAT:
        return error_envelope("Amount must be at least 1000 millisatoshis")

    amount_sats = amount_msats // MSATS_PER_SAT
    candidates = (
        Payment.objects.pending()
        .filter(amount_sats=amount_sats)
        .filter(Q(expires_at__isnull=True) | Q(expires_at__gt=timezone.now()))
        .order_by("created_at")
    )
    payment = candidates.first()
    if payment is None:
        return error_envelope("No pending payment found for this amount")

    matches = candidates.count()
    if matches > 1:
        logger.warning("lnurl_amount_match_ambiguous", amount_sats=amount_sats, matches=matches)
    logger.info("lnurl_amount_matched", payment_id=str(payment.pk), amount_sats=amount_sats)
    return bare_pay_response(payment.encoded_payment_request)
