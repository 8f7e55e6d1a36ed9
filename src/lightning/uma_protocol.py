"""UMA and LNURL payloads served to counterparties."""

import typing as t
from datetime import timedelta

import orjson
import structlog
import uma
from django.conf import settings
from django.utils import timezone

from .exceptions import ProtocolEnvelopeError

logger = structlog.get_logger(__name__)

SAT_CURRENCY_CODE = "SAT"
MSATS_PER_SAT = 1000


def lnurl_metadata(description: str) -> str:
    """LNURL metadata whose hash is committed to by the invoice's description hash."""
    return orjson.dumps([["text/plain", description]]).decode()


class IssuedInvoiceCreator(uma.IUmaInvoiceCreator):  # type: ignore[misc]
    """Hands the UMA library an invoice that already exists instead of creating a new one.

    The pull callback must return the invoice that was stored at purchase time, since that
    invoice's bolt11 string is the key the settlement webhook is matched on.
    """

    def __init__(self, encoded_payment_request: str) -> None:
        self.encoded_payment_request = encoded_payment_request

    def create_uma_invoice(self, amount_msats: int, metadata: str, receiver_identifier: str | None = None) -> str:
        return self.encoded_payment_request


def parse_uma_pay_request(body: bytes) -> t.Any | None:
    """Parse a full UMA pay request.

    Returns None for an empty body, a bare LNURL amount query, or anything the UMA library
    cannot parse. Callers then answer with the bare invoice.
    """
    if not body:
        return None
    try:
        pay_request = uma.parse_pay_request(body.decode())
    except Exception as e:
        logger.info("uma_pay_request_not_parsed", error=str(e))
        return None
    if not pay_request.is_uma_request():
        return None
    return pay_request


def build_pay_req_envelope(pay_request: t.Any, encoded_payment_request: str, metadata: str) -> dict[str, t.Any]:
    """Wrap an issued invoice in the UMA pay request response.

    Raises:
        ProtocolEnvelopeError: if the UMA library fails to build the response.
    """
    try:
        signing_key = bytes.fromhex(settings.UMA_SIGNING_PRIVKEY) if settings.UMA_SIGNING_PRIVKEY else None
        response = uma.create_pay_req_response(
            request=pay_request,
            invoice_creator=IssuedInvoiceCreator(encoded_payment_request),
            metadata=metadata,
            receiving_currency_code=SAT_CURRENCY_CODE,
            receiving_currency_decimals=0,
            msats_per_currency_unit=MSATS_PER_SAT,
            receiver_fees_msats=0,
            receiver_node_pubkey=None,
            receiver_utxos=[],
            utxo_callback="",
            payee_identifier=f"${settings.UMA_RECEIVER_USERNAME}@{settings.UMA_DOMAIN}",
            signing_private_key=signing_key,
        )
        return t.cast(dict[str, t.Any], response.to_dict())
    except Exception as e:
        raise ProtocolEnvelopeError(f"Failed to build UMA pay request response: {e}") from e


def build_pubkey_response() -> dict[str, t.Any] | None:
    """Our signing and encryption certificate chains, or None when they are not configured.

    Raises:
        ProtocolEnvelopeError: if the configured chains cannot be encoded.
    """
    if not settings.UMA_SIGNING_CERT_CHAIN or not settings.UMA_ENCRYPTION_CERT_CHAIN:
        return None
    expiration = timezone.now() + timedelta(days=settings.UMA_PUBKEY_EXPIRY_DAYS)
    try:
        response = uma.create_pubkey_response(
            settings.UMA_SIGNING_CERT_CHAIN,
            settings.UMA_ENCRYPTION_CERT_CHAIN,
            expiration,
        )
        return t.cast(dict[str, t.Any], response.to_dict())
    except Exception as e:
        raise ProtocolEnvelopeError(f"Failed to build public key response: {e}") from e
