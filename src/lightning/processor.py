"""Gateway to the Lightspark payment processor.

Everything the ticketing core needs from the processor goes through the
:class:`PaymentProcessor` protocol so tests and alternative processors can
replace the Lightspark implementation.
"""

import typing as t
from datetime import timedelta

import lightspark
import structlog
from django.conf import settings
from django.utils import timezone

from .entities import (
    IncomingSettlement,
    OutgoingSettlement,
    ProcessorInvoice,
    ProcessorWebhookEvent,
    SettlementEntity,
)
from .exceptions import InvoiceIssuerError, SettlementResolutionError, WebhookVerificationError

logger = structlog.get_logger(__name__)

PAYMENT_FINISHED = "PAYMENT_FINISHED"

# Lightspark entity ids are prefixed with their GraphQL typename, e.g. "IncomingPayment:0189..."
INCOMING_PAYMENT_TYPENAME = "IncomingPayment"
OUTGOING_PAYMENT_TYPENAME = "OutgoingPayment"


class PaymentProcessor(t.Protocol):
    """Protocol for Lightning payment processors."""

    def create_invoice(self, amount_msats: int, metadata: str, expiry_secs: int) -> ProcessorInvoice:
        """Issue an LNURL invoice whose description hash commits to ``metadata``.

        Raises:
            InvoiceIssuerError: if the processor is unreachable or rejects the request.
        """
        ...

    def parse_webhook(self, body: bytes, signature: str) -> ProcessorWebhookEvent:
        """Verify the signature of a webhook body and parse it.

        Raises:
            WebhookVerificationError: if the signature does not match or the body is malformed.
        """
        ...

    def fetch_settlement_entity(self, entity_id: str) -> SettlementEntity:
        """Fetch the payment a webhook refers to and classify its shape.

        Raises:
            SettlementResolutionError: if the entity cannot be fetched or has an unsupported type.
        """
        ...

    def fetch_encoded_payment_request(self, invoice_id: str) -> str:
        """Return the encoded payment request (bolt11) of an invoice we issued.

        Raises:
            SettlementResolutionError: if the invoice cannot be fetched.
        """
        ...


class LightsparkProcessor:
    """Lightspark implementation of :class:`PaymentProcessor`."""

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        api_endpoint: str | None = None,
        node_id: str | None = None,
        webhook_secret: str | None = None,
    ) -> None:
        self.client_id = client_id or settings.LIGHTSPARK_CLIENT_ID
        self.client_secret = client_secret or settings.LIGHTSPARK_CLIENT_SECRET
        self.api_endpoint = api_endpoint or settings.LIGHTSPARK_API_ENDPOINT
        self.node_id = node_id or settings.LIGHTSPARK_NODE_ID
        self.webhook_secret = webhook_secret or settings.LIGHTSPARK_WEBHOOK_SECRET
        self._client: lightspark.LightsparkSyncClient | None = None

    def _get_client(self) -> lightspark.LightsparkSyncClient:
        if self._client is None:
            kwargs: dict[str, t.Any] = {}
            if self.api_endpoint:
                kwargs["base_url"] = self.api_endpoint
            self._client = lightspark.LightsparkSyncClient(
                api_token_client_id=self.client_id,
                api_token_client_secret=self.client_secret,
                **kwargs,
            )
        return self._client

    def create_invoice(self, amount_msats: int, metadata: str, expiry_secs: int) -> ProcessorInvoice:
        """Issue an LNURL invoice on our node."""
        if amount_msats <= 0:
            raise InvoiceIssuerError(f"Invoice amount must be positive, got {amount_msats} msats")
        if not self.node_id:
            raise InvoiceIssuerError("LIGHTSPARK_NODE_ID is not configured")

        try:
            invoice = self._get_client().create_lnurl_invoice(
                node_id=self.node_id,
                amount_msats=amount_msats,
                metadata=metadata,
                expiry_secs=expiry_secs,
            )
        except Exception as e:
            logger.error("lightspark_invoice_creation_failed", amount_msats=amount_msats, error=str(e))
            raise InvoiceIssuerError(f"Failed to create invoice: {e}") from e

        data = invoice.data
        expires_at = data.expires_at or timezone.now() + timedelta(seconds=expiry_secs)
        logger.info("lightspark_invoice_created", invoice_id=invoice.id, amount_msats=amount_msats)
        return ProcessorInvoice(
            invoice_id=invoice.id,
            payment_hash=data.payment_hash,
            encoded_payment_request=data.encoded_payment_request,
            expires_at=expires_at,
        )

    def parse_webhook(self, body: bytes, signature: str) -> ProcessorWebhookEvent:
        """Verify the ``lightspark-signature`` HMAC and parse the event."""
        if not self.webhook_secret:
            raise WebhookVerificationError("LIGHTSPARK_WEBHOOK_SECRET is not configured")
        try:
            event = lightspark.WebhookEvent.verify_and_parse(
                data=body, hexdigest=signature, webhook_secret=self.webhook_secret
            )
        except (ValueError, KeyError, TypeError) as e:
            raise WebhookVerificationError(f"Invalid webhook: {e}") from e

        event_type = getattr(event.event_type, "value", event.event_type)
        return ProcessorWebhookEvent(event_id=event.event_id, event_type=str(event_type), entity_id=event.entity_id)

    def fetch_settlement_entity(self, entity_id: str) -> SettlementEntity:
        """Fetch an incoming or outgoing payment, chosen by the typename prefix of its id."""
        typename = entity_id.split(":", 1)[0] if ":" in entity_id else ""
        if typename == INCOMING_PAYMENT_TYPENAME:
            incoming = self._get_entity(entity_id, lightspark.IncomingPayment)
            return IncomingSettlement(entity_id=entity_id, invoice_id=incoming.payment_request_id)
        if typename == OUTGOING_PAYMENT_TYPENAME:
            outgoing = self._get_entity(entity_id, lightspark.OutgoingPayment)
            return OutgoingSettlement(entity_id=entity_id, payment_request_data=outgoing.payment_request_data)
        raise SettlementResolutionError(f"Unsupported settlement entity type for {entity_id!r}")

    def fetch_encoded_payment_request(self, invoice_id: str) -> str:
        """Follow an invoice reference to its bolt11 string."""
        invoice = self._get_entity(invoice_id, lightspark.Invoice)
        return t.cast(str, invoice.data.encoded_payment_request)

    def _get_entity(self, entity_id: str, entity_class: t.Any) -> t.Any:
        try:
            entity = self._get_client().get_entity(entity_id, entity_class)
        except Exception as e:
            raise SettlementResolutionError(f"Failed to fetch {entity_id!r}: {e}") from e
        if entity is None:
            raise SettlementResolutionError(f"Entity {entity_id!r} not found")
        return entity


_payment_processor: PaymentProcessor | None = None


def get_payment_processor() -> PaymentProcessor:
    """Get the payment processor singleton.

    Returns:
        The configured PaymentProcessor instance.
    """
    global _payment_processor
    if _payment_processor is None:
        _payment_processor = LightsparkProcessor()
    return _payment_processor
