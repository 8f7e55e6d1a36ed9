"""Settlement reconciler for Lightspark webhook events."""

import typing as t
from collections.abc import Mapping

import structlog

from events.service import payment_service
from lightning.entities import IncomingSettlement, OutgoingSettlement, ProcessorWebhookEvent, SettlementEntity
from lightning.exceptions import SettlementResolutionError
from lightning.processor import PaymentProcessor, get_payment_processor

logger = structlog.get_logger(__name__)

EMBEDDED_PAYMENT_REQUEST_KEYS = ("encoded_payment_request", "invoice_data_encoded_payment_request")


def embedded_payment_request(payment_request_data: t.Any) -> str:
    """Read the bolt11 string embedded in an outgoing payment.

    The processor hands the payment request data either as an object or as the raw mapping.

    Raises:
        SettlementResolutionError: if no encoded payment request is present.
    """
    if payment_request_data is None:
        raise SettlementResolutionError("Outgoing payment carries no payment request data")
    if isinstance(payment_request_data, Mapping):
        value = next(
            (payment_request_data[key] for key in EMBEDDED_PAYMENT_REQUEST_KEYS if payment_request_data.get(key)),
            None,
        )
    else:
        value = getattr(payment_request_data, "encoded_payment_request", None)
    if not value:
        raise SettlementResolutionError("Outgoing payment has no encoded payment request")
    return t.cast(str, value)


def resolve_encoded_payment_request(entity: SettlementEntity, processor: PaymentProcessor) -> str:
    """Extract the bolt11 string that identifies the settled invoice.

    Raises:
        SettlementResolutionError: if the entity does not lead to an invoice.
    """
    match entity:
        case IncomingSettlement(invoice_id=None):
            raise SettlementResolutionError(f"Incoming payment {entity.entity_id} has no invoice reference")
        case IncomingSettlement(invoice_id=invoice_id):
            return processor.fetch_encoded_payment_request(t.cast(str, invoice_id))
        case OutgoingSettlement(payment_request_data=data):
            return embedded_payment_request(data)
    raise SettlementResolutionError(f"Unsupported settlement entity {entity!r}")


class LightningEventHandler:
    """Handles the business logic for the different types of Lightspark webhook events."""

    def __init__(self, event: ProcessorWebhookEvent, processor: PaymentProcessor | None = None) -> None:
        self.event = event
        self.processor = processor or get_payment_processor()

    def handle(self) -> None:
        """Routes the event to the appropriate handler based on its type."""
        handler_method = getattr(self, f"handle_{self.event.event_type.lower()}", self.handle_unknown_event)
        handler_method()

    def handle_unknown_event(self) -> None:
        """Event types other than finished payments are acknowledged and ignored."""
        logger.info(
            "lightning_webhook_unhandled_event", event_type=self.event.event_type, event_id=self.event.event_id
        )

    def handle_payment_finished(self) -> None:
        """Mark the ticket whose invoice was paid as paid."""
        log = logger.bind(event_id=self.event.event_id, entity_id=self.event.entity_id)
        try:
            entity = self.processor.fetch_settlement_entity(self.event.entity_id)
            encoded_payment_request = resolve_encoded_payment_request(entity, self.processor)
        except SettlementResolutionError as e:
            log.error("lightning_settlement_unresolved", error=str(e))
            return

        payment = payment_service.mark_paid(encoded_payment_request)
        log.info(
            "lightning_settlement_processed",
            kind=entity.kind,
            payment_id=str(payment.pk) if payment else None,
        )
