"""Processor-independent views of Lightspark objects."""

import enum
import typing as t
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ProcessorInvoice:
    invoice_id: str
    payment_hash: str
    encoded_payment_request: str
    expires_at: datetime


@dataclass(frozen=True)
class ProcessorWebhookEvent:
    event_id: str
    event_type: str
    entity_id: str


class SettlementKind(enum.StrEnum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


@dataclass(frozen=True)
class IncomingSettlement:
    """Someone paid an invoice we issued. The invoice is referenced, not embedded."""

    entity_id: str
    invoice_id: str | None
    kind: t.ClassVar[SettlementKind] = SettlementKind.INCOMING


@dataclass(frozen=True)
class OutgoingSettlement:
    """Our node paid an invoice (self-pay). The payment request data is embedded.

    ``payment_request_data`` is whatever the processor returned: an object exposing
    ``encoded_payment_request``, a mapping, or None.
    """

    entity_id: str
    payment_request_data: t.Any
    kind: t.ClassVar[SettlementKind] = SettlementKind.OUTGOING


SettlementEntity = IncomingSettlement | OutgoingSettlement
