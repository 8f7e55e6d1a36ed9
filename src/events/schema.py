"""Event, ticket, and payment schemas."""

from datetime import datetime
from uuid import UUID

from ninja import ModelSchema, Schema
from pydantic import Field

from events.models import Event, LightningInvoice, Payment, Ticket


class EventSchema(ModelSchema):
    remaining_capacity: int

    class Meta:
        model = Event
        fields = ["id", "title", "description", "start", "end", "capacity", "price_sats", "stream_url", "is_active"]

    @staticmethod
    def resolve_remaining_capacity(obj: Event) -> int:
        return obj.remaining_capacity()


class MinimalEventSchema(ModelSchema):
    class Meta:
        model = Event
        fields = ["id", "title", "start", "end", "price_sats"]


class TicketSchema(ModelSchema):
    class Meta:
        model = Ticket
        fields = ["id", "ticket_code", "payment_status", "uma_address", "paid_at", "created_at"]


class InvoiceSchema(Schema):
    invoice_id: str = Field(..., alias="processor_invoice_id")
    payment_hash: str
    bolt11: str = Field(..., alias="encoded_payment_request")
    amount_sats: int
    expires_at: datetime
    uma_address: str


class UMARequestSchema(Schema):
    buyer_address: str
    callback_url: str


class TicketPurchasePayload(Schema):
    event_id: UUID
    user_id: UUID
    uma_address: str = Field("", max_length=255, description="Buyer's $user@domain address. Required for paid events.")


class TicketPurchaseResponse(Schema):
    message: str
    ticket: TicketSchema
    event: MinimalEventSchema
    payment_required: bool
    invoice: InvoiceSchema | None = None
    uma_request: UMARequestSchema | None = None


class PaymentSchema(ModelSchema):
    bolt11: str = Field(..., alias="encoded_payment_request")

    class Meta:
        model = Payment
        fields = ["id", "status", "amount_sats", "expires_at", "paid_at"]


class TicketStatusResponse(Schema):
    ticket: TicketSchema
    event: MinimalEventSchema
    payment: PaymentSchema | None = None


class TicketWithPaymentSchema(TicketSchema):
    event: MinimalEventSchema
    payment: PaymentSchema | None = None

    @staticmethod
    def resolve_payment(obj: Ticket) -> Payment | None:
        return getattr(obj, "payment", None)


class TicketValidationPayload(Schema):
    ticket_code: str = Field(..., min_length=1, max_length=32)
    event_id: UUID


class TicketValidationResponse(Schema):
    valid: bool
    reason: str
    ticket: TicketSchema | None = None
    holder: str | None = None


class PendingPaymentSchema(ModelSchema):
    ticket_id: UUID
    ticket_code: str
    event_id: UUID
    event_title: str
    uma_address: str
    bolt11: str = Field(..., alias="encoded_payment_request")

    class Meta:
        model = Payment
        fields = ["id", "status", "amount_sats", "expires_at", "failure_reason", "created_at"]

    @staticmethod
    def resolve_ticket_code(obj: Payment) -> str:
        return obj.ticket.ticket_code

    @staticmethod
    def resolve_event_id(obj: Payment) -> UUID:
        return obj.ticket.event_id

    @staticmethod
    def resolve_event_title(obj: Payment) -> str:
        return obj.ticket.event.title

    @staticmethod
    def resolve_uma_address(obj: Payment) -> str:
        return obj.ticket.uma_address


class PaymentRetryResponse(Schema):
    message: str
    payment: PendingPaymentSchema
    new_invoice: InvoiceSchema
