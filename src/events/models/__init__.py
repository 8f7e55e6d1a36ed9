from .event import Event, EventQuerySet
from .invoice import LightningInvoice
from .ticket import Payment, PaymentQuerySet, Ticket, TicketQuerySet, generate_ticket_code

__all__ = [
    "Event",
    "EventQuerySet",
    "LightningInvoice",
    "Payment",
    "PaymentQuerySet",
    "Ticket",
    "TicketQuerySet",
    "generate_ticket_code",
]
