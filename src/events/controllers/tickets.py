import typing as t
from uuid import UUID

from django.shortcuts import get_object_or_404
from ninja_extra import ControllerBase, api_controller, route
from ninja_jwt.authentication import JWTAuth

from accounts.models import TicketUser
from common.schema import ValidationErrorResponse
from events import schema
from events.models import Ticket, TicketQuerySet
from events.service import ticket_service
from events.service.payment_router import payreq_callback_url


@api_controller("/tickets", tags=["Tickets"])
class TicketController(ControllerBase):
    @route.post(
        "/purchase",
        url_name="ticket_purchase",
        auth=None,
        response={201: schema.TicketPurchaseResponse, 400: ValidationErrorResponse},
    )
    def purchase(self, payload: schema.TicketPurchasePayload) -> tuple[int, dict[str, t.Any]]:
        """Buy a ticket for an event.

        Free events return a ticket that is valid right away. For paid events the ticket is pending:
        the response carries the Lightning invoice, and a payment request is delivered to the buyer
        in the background, through their stored wallet connection if they have one, otherwise to
        the provider of their UMA address. Poll the ticket status endpoint to follow the payment.

        Returns 400 for a malformed UMA address, 404 for an unknown or inactive event,
        409 when the event is sold out and 502 when no invoice could be issued.
        """
        user = get_object_or_404(TicketUser, pk=payload.user_id)
        result = ticket_service.purchase_ticket(payload.event_id, user, payload.uma_address)
        ticket = result.ticket

        if not result.payment_required:
            return 201, {
                "message": "Ticket issued",
                "ticket": ticket,
                "event": ticket.event,
                "payment_required": False,
            }

        return 201, {
            "message": "Ticket reserved. Complete the payment to confirm it.",
            "ticket": ticket,
            "event": ticket.event,
            "payment_required": True,
            "invoice": result.invoice,
            "uma_request": {"buyer_address": ticket.uma_address, "callback_url": payreq_callback_url(ticket)},
        }

    @route.get(
        "/{uuid:ticket_id}/status",
        url_name="ticket_status",
        auth=None,
        response=schema.TicketStatusResponse,
    )
    def status(self, ticket_id: UUID) -> dict[str, t.Any]:
        """Snapshot of a ticket and its payment. Poll every 10 seconds while the payment is pending."""
        ticket = get_object_or_404(Ticket.objects.with_payment(), pk=ticket_id)
        return {"ticket": ticket, "event": ticket.event, "payment": getattr(ticket, "payment", None)}

    @route.post("/validate", url_name="ticket_validate", auth=None, response=schema.TicketValidationResponse)
    def validate(self, payload: schema.TicketValidationPayload) -> dict[str, t.Any]:
        """Check a ticket code at the door.

        A ticket is valid when it belongs to the event, is paid or free, and the event is running.
        """
        validation = ticket_service.validate_ticket(payload.ticket_code, payload.event_id)
        ticket = validation.ticket
        return {
            "valid": validation.valid,
            "reason": validation.reason,
            "ticket": ticket,
            "holder": ticket.user.display_name if ticket and validation.valid else None,
        }

    @route.get("/mine", url_name="my_tickets", auth=JWTAuth(), response=list[schema.TicketWithPaymentSchema])
    def my_tickets(self) -> TicketQuerySet:
        """List the authenticated user's tickets with their payment status."""
        user = t.cast(TicketUser, self.context.request.user)  # type: ignore[union-attr]
        return ticket_service.tickets_for_user(user)
