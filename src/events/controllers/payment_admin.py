import typing as t
from uuid import UUID

from django.shortcuts import get_object_or_404
from ninja_extra import ControllerBase, api_controller, route

from common.authentication import PaymentAdminJWTAuth
from common.schema import ResponseMessage
from events import schema
from events.models import Payment, PaymentQuerySet
from events.service import payment_admin_service


@api_controller("/admin/payments", auth=PaymentAdminJWTAuth(), tags=["Payment Admin"])
class PaymentAdminController(ControllerBase):
    @route.get("/pending", url_name="admin_pending_payments", response=list[schema.PendingPaymentSchema])
    def pending(self) -> PaymentQuerySet:
        """List payments still awaiting settlement, oldest first."""
        return payment_admin_service.pending_payments()

    @route.post(
        "/{uuid:payment_id}/retry",
        url_name="admin_retry_payment",
        response={200: schema.PaymentRetryResponse, 400: ResponseMessage, 409: ResponseMessage},
    )
    def retry(self, payment_id: UUID) -> dict[str, t.Any]:
        """Retry a failed or expired payment.

        Issues a new invoice, puts the ticket back to pending and pushes a fresh payment request to
        the buyer's provider. Returns 400 if the payment is neither failed nor expired and 409 if
        the event has no seat left.
        """
        get_object_or_404(Payment, pk=payment_id)
        payment, invoice = payment_admin_service.retry_payment(payment_id)
        return {"message": "Payment retry initiated", "payment": payment, "new_invoice": invoice}
