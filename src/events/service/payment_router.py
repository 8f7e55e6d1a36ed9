"""Payment router: delivers a pending ticket's invoice to the buyer.

Runs in a celery worker after the purchase has been committed. The stored wallet
credential is tried first; when there is none, or the wallet cannot pay, a payment
request is pushed to the buyer's UMA provider, which then pulls the invoice from
our payreq callback. Only a failed push finalizes the ticket (as ``failed``); paid
transitions always come from the settlement webhook.
"""

import enum
from datetime import timedelta
from uuid import UUID

import structlog
from django.conf import settings
from django.db import transaction
from django.urls import reverse
from django.utils import timezone

from accounts.service.wallet_connection_service import get_usable_wallet_connection
from events.models import Payment, Ticket
from events.service import payment_service
from lightning.address import UMAAddress
from lightning.exceptions import InvalidUMAAddressError, UMARequestError, WalletPaymentError
from lightning.uma_requests import UMARequestClient, get_uma_request_client
from lightning.wallet_connect import WalletConnectPayer, get_wallet_connect_payer

logger = structlog.get_logger(__name__)


class DispatchOutcome(enum.StrEnum):
    WALLET_PAID = "wallet_paid"
    REQUEST_PUSHED = "request_pushed"
    FAILED = "failed"
    SKIPPED = "skipped"


def payreq_callback_url(ticket: Ticket) -> str:
    """Absolute URL the buyer's provider calls to pull the ticket's invoice."""
    path = reverse("protocol:uma_payreq", kwargs={"ticket_id": ticket.pk})
    return f"{settings.PUBLIC_API_BASE_URL.rstrip('/')}{path}"


class PaymentRouter:
    """Chooses and executes the delivery path for one ticket's invoice."""

    def __init__(
        self,
        ticket: Ticket,
        *,
        wallet_payer: WalletConnectPayer | None = None,
        uma_client: UMARequestClient | None = None,
    ) -> None:
        self.ticket = ticket
        self.wallet_payer = wallet_payer or get_wallet_connect_payer()
        self.uma_client = uma_client or get_uma_request_client()
        self.log = logger.bind(ticket_id=str(ticket.pk))

    def dispatch(self, *, allow_wallet: bool = True) -> DispatchOutcome:
        """Deliver the invoice through exactly one path.

        Args:
            allow_wallet: Whether the stored wallet credential may be used. Admin retries
                push the payment request directly.
        """
        payment = Payment.objects.filter(ticket=self.ticket).first()
        if payment is None or payment.status != Payment.PaymentStatus.PENDING:
            self.log.info("payment_dispatch_skipped", status=getattr(payment, "status", None))
            return DispatchOutcome.SKIPPED

        if allow_wallet and self._pay_with_wallet(payment):
            return DispatchOutcome.WALLET_PAID

        try:
            self._push_payment_request(payment)
        except (UMARequestError, InvalidUMAAddressError) as e:
            self.log.warning("payment_request_push_failed", error=str(e))
            payment_service.mark_failed(payment.pk, str(e))
            return DispatchOutcome.FAILED
        return DispatchOutcome.REQUEST_PUSHED

    def _pay_with_wallet(self, payment: Payment) -> bool:
        connection = get_usable_wallet_connection(self.ticket.user_id)
        if connection is None:
            return False

        try:
            preimage = self.wallet_payer.pay_invoice(connection.connection_uri, payment.encoded_payment_request)
        except WalletPaymentError as e:
            self.log.warning("wallet_payment_failed_falling_back", error=str(e))
            return False

        self.log.info("wallet_payment_sent", payment_id=str(payment.pk), has_preimage=bool(preimage))
        return True

    def _push_payment_request(self, payment: Payment) -> None:
        address = UMAAddress.parse(self.ticket.uma_address)
        expires_at = timezone.now() + timedelta(hours=settings.UMA_REQUEST_EXPIRY_HOURS)
        request_invoice = self.uma_client.build_request_invoice(
            buyer_address=address,
            amount_sats=payment.amount_sats,
            callback_url=payreq_callback_url(self.ticket),
            expires_at=expires_at,
        )
        self.uma_client.send_payment_request(address, request_invoice)
        self.log.info("payment_request_pushed", payment_id=str(payment.pk), domain=address.domain)


def schedule_dispatch(ticket_id: UUID | str, *, allow_wallet: bool = True) -> None:
    """Enqueue the dispatch task once the current transaction commits."""
    from events.tasks import dispatch_ticket_payment

    transaction.on_commit(lambda: dispatch_ticket_payment.delay(str(ticket_id), allow_wallet=allow_wallet))
