"""LNURL and UMA endpoints called by other wallets and VASPs.

Responses follow the LNURL conventions: protocol failures are reported as
``{"status": "ERROR", "reason": ...}`` with HTTP 200.
"""

import typing as t
from uuid import UUID

import structlog
from django.http import HttpRequest
from ninja.errors import HttpError
from ninja_extra import ControllerBase, api_controller, route

from common.schema import ResponseMessage
from events.service import protocol_responder
from lightning.exceptions import ProtocolEnvelopeError
from lightning.uma_protocol import build_pubkey_response

logger = structlog.get_logger(__name__)

ProtocolResponse = dict[str, t.Any]


@api_controller("/.well-known", auth=None, tags=["Discovery"])
class WellKnownController(ControllerBase):
    @route.get("/lnurlp/{username}", url_name="lnurlp", response=ProtocolResponse)
    def lnurlp(self, username: str) -> ProtocolResponse:
        """LNURL pay parameters of our receiving address."""
        return protocol_responder.lnurlp_document(username)

    @route.get("/uma-configuration", url_name="uma_configuration", response=ProtocolResponse)
    def uma_configuration(self) -> ProtocolResponse:
        """Supported UMA major versions and our payment request endpoint."""
        return protocol_responder.uma_configuration()

    @route.get("/lnurlpubkey", url_name="lnurlpubkey", response={200: ProtocolResponse, 503: ResponseMessage})
    def lnurlpubkey(self) -> tuple[int, ProtocolResponse | ResponseMessage]:
        """Certificate chains used to verify our signatures and encrypt data for us."""
        try:
            document = build_pubkey_response()
        except ProtocolEnvelopeError as e:
            logger.error("uma_pubkey_response_failed", error=str(e))
            raise HttpError(500, "Failed to build public key response") from e
        if document is None:
            return 503, ResponseMessage(message="UMA keys are not configured")
        return 200, document


@api_controller("/uma", auth=None, tags=["UMA"])
class UMAController(ControllerBase):
    @route.post("/payreq/{uuid:ticket_id}", url_name="uma_payreq", response=ProtocolResponse)
    def payreq(self, request: HttpRequest, ticket_id: UUID) -> ProtocolResponse:
        """Hand the invoice of a ticket to the buyer's VASP.

        Called back after we pushed a payment request. The body is either a bare amount query or a
        full UMA pay request; the latter is answered with the UMA response envelope when it can be
        built, otherwise with the bare invoice.
        """
        return protocol_responder.answer_pay_request(ticket_id, request.body)

    @route.get("/payreq/{uuid:ticket_id}", response=ProtocolResponse)
    def payreq_query(self, ticket_id: UUID) -> ProtocolResponse:
        """LNURL style GET of the same callback; always answered with the bare invoice."""
        return protocol_responder.answer_pay_request(ticket_id, b"")

    @route.post("/request_invoice_payment", url_name="uma_request_invoice_payment", response=ProtocolResponse)
    def request_invoice_payment(self) -> ProtocolResponse:
        """We only receive ticket payments; payment requests addressed to us are declined."""
        return protocol_responder.error_envelope("This VASP does not accept payment requests")


@api_controller("/lnurl", auth=None, tags=["LNURL"])
class LnurlController(ControllerBase):
    @route.get("/callback", url_name="lnurl_callback", response=ProtocolResponse)
    def callback(self, amount: int | None = None) -> ProtocolResponse:
        """Deprecated amount based invoice lookup for plain LNURL wallets.

        ``amount`` is in millisatoshis. Returns the invoice of the oldest pending payment of exactly
        this amount. Prefer the ticket specific payreq callback: tickets sharing a price make this
        lookup ambiguous.
        """
        if amount is None:
            return protocol_responder.error_envelope("Missing amount parameter")
        return protocol_responder.answer_amount_query(amount)
