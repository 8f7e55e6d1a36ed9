"""Pushing UMA payment requests to a buyer's provider (VASP).

The buyer's VASP is discovered from the domain of their address. Its
``/.well-known/uma-configuration`` document advertises the endpoint that accepts
payment requests; we post a signed UMA invoice there and the VASP later pulls the
Lightning invoice from our ``/uma/payreq/{ticket_id}`` callback.
"""

import typing as t
from datetime import datetime

import httpx
import structlog
import uma
from django.conf import settings

from .address import UMAAddress
from .exceptions import UMARequestError

logger = structlog.get_logger(__name__)

UMA_CONFIGURATION_PATH = "/.well-known/uma-configuration"


def receiver_address() -> str:
    """Our own UMA address, used as the receiver of every ticket payment."""
    return f"${settings.UMA_RECEIVER_USERNAME}@{settings.UMA_DOMAIN}"


class UMARequestClient:
    """Client for discovering VASPs and sending them payment requests."""

    def __init__(self, timeout: float | None = None, signing_privkey: str | None = None) -> None:
        self.timeout = timeout or settings.UMA_HTTP_TIMEOUT
        self.signing_privkey = signing_privkey or settings.UMA_SIGNING_PRIVKEY
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=httpx.Timeout(self.timeout, connect=5.0))
        return self._client

    def discover_request_endpoint(self, address: UMAAddress) -> str:
        """Fetch the VASP configuration and return its ``uma_request_endpoint``.

        Raises:
            UMARequestError: if the VASP is unreachable or does not accept payment requests.
        """
        url = f"{address.base_url}{UMA_CONFIGURATION_PATH}"
        try:
            response = self._get_client().get(url)
        except httpx.RequestError as e:
            raise UMARequestError(f"Failed to fetch UMA configuration from {address.domain}: {e}") from e

        if response.status_code != 200:
            raise UMARequestError(
                f"UMA configuration request to {address.domain} returned {response.status_code}",
                status_code=response.status_code,
            )
        try:
            endpoint = response.json().get("uma_request_endpoint")
        except ValueError as e:
            raise UMARequestError(f"UMA configuration of {address.domain} is not valid JSON") from e
        if not endpoint:
            raise UMARequestError(f"{address.domain} does not advertise an uma_request_endpoint")
        return t.cast(str, endpoint)

    def build_request_invoice(
        self,
        *,
        buyer_address: UMAAddress,
        amount_sats: int,
        callback_url: str,
        expires_at: datetime,
    ) -> str:
        """Build the signed, bech32-encoded UMA invoice describing the payment we request.

        Raises:
            UMARequestError: if signing keys are missing or the UMA library rejects the input.
        """
        if not self.signing_privkey:
            raise UMARequestError("UMA_SIGNING_PRIVKEY is not configured")
        try:
            invoice = uma.create_uma_invoice(
                receiver_uma=receiver_address(),
                receiving_currency_amount=amount_sats,
                receiving_currency=uma.InvoiceCurrency(code="SAT", name="Satoshi", symbol="sat", decimals=0),
                expiration=expires_at,
                callback=callback_url,
                is_subject_to_travel_rule=True,
                signing_private_key=bytes.fromhex(self.signing_privkey),
                sender_uma=str(buyer_address),
            )
            return t.cast(str, invoice.to_bech32_string())
        except Exception as e:
            raise UMARequestError(f"Failed to build UMA invoice: {e}") from e

    def send_payment_request(self, buyer_address: UMAAddress, invoice: str) -> None:
        """Discover the buyer's VASP and post the UMA invoice to it.

        Raises:
            UMARequestError: on any discovery failure or non-200 answer.
        """
        endpoint = self.discover_request_endpoint(buyer_address)
        try:
            response = self._get_client().post(endpoint, json={"invoice": invoice})
        except httpx.RequestError as e:
            raise UMARequestError(f"Failed to send payment request to {buyer_address.domain}: {e}") from e

        if response.status_code != 200:
            logger.warning(
                "uma_request_rejected",
                domain=buyer_address.domain,
                status=response.status_code,
                body=response.text[:200],
            )
            raise UMARequestError(
                f"{buyer_address.domain} rejected the payment request with {response.status_code}",
                status_code=response.status_code,
            )
        logger.info("uma_request_sent", buyer_address=str(buyer_address), endpoint=endpoint)


_uma_request_client: UMARequestClient | None = None


def get_uma_request_client() -> UMARequestClient:
    """Get the UMA request client singleton."""
    global _uma_request_client
    if _uma_request_client is None:
        _uma_request_client = UMARequestClient()
    return _uma_request_client
