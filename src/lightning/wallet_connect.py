"""Paying invoices through a buyer's Nostr Wallet Connect (NWC) credential.

NWC messages are relayed over Nostr. We do not speak Nostr ourselves; a bridge
service receives the connection URI and the invoice, performs the ``pay_invoice``
request against the buyer's wallet, and reports the outcome.
"""

import typing as t

import httpx
import structlog
from django.conf import settings

from .exceptions import WalletPaymentError

logger = structlog.get_logger(__name__)


class WalletConnectPayer(t.Protocol):
    """Protocol for backends able to pay an invoice from a buyer's wallet."""

    def pay_invoice(self, connection_uri: str, encoded_payment_request: str) -> str | None:
        """Ask the buyer's wallet to pay the invoice.

        Returns:
            The payment preimage if the wallet reported one.

        Raises:
            WalletPaymentError: if the wallet could not be reached or refused to pay.
        """
        ...


class NWCBridgeClient:
    """Pays invoices through an HTTP bridge to Nostr Wallet Connect."""

    def __init__(
        self,
        bridge_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        max_fee_msats: int | None = None,
    ) -> None:
        self.bridge_url = (bridge_url or settings.NWC_BRIDGE_URL).rstrip("/")
        self.token = token or settings.NWC_BRIDGE_TOKEN
        self.timeout = timeout or settings.NWC_PAY_TIMEOUT
        self.max_fee_msats = max_fee_msats if max_fee_msats is not None else settings.NWC_MAX_FEE_MSATS

    def pay_invoice(self, connection_uri: str, encoded_payment_request: str) -> str | None:
        """Forward a ``pay_invoice`` request to the bridge."""
        if not self.bridge_url:
            raise WalletPaymentError("NWC_BRIDGE_URL is not configured")

        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            response = httpx.post(
                f"{self.bridge_url}/pay_invoice",
                json={
                    "connection_uri": connection_uri,
                    "invoice": encoded_payment_request,
                    "max_fee_msats": self.max_fee_msats,
                },
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise WalletPaymentError(f"Wallet refused to pay: {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise WalletPaymentError(f"Wallet bridge unreachable: {e}") from e

        try:
            result = response.json()
        except ValueError:
            result = {}
        if not isinstance(result, dict):
            result = {}
        if result.get("error"):
            raise WalletPaymentError(f"Wallet returned an error: {result['error']}")
        return t.cast(str | None, result.get("preimage"))


_wallet_connect_payer: WalletConnectPayer | None = None


def get_wallet_connect_payer() -> WalletConnectPayer:
    """Get the wallet connect payer singleton."""
    global _wallet_connect_payer
    if _wallet_connect_payer is None:
        _wallet_connect_payer = NWCBridgeClient()
    return _wallet_connect_payer
