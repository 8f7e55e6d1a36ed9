import typing as t
from unittest.mock import patch

import httpx
import pytest

from lightning.exceptions import WalletPaymentError
from lightning.wallet_connect import NWCBridgeClient

BRIDGE_URL = "https://nwc-bridge.test"
CONNECTION_URI = "nostr+walletconnect://b889ff5b?relay=wss%3A%2F%2Frelay.test&secret=71a8c14c"


def bridge_response(status_code: int, **kwargs: t.Any) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", f"{BRIDGE_URL}/pay_invoice"), **kwargs)


@pytest.fixture
def client() -> NWCBridgeClient:
    return NWCBridgeClient(bridge_url=f"{BRIDGE_URL}/", token="bridge-token", timeout=10, max_fee_msats=5_000)


class TestPayInvoice:
    def test_returns_preimage(self, client: NWCBridgeClient) -> None:
        response = bridge_response(200, json={"preimage": "ab"})
        with patch("lightning.wallet_connect.httpx.post", return_value=response) as post:
            preimage = client.pay_invoice(CONNECTION_URI, "lnbc1abc")

        assert preimage == "ab"
        post.assert_called_once_with(
            f"{BRIDGE_URL}/pay_invoice",
            json={"connection_uri": CONNECTION_URI, "invoice": "lnbc1abc", "max_fee_msats": 5_000},
            headers={"Authorization": "Bearer bridge-token"},
            timeout=10,
        )

    def test_wallet_error_in_body(self, client: NWCBridgeClient) -> None:
        response = bridge_response(200, json={"error": "INSUFFICIENT_BALANCE"})
        with patch("lightning.wallet_connect.httpx.post", return_value=response):
            with pytest.raises(WalletPaymentError, match="INSUFFICIENT_BALANCE"):
                client.pay_invoice(CONNECTION_URI, "lnbc1abc")

    def test_http_error(self, client: NWCBridgeClient) -> None:
        with patch("lightning.wallet_connect.httpx.post", return_value=bridge_response(502)):
            with pytest.raises(WalletPaymentError, match="502"):
                client.pay_invoice(CONNECTION_URI, "lnbc1abc")

    def test_bridge_unreachable(self, client: NWCBridgeClient) -> None:
        with patch("lightning.wallet_connect.httpx.post", side_effect=httpx.ConnectTimeout("timed out")):
            with pytest.raises(WalletPaymentError, match="unreachable"):
                client.pay_invoice(CONNECTION_URI, "lnbc1abc")

    def test_bridge_not_configured(self, settings: t.Any) -> None:
        settings.NWC_BRIDGE_URL = ""

        with pytest.raises(WalletPaymentError, match="NWC_BRIDGE_URL"):
            NWCBridgeClient().pay_invoice(CONNECTION_URI, "lnbc1abc")
