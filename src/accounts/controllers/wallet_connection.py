import typing as t

from ninja_extra import ControllerBase, api_controller, route
from ninja_jwt.authentication import JWTAuth

from accounts import schema
from accounts.models import TicketUser, WalletConnection
from accounts.service import wallet_connection_service


@api_controller("/users/me/wallet-connection", tags=["Wallet Connection"], auth=JWTAuth())
class WalletConnectionController(ControllerBase):
    def user(self) -> TicketUser:
        """Get the user for this request."""
        return t.cast(TicketUser, self.context.request.user)  # type: ignore[union-attr]

    @staticmethod
    def _status(connection: WalletConnection | None) -> schema.WalletConnectionStatusSchema:
        if connection is None:
            return schema.WalletConnectionStatusSchema(connected=False, usable=False)
        return schema.WalletConnectionStatusSchema(
            connected=True,
            usable=connection.is_usable,
            expires_at=connection.expires_at,
            updated_at=connection.updated_at,
        )

    @route.get("", url_name="wallet_connection_status", response=schema.WalletConnectionStatusSchema)
    def get_status(self) -> schema.WalletConnectionStatusSchema:
        """Report whether a wallet connection is stored for the authenticated user.

        The connection URI itself is never returned.
        """
        connection = WalletConnection.objects.filter(user=self.user()).first()
        return self._status(connection)

    @route.post("", url_name="wallet_connection_store", response=schema.WalletConnectionStatusSchema)
    def store(self, payload: schema.WalletConnectionPayload) -> schema.WalletConnectionStatusSchema:
        """Store the Nostr Wallet Connect credential obtained from the wallet's OAuth flow.

        Replaces any existing credential. Once stored, ticket purchases are paid through this
        wallet automatically, falling back to a payment request sent to the buyer's provider
        when the wallet cannot pay.
        """
        connection = wallet_connection_service.store_wallet_connection(
            self.user(), payload.connection_uri, payload.expires_at
        )
        return self._status(connection)

    @route.delete("", url_name="wallet_connection_delete", response={204: None})
    def delete(self) -> tuple[int, None]:
        """Forget the stored wallet connection."""
        wallet_connection_service.remove_wallet_connection(self.user())
        return 204, None
