"""Storage of buyers' wallet connection credentials."""

from datetime import datetime

import structlog
from django.db import transaction

from accounts.models import TicketUser, WalletConnection

logger = structlog.get_logger(__name__)


@transaction.atomic
def store_wallet_connection(user: TicketUser, connection_uri: str, expires_at: datetime | None) -> WalletConnection:
    """Create or replace the user's wallet connection.

    A user holds at most one credential; completing the wallet OAuth flow again replaces it.
    """
    connection, created = WalletConnection.objects.select_for_update().get_or_create(
        user=user, defaults={"connection_uri": connection_uri, "expires_at": expires_at}
    )
    if not created:
        connection.connection_uri = connection_uri
        connection.expires_at = expires_at
        connection.save(update_fields=["connection_uri", "expires_at", "updated_at"])

    logger.info("wallet_connection_stored", user_id=str(user.pk), created=created, expires_at=expires_at)
    return connection


def get_usable_wallet_connection(user_id: object) -> WalletConnection | None:
    """Return the user's wallet connection if it exists and has not expired."""
    return WalletConnection.objects.usable().filter(user_id=user_id).first()


def remove_wallet_connection(user: TicketUser) -> bool:
    """Delete the user's wallet connection. Returns whether one existed."""
    deleted, _ = WalletConnection.objects.filter(user=user).delete()
    if deleted:
        logger.info("wallet_connection_removed", user_id=str(user.pk))
    return bool(deleted)
