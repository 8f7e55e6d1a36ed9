import typing as t
import uuid

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models
from django.utils import timezone
from encrypted_fields.fields import EncryptedTextField

from common.models import TimeStampedModel

WALLET_CONNECT_SCHEME = "nostr+walletconnect://"


class TicketUserManager(UserManager["TicketUser"]):
    pass


class TicketUser(AbstractUser):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    uma_address = models.CharField(
        max_length=255, blank=True, help_text="Default Universal Money Address used for ticket purchases"
    )

    objects = TicketUserManager()  # type: ignore[misc]

    class Meta:
        ordering = ["username"]

    @property
    def display_name(self) -> str:
        """Display name."""
        return self.get_full_name() or self.username


class WalletConnectionQuerySet(models.QuerySet["WalletConnection"]):
    def usable(self) -> t.Self:
        """Connections that have not expired."""
        return self.filter(models.Q(expires_at__isnull=True) | models.Q(expires_at__gt=timezone.now()))


class WalletConnection(TimeStampedModel):
    """A buyer's Nostr Wallet Connect credential.

    The connection URI lets us instruct the buyer's wallet to pay an invoice without manual
    approval. It is a bearer credential, so it is stored encrypted and never returned by the API.
    """

    user = models.OneToOneField(TicketUser, on_delete=models.CASCADE, related_name="wallet_connection")
    connection_uri = EncryptedTextField()
    expires_at = models.DateTimeField(null=True, blank=True)

    objects = WalletConnectionQuerySet.as_manager()

    def __str__(self) -> str:
        return f"Wallet connection of {self.user}"

    @property
    def is_usable(self) -> bool:
        """Whether the connection can still be used to pay."""
        return self.expires_at is None or self.expires_at > timezone.now()
