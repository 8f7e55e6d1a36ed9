"""Schema for accounts module."""

from datetime import datetime

from ninja import Schema
from pydantic import AwareDatetime, Field, field_validator

from .models import WALLET_CONNECT_SCHEME


class WalletConnectionPayload(Schema):
    connection_uri: str = Field(..., min_length=len(WALLET_CONNECT_SCHEME) + 1, max_length=2048)
    expires_at: AwareDatetime | None = None

    @field_validator("connection_uri")
    @classmethod
    def validate_scheme(cls, value: str) -> str:
        """Only Nostr Wallet Connect URIs are accepted."""
        value = value.strip()
        if not value.startswith(WALLET_CONNECT_SCHEME):
            raise ValueError(f"Connection URI must start with {WALLET_CONNECT_SCHEME}")
        return value


class WalletConnectionStatusSchema(Schema):
    connected: bool
    usable: bool
    expires_at: datetime | None = None
    updated_at: datetime | None = None
