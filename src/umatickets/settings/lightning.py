"""Lightning and UMA settings.

Lightspark is the payment processor issuing invoices and delivering settlement webhooks.
The UMA values describe our own VASP: the domain our `$tickets@` address lives on and the
keys used to sign UMA payloads.
"""

from decouple import config

LIGHTSPARK_CLIENT_ID: str = config("LIGHTSPARK_CLIENT_ID", default="")
LIGHTSPARK_CLIENT_SECRET: str = config("LIGHTSPARK_CLIENT_SECRET", default="")
LIGHTSPARK_API_ENDPOINT: str = config("LIGHTSPARK_API_ENDPOINT", default="")
LIGHTSPARK_NODE_ID: str = config("LIGHTSPARK_NODE_ID", default="")
LIGHTSPARK_WEBHOOK_SECRET: str = config("LIGHTSPARK_WEBHOOK_SECRET", default="")

UMA_DOMAIN: str = config("UMA_DOMAIN", default="localhost:8000")
UMA_RECEIVER_USERNAME: str = config("UMA_RECEIVER_USERNAME", default="tickets")
PUBLIC_API_BASE_URL: str = config("PUBLIC_API_BASE_URL", default="http://localhost:8000")
UMA_SIGNING_PRIVKEY: str = config("UMA_SIGNING_PRIVKEY", default="")
UMA_SIGNING_CERT_CHAIN: str = config("UMA_SIGNING_CERT_CHAIN", default="")
UMA_ENCRYPTION_CERT_CHAIN: str = config("UMA_ENCRYPTION_CERT_CHAIN", default="")
UMA_HTTP_TIMEOUT: float = config("UMA_HTTP_TIMEOUT", default=10.0, cast=float)
UMA_REQUEST_EXPIRY_HOURS: int = config("UMA_REQUEST_EXPIRY_HOURS", default=48, cast=int)

INVOICE_EXPIRY_SECONDS: int = config("INVOICE_EXPIRY_SECONDS", default=600, cast=int)

# LNURL pay bounds in millisatoshis
LNURL_MIN_SENDABLE_MSATS: int = config("LNURL_MIN_SENDABLE_MSATS", default=1_000, cast=int)
LNURL_MAX_SENDABLE_MSATS: int = config("LNURL_MAX_SENDABLE_MSATS", default=10_000_000_000, cast=int)
LNURL_AMOUNT_MATCHING_ENABLED: bool = config("LNURL_AMOUNT_MATCHING_ENABLED", default=True, cast=bool)

# Nostr Wallet Connect bridge used to instruct stored buyer wallets to pay
NWC_BRIDGE_URL: str = config("NWC_BRIDGE_URL", default="")
NWC_BRIDGE_TOKEN: str = config("NWC_BRIDGE_TOKEN", default="")
NWC_PAY_TIMEOUT: float = config("NWC_PAY_TIMEOUT", default=60.0, cast=float)
NWC_MAX_FEE_MSATS: int = config("NWC_MAX_FEE_MSATS", default=10_000, cast=int)

# UMA protocol major versions we speak, highest first
UMA_MAJOR_VERSIONS: list[int] = [1, 0]
UMA_PUBKEY_EXPIRY_DAYS: int = config("UMA_PUBKEY_EXPIRY_DAYS", default=14, cast=int)
