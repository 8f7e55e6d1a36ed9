"""Errors raised while talking to the Lightning processor and UMA counterparties."""


class LightningError(Exception):
    """Base class for Lightning and UMA errors."""


class InvalidUMAAddressError(LightningError, ValueError):
    """The buyer address is not of the form ``$localpart@domain``."""


class InvoiceIssuerError(LightningError):
    """The processor could not issue an invoice."""


class WebhookVerificationError(LightningError):
    """A settlement notification failed signature verification or could not be parsed."""


class SettlementResolutionError(LightningError):
    """A settlement entity could not be fetched or carries no usable payment request."""


class PaymentDispatchError(LightningError):
    """Base class for errors while delivering a payment request to a buyer."""


class WalletPaymentError(PaymentDispatchError):
    """The buyer's stored wallet could not pay the invoice."""


class UMARequestError(PaymentDispatchError):
    """The payment request could not be pushed to the buyer's provider.

    Attributes:
        status_code: HTTP status code returned by the provider, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProtocolEnvelopeError(LightningError):
    """The UMA pay request response envelope could not be built."""
