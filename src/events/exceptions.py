class EventNotAvailableError(Exception):
    """Raised when tickets are requested for an event that does not exist or is not on sale."""


class EventSoldOutError(Exception):
    """Raised when an event has no seat left."""


class PaymentNotRetryableError(Exception):
    """Raised when an admin retries a payment that is not failed or expired."""
