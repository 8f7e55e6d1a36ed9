"""Exception handlers for the API."""

import traceback
import typing as t

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja.responses import Response

from events.exceptions import EventNotAvailableError, EventSoldOutError, PaymentNotRetryableError
from lightning.exceptions import InvalidUMAAddressError, InvoiceIssuerError

logger = structlog.get_logger(__name__)

SENSITIVE_HEADERS = {"authorization", "cookie", "lightspark-signature"}


def obfuscate(data: dict[str, t.Any]) -> dict[str, t.Any]:
    """Mask the values of sensitive keys."""
    return {k: "********" if k.lower() in SENSITIVE_HEADERS else v for k, v in data.items()}


def handle_general_exception(request: HttpRequest, exc: Exception | t.Type[Exception]) -> Response:
    """Handle a general exception.

    Args:
        request: The incoming HTTP request.
        exc: The exception.

    Returns:
        The response.
    """
    logger.exception(
        "INTERNAL_SERVER_ERROR",
        method=request.method,
        path=request.path,
        headers=obfuscate(dict(request.headers)),
    )
    data = {"detail": "Internal Server Error."}
    is_staff = getattr(request, "user", None) and getattr(request.user, "is_staff", False)
    if settings.DEBUG or is_staff:  # pragma: no cover
        data["traceback"] = traceback.format_exc()
    return Response(status=500, data=data)


def handle_django_validation_error(request: HttpRequest, exc: ValidationError | t.Type[ValidationError]) -> Response:
    """Handle a validation error.

    Args:
        request: The incoming HTTP request.
        exc: The exception.
    """
    logger.warning("VALIDATION_ERROR", path=request.path, errors=str(exc))
    if hasattr(exc, "error_dict"):
        error_dict = {k: [ee for e in v for ee in e] for k, v in exc.error_dict.items()}
    else:
        error_dict = {"__all__": list(exc.messages)}  # type: ignore[union-attr]
    return Response(status=400, data={"errors": error_dict})


def handle_invalid_uma_address_error(
    request: HttpRequest, exc: InvalidUMAAddressError | t.Type[InvalidUMAAddressError]
) -> Response:
    """Handle a malformed buyer address."""
    return Response(status=400, data={"errors": {"uma_address": [str(exc)]}})


def handle_event_not_available_error(
    request: HttpRequest, exc: EventNotAvailableError | t.Type[EventNotAvailableError]
) -> Response:
    """Handle a purchase for a missing or inactive event."""
    return Response(status=404, data={"detail": "Event not found or not active."})


def handle_event_sold_out_error(request: HttpRequest, exc: EventSoldOutError | t.Type[EventSoldOutError]) -> Response:
    """Handle a purchase for a full event."""
    return Response(status=409, data={"message": "Event is sold out."})


def handle_invoice_issuer_error(request: HttpRequest, exc: InvoiceIssuerError | t.Type[InvoiceIssuerError]) -> Response:
    """Handle a processor failure while issuing an invoice."""
    logger.error("invoice_issuer_unavailable", path=request.path, error=str(exc))
    return Response(status=502, data={"detail": "Could not create a Lightning invoice. Please try again later."})


def handle_payment_not_retryable_error(
    request: HttpRequest, exc: PaymentNotRetryableError | t.Type[PaymentNotRetryableError]
) -> Response:
    """Handle a retry of a payment that is not failed or expired."""
    return Response(status=400, data={"message": str(exc)})
