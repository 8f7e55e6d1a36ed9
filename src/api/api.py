from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja_extra import NinjaExtraAPI
from ninja_jwt.controller import NinjaJWTDefaultController

from accounts.controllers.wallet_connection import WalletConnectionController
from common.schema import ResponseOk, VersionResponse
from events.controllers.events import EventController
from events.controllers.lightning_webhook import LightningWebhookController
from events.controllers.payment_admin import PaymentAdminController
from events.controllers.protocol import LnurlController, UMAController, WellKnownController
from events.controllers.tickets import TicketController
from events.exceptions import EventNotAvailableError, EventSoldOutError, PaymentNotRetryableError
from lightning.exceptions import InvalidUMAAddressError, InvoiceIssuerError

from .exception_handlers import (
    handle_django_validation_error,
    handle_event_not_available_error,
    handle_event_sold_out_error,
    handle_general_exception,
    handle_invalid_uma_address_error,
    handle_invoice_issuer_error,
    handle_payment_not_retryable_error,
)

api = NinjaExtraAPI(
    title="UMA Tickets API",
    docs_url="/docs",
    version=settings.VERSION,
    description=f"UMA Tickets API {settings.VERSION}",
    app_name=f"umatickets-api-{settings.VERSION}",
    urls_namespace="api",
    servers=[
        {"url": settings.SERVICE_URL, "description": settings.SERVICE_DESCRIPTION},
    ],
)

# LNURL and UMA counterparties resolve these paths against the bare domain.
protocol_api = NinjaExtraAPI(
    title="UMA Tickets protocol endpoints",
    version=settings.VERSION,
    urls_namespace="protocol",
    docs_url=None,
    openapi_url=None,
)


@api.get("/version", tags=["Version"], response={200: VersionResponse})
def version(request: HttpRequest) -> tuple[int, VersionResponse]:
    """Get the API version.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, VersionResponse(version=settings.VERSION)


@api.get("/healthcheck", tags=["Healthcheck"], response={200: ResponseOk})
def healthcheck(request: HttpRequest) -> tuple[int, ResponseOk]:
    """Check the health of the API."""
    return 200, ResponseOk()


api.register_controllers(
    # Auth controllers
    NinjaJWTDefaultController,
    WalletConnectionController,
    # Event and ticket controllers
    EventController,
    TicketController,
    # Payment controllers
    LnurlController,
    LightningWebhookController,
    PaymentAdminController,
)

protocol_api.register_controllers(
    WellKnownController,
    UMAController,
)

EXCEPTION_HANDLERS = {
    Exception: handle_general_exception,
    ValidationError: handle_django_validation_error,
    InvalidUMAAddressError: handle_invalid_uma_address_error,
    EventNotAvailableError: handle_event_not_available_error,
    EventSoldOutError: handle_event_sold_out_error,
    InvoiceIssuerError: handle_invoice_issuer_error,
    PaymentNotRetryableError: handle_payment_not_retryable_error,
}

for exc, handler in EXCEPTION_HANDLERS.items():
    api.add_exception_handler(exc, handler)
    protocol_api.add_exception_handler(exc, handler)
