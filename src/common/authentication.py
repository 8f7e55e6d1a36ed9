import typing as t

import structlog
from django.conf import settings
from django.http import HttpRequest
from ninja_jwt.authentication import JWTAuth

logger = structlog.get_logger(__name__)


class PaymentAdminJWTAuth(JWTAuth):
    """JWT authentication restricted to payment administrators.

    A payment administrator is either a staff user or a user whose email is listed in
    the ``ADMIN_EMAILS`` setting. Any other authenticated user is rejected the same way
    an invalid token is, so the endpoint answers 401.

    Usage:
        @route.post("/payments/{id}/retry", auth=PaymentAdminJWTAuth())
        def retry(request, id): ...
    """

    def authenticate(self, request: HttpRequest, token: str) -> t.Any:
        """Authenticate the request and require administrator rights.

        Args:
            request: The HTTP request object
            token: The JWT token string

        Returns:
            The authenticated user object, or None when the user is not an administrator.
        """
        user = super().authenticate(request, token)
        if user is None or not is_payment_admin(user):
            logger.warning("payment_admin_access_denied", user_id=str(getattr(user, "pk", None)))
            return None
        return user


def is_payment_admin(user: t.Any) -> bool:
    """Whether the user may manage payments."""
    if user.is_staff or user.is_superuser:
        return True
    admin_emails = {email.strip().lower() for email in settings.ADMIN_EMAILS if email.strip()}
    return bool(user.email) and user.email.lower() in admin_emails
