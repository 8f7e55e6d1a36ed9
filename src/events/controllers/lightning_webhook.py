import structlog
from django.http import HttpRequest
from ninja.errors import HttpError
from ninja_extra import api_controller, route

from common.schema import ResponseOk
from events.service.settlement_service import LightningEventHandler
from lightning.exceptions import WebhookVerificationError
from lightning.processor import get_payment_processor

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "lightspark-signature"


@api_controller("/webhooks", auth=None, tags=["Webhooks"])
class LightningWebhookController:
    @route.post("/payment", url_name="payment_webhook", response={200: ResponseOk})
    def handle_webhook(self, request: HttpRequest) -> tuple[int, ResponseOk]:
        """Handle settlement notifications from Lightspark.

        Only a missing or invalid signature is rejected. Verified events are always acknowledged,
        whether or not they match a payment we track.
        """
        signature = request.headers.get(SIGNATURE_HEADER)
        if not signature:
            raise HttpError(400, "Missing webhook signature")

        processor = get_payment_processor()
        try:
            event = processor.parse_webhook(request.body, signature)
        except WebhookVerificationError as e:
            logger.warning("lightning_webhook_rejected", error=str(e))
            raise HttpError(400, "Invalid webhook signature") from e

        try:
            LightningEventHandler(event, processor=processor).handle()
        except Exception:
            # verified events are acknowledged even when processing fails
            logger.exception("lightning_webhook_processing_failed", event_id=event.event_id, event_type=event.event_type)

        return 200, ResponseOk()
