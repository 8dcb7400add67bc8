# storefront/services/payment_service.py
from typing import Any, Dict

from storefront.domain.enums import PaymentStatus
from storefront.domain.errors import ValidationError
from storefront.services.order_service import OrderService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# typ zdarzenia od bramki -> status platnosci
PAYMENT_EVENTS = {
    "payment_intent.succeeded": PaymentStatus.PAID,
    "payment_intent.payment_failed": PaymentStatus.FAILED,
    "charge.refunded": PaymentStatus.REFUNDED,
}


def _order_id_from(data: dict) -> int | None:
    obj = data.get("object") or {}
    metadata = (obj.get("metadata") or {}) if isinstance(obj, dict) else None
    if not isinstance(metadata, dict):
        raise ValidationError("Malformed payment event payload", field="data")
    raw = metadata.get("order_id", metadata.get("orderId"))
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid order id in payment event: {raw!r}", field="order_id")


class PaymentService:
    """Applies already-verified payment provider events to orders."""

    def __init__(self, order_service: OrderService):
        self.orders = order_service

    def handle_event(self, event_type: str, data: dict) -> Dict[str, Any] | None:
        status = PAYMENT_EVENTS.get(event_type)
        if status is None:
            logger.info(f"Unhandled payment event type {event_type}")
            return None

        order_id = _order_id_from(data)
        if order_id is None:
            logger.warning(f"Payment event {event_type} without order id, ignoring")
            return None

        return self.orders.set_payment_status(order_id, status)
