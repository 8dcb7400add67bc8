# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications, processed asynchronously by Celery.
    """

    @staticmethod
    def send_order_notification(order_id: int, recipient: str, status: str):
        # zamowienie jest juz zapisane, brak brokera nie moze go cofnac
        try:
            send_order_notification_task.delay(order_id, recipient, status)
        except Exception as e:
            logger.warning(f"Failed to enqueue notification for order {order_id}: {e}")


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(order_id: int, recipient: str, status: str):
    """
    Would send an email/push in a real deployment; only logs for now.
    """
    logger.info(f"[NOTIFICATION] {recipient}: order {order_id} is {status}")
    return {"order_id": order_id, "recipient": recipient, "status": status}
