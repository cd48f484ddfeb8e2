# armoire/services/notification_service.py
from armoire.celery_worker import celery_app
from armoire.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Powiadomienia o zamowieniach, wysylane przez Celery.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_number: str):
        """
        Potwierdzenie oplaconego zamowienia.
        """
        send_order_notification_task.delay(user_id, order_number)


@celery_app.task(name="armoire.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_number: str):
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_number} is confirmed and paid")
    return {"user_id": user_id, "order_number": order_number, "status": "sent"}
