# armoire/celery_worker.py
from celery import Celery

from armoire.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
)

celery_app = Celery(
    "armoire",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# taski importowane jawnie, zeby worker je zarejestrowal
celery_app.conf.imports = (
    "armoire.tasks.expire",
    "armoire.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "expire-pending-orders-every-minute": {
        "task": "armoire.tasks.expire.expire_pending_orders_task",
        "schedule": 60.0,
    },
}

celery_app.conf.timezone = "UTC"
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
