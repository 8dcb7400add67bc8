# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
    RETENTION_SWEEP_SECONDS,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# taski musza byc zaimportowane, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "storefront.tasks.retention",
    "storefront.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "sweep-guest-orders-daily": {
        "task": "storefront.tasks.retention.sweep_guest_orders_task",
        "schedule": RETENTION_SWEEP_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
