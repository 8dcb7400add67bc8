# storefront/tasks/retention.py
import argparse
import sys

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.guest_service import GuestService
from storefront.utils.settings import GUEST_ORDER_RETENTION_DAYS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def run_sweep(retention_days: int = GUEST_ORDER_RETENTION_DAYS, session_factory=SessionLocal) -> int:
    db = session_factory()
    try:
        service = GuestService(db)
        deleted = service.sweep_guest_orders(retention_days)

        for status, count in sorted(service.guest_order_stats().items()):
            logger.info(f"Remaining guest orders {status}: {count}")
        return deleted
    finally:
        db.close()


@celery_app.task(name="storefront.tasks.retention.sweep_guest_orders_task")
def sweep_guest_orders_task(retention_days: int | None = None):
    logger.info("Guest order retention sweep started")
    deleted = run_sweep(retention_days or GUEST_ORDER_RETENTION_DAYS)
    return {"deleted": deleted}


def main(argv=None, session_factory=SessionLocal) -> int:
    parser = argparse.ArgumentParser(description="Delete old finished guest orders.")
    parser.add_argument(
        "--days",
        type=int,
        default=GUEST_ORDER_RETENTION_DAYS,
        help=f"retention window in days (default {GUEST_ORDER_RETENTION_DAYS})",
    )
    args = parser.parse_args(argv)

    try:
        deleted = run_sweep(args.days, session_factory)
    except Exception as e:
        logger.error(f"Guest order cleanup failed: {e}", exc_info=True)
        return 1

    logger.info(f"Guest order cleanup finished, deleted {deleted} orders")
    return 0


if __name__ == "__main__":
    sys.exit(main())
