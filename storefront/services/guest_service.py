# storefront/services/guest_service.py
from datetime import datetime, timezone, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.domain.enums import TERMINAL_STATUSES
from storefront.domain.errors import ConflictError, ValidationError
from storefront.domain.identity import new_session_id, validate_session_id
from storefront.repos.order_repo import OrderRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class GuestService:
    """
    Guest session orders: reconciliation with an account after login and
    the retention sweep of old, finished, never-claimed guest orders.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)

    @staticmethod
    def new_session_id() -> str:
        return new_session_id()

    def migrate_guest_orders(self, user_id: int, session_id: str) -> int:
        """
        Reassign every unowned order of ``session_id`` to ``user_id``.

        Each order is claimed with a conditional update (only while it still
        has no owner), so repeated or concurrent calls never migrate an order
        twice. A failure on one order is logged and skipped; the count of
        orders actually migrated is returned.
        """
        session_id = validate_session_id(session_id)
        if not isinstance(user_id, int) or user_id <= 0:
            raise ValidationError("Invalid user id", field="user_id")

        migrated = 0
        try:
            order_ids = self.repo.find_unowned_guest_order_ids(session_id)
            logger.info(f"Found {len(order_ids)} guest orders for session {session_id}")

            for order_id in order_ids:
                try:
                    with self.db.begin_nested():
                        if self.repo.assign_owner(order_id, session_id, user_id) != 1:
                            raise ConflictError(f"Order {order_id} was already claimed")
                    migrated += 1
                except (ConflictError, SQLAlchemyError) as e:
                    logger.warning(f"Skipping guest order {order_id}: {e}")

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Migrated {migrated} guest orders from session {session_id} to user {user_id}")
        return migrated

    def sweep_guest_orders(self, retention_days: int, now: datetime | None = None) -> int:
        """
        Delete unowned guest orders older than ``retention_days`` whose status
        is terminal (DELIVERED or CANCELLED). Open orders are kept regardless
        of age since a guest may still claim them.
        """
        if not isinstance(retention_days, int) or retention_days <= 0:
            raise ValidationError("Retention window must be a positive number of days", field="retention_days")

        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=retention_days)

        try:
            order_ids = self.repo.find_expired_guest_order_ids(
                cutoff, [s.value for s in TERMINAL_STATUSES]
            )
            deleted = self.repo.delete_orders(order_ids)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted {deleted} guest orders older than {cutoff.isoformat()}")
        return deleted

    def guest_order_stats(self) -> dict[str, int]:
        return self.repo.count_guest_orders_by_status()
