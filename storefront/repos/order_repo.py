# storefront/repos/order_repo.py
from datetime import datetime

from sqlalchemy import select, update, delete, func
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.identity import Owner


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def lock_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def list_orders(self, owner: Owner) -> list[OrderModel]:
        if owner.is_guest:
            # zamowienia przejete przez usera nie sa juz widoczne dla sesji
            cond = (OrderModel.session_id == owner.session_id) & OrderModel.user_id.is_(None)
        else:
            cond = OrderModel.user_id == owner.user_id
        return list(
            self.db.execute(
                select(OrderModel).where(cond).order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars()
        )

    def find_unowned_guest_order_ids(self, session_id: str) -> list[int]:
        return list(
            self.db.execute(
                select(OrderModel.id)
                .where(OrderModel.session_id == session_id, OrderModel.user_id.is_(None))
                .order_by(OrderModel.id)
            ).scalars()
        )

    def assign_owner(self, order_id: int, session_id: str, user_id: int) -> int:
        # warunkowy update: tylko jesli nadal bez wlasciciela
        res = self.db.execute(
            update(OrderModel)
            .where(
                OrderModel.id == order_id,
                OrderModel.session_id == session_id,
                OrderModel.user_id.is_(None),
            )
            .values(user_id=user_id)
            .execution_options(synchronize_session="fetch")
        )
        return res.rowcount

    def find_expired_guest_order_ids(self, cutoff: datetime, statuses: list[str]) -> list[int]:
        return list(
            self.db.execute(
                select(OrderModel.id).where(
                    OrderModel.user_id.is_(None),
                    OrderModel.session_id.is_not(None),
                    OrderModel.created_at < cutoff,
                    OrderModel.status.in_(statuses),
                )
                .with_for_update()
            ).scalars()
        )

    def delete_orders(self, order_ids: list[int]) -> int:
        if not order_ids:
            return 0
        self.db.execute(
            delete(OrderItemModel)
            .where(OrderItemModel.order_id.in_(order_ids))
            .execution_options(synchronize_session=False)
        )
        res = self.db.execute(
            delete(OrderModel)
            .where(
                OrderModel.id.in_(order_ids),
                OrderModel.user_id.is_(None),
            )
            .execution_options(synchronize_session=False)
        )
        return res.rowcount

    def count_guest_orders_by_status(self) -> dict[str, int]:
        rows = self.db.execute(
            select(OrderModel.status, func.count(OrderModel.id))
            .where(OrderModel.user_id.is_(None), OrderModel.session_id.is_not(None))
            .group_by(OrderModel.status)
        ).all()
        return {status: count for status, count in rows}
