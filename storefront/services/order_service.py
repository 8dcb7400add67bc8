# storefront/services/order_service.py
from decimal import Decimal
from typing import Dict, Any, List

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.enums import (
    LineKind,
    OrderStatus,
    PaymentStatus,
    MANUAL_PAYMENT_METHOD,
    can_transition,
)
from storefront.domain.errors import (
    AddressNotFoundError,
    EmptyCartError,
    InsufficientStockError,
    InvalidStatusError,
    NotFoundError,
    ProductUnavailableError,
    ValidationError,
)
from storefront.domain.identity import Owner
from storefront.repos.address_repo import AddressRepo
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.cart_service import validate_external_item
from storefront.services.notification_service import NotificationService
from storefront.utils.settings import MAX_ORDER_TOTAL, MAX_ORDER_LINES
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _validate_payment_method(payment_method) -> str:
    if not isinstance(payment_method, str) or not payment_method.strip():
        raise ValidationError("Payment method is required", field="payment_method")
    return payment_method.strip()


def _check_order_limits(total: Decimal, line_count: int):
    if line_count > MAX_ORDER_LINES:
        raise ValidationError(f"Too many items in order ({line_count})", field="items")
    if total < 0 or total > MAX_ORDER_TOTAL:
        raise ValidationError(f"Order total {total} out of acceptable range", field="total_amount")


def _parse_status(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidStatusError(value)


def _owned_by(order: OrderModel, owner: Owner) -> bool:
    if owner.is_guest:
        return order.user_id is None and order.session_id == owner.session_id
    return order.user_id == owner.user_id


class OrderService:
    """
    Turns a cart into an order in one transaction, plus external orders,
    status changes and owner-scoped order queries.

    Stock and availability are re-checked under row locks at commit time,
    whatever was checked when the items were added.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.addresses = AddressRepo(db)
        self.notification_service = notification_service or NotificationService()

    def create_order(self, owner: Owner, address_id: int | None, payment_method: str) -> Dict[str, Any]:
        """
        Use case: checkout of the owner's cart.

        1. cart must have items
        2. address (if given) must belong to the user
        3. lock and re-validate every catalog product
        4. total from current catalog prices (or captured external prices)
        5. decrement stock, persist the order, drop converted cart lines
        All of it commits or rolls back together.
        """
        payment_method = _validate_payment_method(payment_method)

        try:
            cart = self.carts.get_cart_by_owner(owner)
            items = self.carts.get_cart_items(cart.id) if cart else []
            if not items:
                raise EmptyCartError(cart.id if cart else None)

            catalog = [i for i in items if i.kind == LineKind.CATALOG.value]
            external = [i for i in items if i.kind == LineKind.EXTERNAL.value]

            if address_id is not None:
                # gosc nie ma ksiazki adresowej
                address = None if owner.is_guest else self.addresses.find_owned_address(address_id, owner.user_id)
                if not address:
                    raise AddressNotFoundError(address_id)
            elif catalog and not owner.is_guest:
                raise ValidationError("Address is required for checkout", field="address_id")

            if catalog:
                lines, converted = self._lock_catalog_lines(catalog), catalog
                is_external = False
            else:
                # koszyk z samymi external: osobne zamowienie obslugiwane recznie
                lines, converted = self._external_lines(external), external
                payment_method = MANUAL_PAYMENT_METHOD
                is_external = True

            total = sum((line.unit_price * line.quantity for line in lines), Decimal("0.00"))
            _check_order_limits(total, len(lines))

            for line in lines:
                if line.kind != LineKind.CATALOG.value:
                    continue
                if not self.products.decrement_stock(line.product_id, line.quantity):
                    product = self.products.get_product(line.product_id)
                    raise InsufficientStockError(line.product_id, line.quantity, product.stock, product.name)

            order = self.repo.add_order(
                OrderModel(
                    user_id=owner.user_id,
                    session_id=owner.session_id,
                    address_id=address_id,
                    total_amount=total,
                    payment_method=payment_method,
                    status=OrderStatus.PENDING.value,
                    payment_status=PaymentStatus.PENDING.value,
                    is_external=is_external,
                    items=lines,
                )
            )

            self.carts.delete_cart_items([i.id for i in converted])
            self.carts.touch(cart)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.warning(f"Checkout for {owner} failed: {e}")
            raise

        logger.info(f"Order {order.id} created from cart {cart.id} for {owner}, total {total}")
        self.notification_service.send_order_notification(order.id, str(owner), order.status)
        return self._to_dict(order)

    def _lock_catalog_lines(self, catalog) -> List[OrderItemModel]:
        lines = []
        # blokujemy w stalej kolejnosci id, zeby nie bylo deadlockow
        for item in sorted(catalog, key=lambda i: i.product_id):
            product = self.products.lock_product(item.product_id)
            if not product:
                raise NotFoundError("Product", item.product_id)
            if not product.is_active:
                raise ProductUnavailableError(product.id, product.name)
            if product.stock < item.quantity:
                raise InsufficientStockError(product.id, item.quantity, product.stock, product.name)

            lines.append(
                OrderItemModel(
                    kind=LineKind.CATALOG.value,
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price=Decimal(product.price),
                )
            )
        return lines

    @staticmethod
    def _external_lines(external) -> List[OrderItemModel]:
        return [
            OrderItemModel(
                kind=LineKind.EXTERNAL.value,
                external_name=item.external_name,
                external_url=item.external_url,
                external_image_url=item.external_image_url,
                quantity=item.quantity,
                unit_price=Decimal(item.external_price),
            )
            for item in external
        ]

    def create_external_order(
        self,
        owner: Owner,
        name: str,
        url: str,
        price,
        image_url: str | None = None,
        quantity: int = 1,
    ) -> Dict[str, Any]:
        """
        Use case: direct order of a third-party listing, bypassing cart and
        address. Fulfilled manually ("contact us"), so the payment method is
        fixed to MANUAL.
        """
        name, url, price, quantity = validate_external_item(name, url, price, quantity)
        total = price * quantity
        _check_order_limits(total, 1)

        try:
            order = self.repo.add_order(
                OrderModel(
                    user_id=owner.user_id,
                    session_id=owner.session_id,
                    total_amount=total,
                    payment_method=MANUAL_PAYMENT_METHOD,
                    status=OrderStatus.PENDING.value,
                    payment_status=PaymentStatus.PENDING.value,
                    is_external=True,
                    items=[
                        OrderItemModel(
                            kind=LineKind.EXTERNAL.value,
                            external_name=name,
                            external_url=url,
                            external_image_url=image_url,
                            quantity=quantity,
                            unit_price=price,
                        )
                    ],
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"External order {order.id} created for {owner}: {name} x{quantity}")
        self.notification_service.send_order_notification(order.id, str(owner), order.status)
        return self._to_dict(order)

    def update_status(self, order_id: int, new_status) -> Dict[str, Any]:
        """
        Admin status change. Carries no ownership check: callers must
        authorize before invoking it.
        """
        status = _parse_status(OrderStatus, new_status)

        try:
            order = self.repo.lock_order(order_id)
            if not order:
                raise NotFoundError("Order", order_id)

            current = OrderStatus(order.status)
            if status != current:
                if not can_transition(current, status):
                    raise InvalidStatusError(status.value, current.value)
                order.status = status.value
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if status != current:
            logger.info(f"Order {order_id} status {current.value} -> {status.value}")
            recipient = f"user:{order.user_id}" if order.user_id else f"guest:{order.session_id}"
            self.notification_service.send_order_notification(order.id, recipient, order.status)
        return self._to_dict(order)

    def set_payment_status(self, order_id: int, payment_status) -> Dict[str, Any]:
        """Effect of the payment provider's callback; independent of order status."""
        status = _parse_status(PaymentStatus, payment_status)

        try:
            order = self.repo.lock_order(order_id)
            if not order:
                raise NotFoundError("Order", order_id)
            previous = order.payment_status
            order.payment_status = status.value
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Order {order_id} payment status {previous} -> {status.value}")
        return self._to_dict(order)

    # query
    def get_order(self, order_id: int, owner: Owner) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)

        # cudze zamowienie = nie istnieje
        if not order or not _owned_by(order, owner):
            raise NotFoundError("Order", order_id)

        return self._to_dict(order)

    def list_orders(self, owner: Owner) -> List[Dict[str, Any]]:
        return [self._to_dict(o) for o in self.repo.list_orders(owner)]

    @staticmethod
    def _to_dict(order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "user_id": order.user_id,
            "session_id": order.session_id,
            "address_id": order.address_id,
            "items": [
                {
                    "kind": line.kind,
                    "product_id": line.product_id,
                    "name": line.external_name,
                    "url": line.external_url,
                    "image_url": line.external_image_url,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                }
                for line in order.items
            ],
            "total_amount": order.total_amount,
            "payment_method": order.payment_method,
            "status": order.status,
            "payment_status": order.payment_status,
            "is_external": order.is_external,
            "created_at": order.created_at,
        }
