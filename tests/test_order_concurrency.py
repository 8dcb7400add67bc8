"""Concurrent checkouts against one product must never oversell."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from storefront.data.models import OrderModel, ProductModel
from storefront.domain.errors import InsufficientStockError
from storefront.domain.identity import Owner
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService


class SilentNotifications:
    def send_order_notification(self, order_id, recipient, status):
        pass


@pytest.mark.parametrize("buyers,stock", [(8, 5), (3, 5), (6, 6)])
def test_concurrent_checkouts(db, session_factory, make_user, make_address, make_product, buyers, stock):
    product = make_product(stock=stock)
    customers = []
    for _ in range(buyers):
        user = make_user()
        address = make_address(user.id)
        CartService(db).add_item(Owner.user(user.id), product.id, 1)
        customers.append((user.id, address.id))
    # zwolnij blokade zapisu sqlite przed watkami
    db.commit()

    def checkout(customer):
        user_id, address_id = customer
        session = session_factory()
        try:
            OrderService(session, notification_service=SilentNotifications()).create_order(
                Owner.user(user_id), address_id, "card"
            )
            return "ok"
        except InsufficientStockError:
            return "insufficient"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=buyers) as pool:
        results = list(pool.map(checkout, customers))

    expected = min(buyers, stock)
    assert results.count("ok") == expected
    assert results.count("insufficient") == buyers - expected

    with session_factory() as check:
        assert check.get(ProductModel, product.id).stock == stock - expected
        assert check.query(OrderModel).count() == expected
