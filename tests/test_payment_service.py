import pytest

from storefront.domain.errors import NotFoundError, ValidationError
from storefront.domain.identity import Owner
from storefront.services.order_service import OrderService
from storefront.services.payment_service import PaymentService


class SilentNotifications:
    def send_order_notification(self, order_id, recipient, status):
        pass


@pytest.fixture
def orders(db):
    return OrderService(db, notification_service=SilentNotifications())


@pytest.fixture
def payments(orders):
    return PaymentService(orders)


@pytest.fixture
def order_id(orders, make_user):
    owner = Owner.user(make_user().id)
    return orders.create_external_order(owner, "Key", "https://market.example/k", "5.00")["id"]


def event_data(**metadata):
    return {"object": {"id": "pi_1", "metadata": metadata}}


@pytest.mark.parametrize(
    "event_type,expected",
    [
        ("payment_intent.succeeded", "PAID"),
        ("payment_intent.payment_failed", "FAILED"),
        ("charge.refunded", "REFUNDED"),
    ],
)
def test_events_update_payment_status(payments, order_id, event_type, expected):
    order = payments.handle_event(event_type, event_data(order_id=str(order_id)))

    assert order["payment_status"] == expected
    assert order["status"] == "PENDING"


def test_camel_case_metadata(payments, order_id):
    assert payments.handle_event("payment_intent.succeeded", event_data(orderId=order_id))["id"] == order_id


def test_unhandled_event_is_ignored(payments, order_id):
    assert payments.handle_event("customer.created", event_data(order_id=order_id)) is None


def test_event_without_order_id_is_ignored(payments):
    assert payments.handle_event("payment_intent.succeeded", {}) is None


def test_invalid_order_id(payments):
    with pytest.raises(ValidationError):
        payments.handle_event("payment_intent.succeeded", event_data(order_id="abc"))


def test_unknown_order(payments):
    with pytest.raises(NotFoundError):
        payments.handle_event("payment_intent.succeeded", event_data(order_id="999"))


@pytest.mark.parametrize("data", [{"object": "pi_1"}, {"object": {"metadata": "order_id=1"}}])
def test_malformed_payload(payments, data):
    with pytest.raises(ValidationError):
        payments.handle_event("payment_intent.succeeded", data)
