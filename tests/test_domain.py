import pytest

from storefront.domain.enums import OrderStatus, can_transition
from storefront.domain.errors import InsufficientStockError, NotFoundError, StoreError
from storefront.domain.identity import Owner

S = OrderStatus


@pytest.mark.parametrize(
    "current,new",
    [
        (S.PENDING, S.PROCESSING),
        (S.PENDING, S.SHIPPED),
        (S.PROCESSING, S.DELIVERED),
        (S.PENDING, S.CANCELLED),
        (S.PROCESSING, S.CANCELLED),
    ],
)
def test_allowed_transitions(current, new):
    assert can_transition(current, new)


@pytest.mark.parametrize(
    "current,new",
    [
        (S.SHIPPED, S.PENDING),
        (S.PROCESSING, S.PENDING),
        (S.SHIPPED, S.CANCELLED),
        (S.DELIVERED, S.CANCELLED),
        (S.CANCELLED, S.PROCESSING),
        (S.DELIVERED, S.SHIPPED),
    ],
)
def test_rejected_transitions(current, new):
    assert not can_transition(current, new)


def test_owner_str():
    assert str(Owner.user(5)) == "user:5"
    assert str(Owner.guest("3F1C2A9E-7B4D-4C8E-9A1F-2B3C4D5E6F70")) == "guest:3f1c2a9e-7b4d-4c8e-9a1f-2b3c4d5e6f70"


def test_errors_carry_identifiers():
    err = InsufficientStockError(3, requested=4, available=2, name="Keyboard")

    assert isinstance(err, StoreError)
    assert err.status_code == 409
    assert "requested 4, available 2" in str(err)
    assert NotFoundError("Order", 9).entity_id == 9
