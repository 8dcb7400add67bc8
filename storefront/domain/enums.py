# storefront/domain/enums.py
from enum import Enum


class LineKind(str, Enum):
    CATALOG = "CATALOG"
    EXTERNAL = "EXTERNAL"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


# realizacja idzie tylko do przodu, anulowac mozna przed wysylka
_FORWARD_RANK = {
    OrderStatus.PENDING: 0,
    OrderStatus.PROCESSING: 1,
    OrderStatus.SHIPPED: 2,
    OrderStatus.DELIVERED: 3,
}
_CANCELLABLE = {OrderStatus.PENDING, OrderStatus.PROCESSING}

TERMINAL_STATUSES = (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

# zamowienia bez platnosci online, obslugiwane recznie ("skontaktuj sie z nami")
MANUAL_PAYMENT_METHOD = "MANUAL"


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    if new == OrderStatus.CANCELLED:
        return current in _CANCELLABLE
    return _FORWARD_RANK[new] > _FORWARD_RANK[current]
