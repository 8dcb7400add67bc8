# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_owner, rate_limited, require_admin
from storefront.data.database import get_db
from storefront.domain.identity import Owner
from storefront.domain.schemas import ExternalItemIn, OrderCreate, OrderOut, StatusUpdate
from storefront.services.order_service import OrderService
from storefront.utils.settings import ORDER_CREATE_LIMIT

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.get("/", response_model=List[OrderOut])
def list_orders(owner: Owner = Depends(get_owner), db: Session = Depends(get_db)):
    return get_service(db).list_orders(owner)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, owner: Owner = Depends(get_owner), db: Session = Depends(get_db)):
    return get_service(db).get_order(order_id, owner)


@router.post(
    "/",
    response_model=OrderOut,
    status_code=201,
    dependencies=[rate_limited("order-create", ORDER_CREATE_LIMIT)],
)
def create_order(payload: OrderCreate, owner: Owner = Depends(get_owner), db: Session = Depends(get_db)):
    """
    Checkout of the caller's cart.
    """
    return get_service(db).create_order(owner, payload.address_id, payload.payment_method)


@router.post(
    "/external",
    response_model=OrderOut,
    status_code=201,
    dependencies=[rate_limited("order-create", ORDER_CREATE_LIMIT)],
)
def create_external_order(payload: ExternalItemIn, owner: Owner = Depends(get_owner), db: Session = Depends(get_db)):
    """
    Direct order of a third-party listing, fulfilled manually.
    """
    return get_service(db).create_external_order(
        owner,
        name=payload.name,
        url=payload.url,
        price=payload.price,
        image_url=payload.image_url,
        quantity=payload.quantity,
    )


# tylko dla admina, serwis nie sprawdza wlasciciela
@router.put("/{order_id}/status", response_model=OrderOut, dependencies=[Depends(require_admin)])
def update_status(order_id: int, payload: StatusUpdate, db: Session = Depends(get_db)):
    return get_service(db).update_status(order_id, payload.status)
