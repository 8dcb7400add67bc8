# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_owner
from storefront.data.database import get_db
from storefront.domain.identity import Owner
from storefront.domain.schemas import CartOut, ExternalItemIn, ItemIn, QuantityIn
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("/", response_model=CartOut)
def get_cart(owner: Owner = Depends(get_owner), db: Session = Depends(get_db)):
    return get_service(db).get_cart(owner)


@router.post("/items", response_model=CartOut, status_code=201)
def add_item(payload: ItemIn, owner: Owner = Depends(get_owner), db: Session = Depends(get_db)):
    return get_service(db).add_item(owner, payload.product_id, payload.quantity)


@router.post("/external-items", response_model=CartOut, status_code=201)
def add_external_item(payload: ExternalItemIn, owner: Owner = Depends(get_owner), db: Session = Depends(get_db)):
    return get_service(db).add_external_item(
        owner,
        name=payload.name,
        url=payload.url,
        price=payload.price,
        image_url=payload.image_url,
        quantity=payload.quantity,
    )


@router.patch("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: QuantityIn,
    owner: Owner = Depends(get_owner),
    db: Session = Depends(get_db),
):
    return get_service(db).update_item_quantity(owner, item_id, payload.quantity)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(item_id: int, owner: Owner = Depends(get_owner), db: Session = Depends(get_db)):
    return get_service(db).remove_item(owner, item_id)


@router.delete("/", response_model=CartOut)
def clear_cart(owner: Owner = Depends(get_owner), db: Session = Depends(get_db)):
    svc = get_service(db)
    svc.clear(owner)
    return svc.get_cart(owner)
