# storefront/api/routers/guests.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_user_id, rate_limited
from storefront.data.database import get_db
from storefront.domain.schemas import MigrateIn, MigrateOut, SessionOut
from storefront.services.cart_service import CartService
from storefront.services.guest_service import GuestService
from storefront.utils.settings import ORDER_MIGRATE_LIMIT

router = APIRouter(prefix="/guests", tags=["guests"])


@router.post("/session", response_model=SessionOut, status_code=201)
def new_session():
    return {"session_id": GuestService.new_session_id()}


@router.post(
    "/migrate",
    response_model=MigrateOut,
    dependencies=[rate_limited("order-migrate", ORDER_MIGRATE_LIMIT)],
)
def migrate(payload: MigrateIn, user_id: int = Depends(get_user_id), db: Session = Depends(get_db)):
    """
    Called after login: claims the guest session's orders and cart.
    """
    migrated = GuestService(db).migrate_guest_orders(user_id, payload.session_id)
    merged = CartService(db).merge_guest_cart(user_id, payload.session_id)
    return {"migrated": migrated, "cart_items_merged": merged}
