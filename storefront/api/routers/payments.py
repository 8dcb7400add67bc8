# storefront/api/routers/payments.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import PaymentEventIn
from storefront.services.order_service import OrderService
from storefront.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/webhook")
def webhook(payload: PaymentEventIn, db: Session = Depends(get_db)):
    """
    Payment provider callback. The signature is verified upstream.
    """
    order = PaymentService(OrderService(db)).handle_event(payload.type, payload.data)
    return {"received": True, "order_id": order["id"] if order else None}
