from sqlalchemy import Column, Integer, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String(16), nullable=False)  # CATALOG, EXTERNAL

    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    external_name = Column(String, nullable=True)
    external_url = Column(String, nullable=True)
    external_image_url = Column(String, nullable=True)

    quantity = Column(Integer, nullable=False)
    # cena z chwili zakupu, nigdy nie przeliczana z katalogu
    unit_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("OrderModel", back_populates="items")
