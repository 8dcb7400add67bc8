from sqlalchemy import Column, Integer, ForeignKey, Numeric, String, CheckConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String(16), nullable=False)  # CATALOG, EXTERNAL

    # CATALOG: cena zawsze z produktu, nie trzymamy jej w koszyku
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)

    # EXTERNAL: cena zapisana przy dodaniu
    external_name = Column(String, nullable=True)
    external_url = Column(String, nullable=True)
    external_price = Column(Numeric(10, 2), nullable=True)
    external_image_url = Column(String, nullable=True)

    quantity = Column(Integer, nullable=False)

    cart = relationship("CartModel", back_populates="items")
    product = relationship("ProductModel")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_cart_item_quantity"),
        CheckConstraint(
            "(product_id IS NULL) <> (external_price IS NULL)",
            name="ck_cart_item_single_ref",
        ),
    )
