from decimal import Decimal, InvalidOperation
from typing import Dict, Any
from urllib.parse import urlparse

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.enums import LineKind
from storefront.domain.errors import (
    InsufficientStockError,
    NotFoundError,
    ProductUnavailableError,
    ValidationError,
)
from storefront.domain.identity import Owner
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def validate_quantity(quantity) -> int:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer", field="quantity")
    return quantity


def validate_external_item(name, url, price, quantity) -> tuple[str, str, Decimal, int]:
    """Check a third-party listing before it is stored in a cart or an order."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("External product name is required", field="name")

    parsed = urlparse(url) if isinstance(url, str) else None
    if parsed is None or parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("External product url must be an http(s) url", field="url")

    try:
        price = Decimal(str(price))
    except InvalidOperation:
        raise ValidationError("External product price must be a number", field="price")
    if not price.is_finite() or price <= 0:
        raise ValidationError("External product price must be positive", field="price")

    return name.strip(), url, price.quantize(Decimal("0.01")), validate_quantity(quantity)


def line_unit_price(item) -> Decimal:
    # katalog: zawsze aktualna cena produktu, external: cena z chwili dodania
    if item.kind == LineKind.CATALOG.value:
        return Decimal(item.product.price)
    return Decimal(item.external_price)


class CartService:
    """
    Per-owner cart: catalog lines backed by live products and external lines
    carrying their own captured price. The total is always derived on read.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    # query
    def get_cart(self, owner: Owner) -> Dict[str, Any]:
        cart = self._get_or_create(owner)
        self.repo.commit()
        return self._to_dict(cart)

    def _to_dict(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)
        lines = []
        for i in items:
            unit_price = line_unit_price(i)
            if i.kind == LineKind.CATALOG.value:
                name, url, image_url = i.product.name, None, i.product.image_url
            else:
                name, url, image_url = i.external_name, i.external_url, i.external_image_url
            lines.append(
                {
                    "id": i.id,
                    "kind": i.kind,
                    "product_id": i.product_id,
                    "name": name,
                    "url": url,
                    "image_url": image_url,
                    "quantity": i.quantity,
                    "unit_price": unit_price,
                    "line_total": unit_price * i.quantity,
                }
            )

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "session_id": cart.session_id,
            "items": lines,
            "total": sum((line["line_total"] for line in lines), Decimal("0.00")),
        }

    # commands
    def get_or_create(self, owner: Owner) -> CartModel:
        cart = self._get_or_create(owner)
        self.repo.commit()
        return cart

    def _get_or_create(self, owner: Owner) -> CartModel:
        existing = self.repo.get_cart_by_owner(owner)
        if existing:
            return existing

        try:
            with self.db.begin_nested():
                created = self.repo.create_cart(CartModel(user_id=owner.user_id, session_id=owner.session_id))
        except IntegrityError:
            # rownolegle zapytanie zalozylo koszyk pierwsze
            logger.info(f"Cart for {owner} created concurrently, reusing it")
            return self.repo.get_cart_by_owner(owner)

        logger.info(f"Created cart {created.id} for {owner}")
        return created

    def add_item(self, owner: Owner, product_id: int, quantity: int) -> Dict[str, Any]:
        validate_quantity(quantity)

        try:
            product = self.products.get_product(product_id)
            if not product:
                raise NotFoundError("Product", product_id)
            if not product.is_active:
                raise ProductUnavailableError(product.id, product.name)

            cart = self._get_or_create(owner)
            existing_item = self.repo.get_catalog_item(cart.id, product_id)
            new_quantity = quantity + (existing_item.quantity if existing_item else 0)

            # laczenie ilosci nie moze przekroczyc stanu
            if new_quantity > product.stock:
                raise InsufficientStockError(product.id, new_quantity, product.stock, product.name)

            if existing_item:
                logger.info(
                    f"Product {product_id} already in cart {cart.id}, quantity "
                    f"{existing_item.quantity} -> {new_quantity}"
                )
                existing_item.quantity = new_quantity
            else:
                logger.info(f"Adding product {product_id} x{quantity} to cart {cart.id}")
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart.id,
                        kind=LineKind.CATALOG.value,
                        product_id=product_id,
                        quantity=quantity,
                    )
                )

            self.repo.touch(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return self._to_dict(cart)

    def add_external_item(
        self,
        owner: Owner,
        name: str,
        url: str,
        price,
        image_url: str | None = None,
        quantity: int = 1,
    ) -> Dict[str, Any]:
        name, url, price, quantity = validate_external_item(name, url, price, quantity)

        try:
            cart = self._get_or_create(owner)
            # external nie maja stabilnego klucza, zawsze nowa linia
            item = self.repo.add_cart_item(
                CartItemModel(
                    cart_id=cart.id,
                    kind=LineKind.EXTERNAL.value,
                    external_name=name,
                    external_url=url,
                    external_price=price,
                    external_image_url=image_url,
                    quantity=quantity,
                )
            )
            self.repo.touch(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Added external item {item.id} ({url}) to cart {cart.id}")
        return self._to_dict(cart)

    def update_item_quantity(self, owner: Owner, item_id: int, quantity: int) -> Dict[str, Any]:
        validate_quantity(quantity)

        try:
            cart, item = self._owned_item(owner, item_id)

            if item.kind == LineKind.CATALOG.value:
                product = item.product
                if not product.is_active:
                    raise ProductUnavailableError(product.id, product.name)
                if quantity > product.stock:
                    raise InsufficientStockError(product.id, quantity, product.stock, product.name)

            logger.info(f"Cart {cart.id} item {item_id} quantity {item.quantity} -> {quantity}")
            item.quantity = quantity
            self.repo.touch(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return self._to_dict(cart)

    def remove_item(self, owner: Owner, item_id: int) -> Dict[str, Any]:
        try:
            cart, item = self._owned_item(owner, item_id)
            self.repo.delete_cart_item(item)
            self.repo.touch(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Removed item {item_id} from cart {cart.id}")
        return self._to_dict(cart)

    def clear(self, owner: Owner) -> int:
        cart = self.repo.get_cart_by_owner(owner)
        if not cart:
            return 0

        removed = self.repo.delete_cart_items([i.id for i in self.repo.get_cart_items(cart.id)])
        self.repo.touch(cart)
        self.repo.commit()

        logger.info(f"Cleared cart {cart.id}, removed {removed} items")
        return removed

    def merge_guest_cart(self, user_id: int, session_id: str) -> int:
        """
        Move a guest cart into the user's cart after login.

        Catalog quantities merge and are capped at the live stock; lines whose
        product is gone or inactive are dropped. External lines are appended.
        The guest cart is deleted. Returns the number of lines moved.
        """
        guest = Owner.guest(session_id)

        try:
            guest_cart = self.repo.get_cart_by_owner(guest)
            if not guest_cart:
                return 0

            cart = self._get_or_create(Owner.user(user_id))
            moved = 0

            guest_items = self.repo.get_cart_items(guest_cart.id)
            for item in guest_items:
                if item.kind == LineKind.EXTERNAL.value:
                    self.repo.add_cart_item(
                        CartItemModel(
                            cart_id=cart.id,
                            kind=LineKind.EXTERNAL.value,
                            external_name=item.external_name,
                            external_url=item.external_url,
                            external_price=item.external_price,
                            external_image_url=item.external_image_url,
                            quantity=item.quantity,
                        )
                    )
                    moved += 1
                    continue

                product = self.products.get_product(item.product_id)
                if not product or not product.is_active:
                    logger.warning(f"Dropping unavailable product {item.product_id} from guest cart {guest_cart.id}")
                    continue

                existing_item = self.repo.get_catalog_item(cart.id, product.id)
                merged = min(item.quantity + (existing_item.quantity if existing_item else 0), product.stock)
                if merged <= 0:
                    logger.warning(f"Dropping out-of-stock product {product.id} from guest cart {guest_cart.id}")
                    continue

                if existing_item:
                    existing_item.quantity = merged
                else:
                    self.repo.add_cart_item(
                        CartItemModel(
                            cart_id=cart.id,
                            kind=LineKind.CATALOG.value,
                            product_id=product.id,
                            quantity=merged,
                        )
                    )
                moved += 1

            self.repo.delete_cart_items([i.id for i in guest_items])
            self.repo.delete_cart(guest_cart)
            self.repo.touch(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Merged {moved} lines from guest cart into cart {cart.id} of user {user_id}")
        return moved

    def _owned_item(self, owner: Owner, item_id: int) -> tuple[CartModel, CartItemModel]:
        cart = self.repo.get_cart_by_owner(owner)
        item = self.repo.get_cart_item(item_id)

        # cudzy item traktujemy jak nieistniejacy
        if not cart or not item or item.cart_id != cart.id:
            raise NotFoundError("CartItem", item_id)

        return cart, item
