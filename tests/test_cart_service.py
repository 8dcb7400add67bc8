"""Tests for the per-owner cart."""

from decimal import Decimal

import pytest

from storefront.data.models import CartModel, ProductModel
from storefront.domain.errors import (
    InsufficientStockError,
    NotFoundError,
    ProductUnavailableError,
    ValidationError,
)
from storefront.domain.identity import Owner
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_service import CartService


@pytest.fixture
def service(db):
    return CartService(db)


@pytest.fixture
def owner(make_user):
    return Owner.user(make_user().id)


class TestGetOrCreate:
    def test_is_idempotent(self, service, owner, db):
        first = service.get_or_create(owner)
        second = service.get_or_create(owner)

        assert first.id == second.id
        assert db.query(CartModel).count() == 1

    def test_concurrent_creation_reuses_existing_cart(self, service, owner, db, monkeypatch):
        first = service.get_or_create(owner)
        original = CartRepo.get_cart_by_owner
        lookups = []

        # pierwszy select nie widzi koszyka zalozonego przez rownolegle zapytanie
        def stale_lookup(self, o):
            lookups.append(o)
            return None if len(lookups) == 1 else original(self, o)

        monkeypatch.setattr(CartRepo, "get_cart_by_owner", stale_lookup)

        second = service.get_or_create(owner)

        assert second.id == first.id
        assert db.query(CartModel).count() == 1

    def test_guest_and_user_carts_are_separate(self, service, owner, guest_session):
        user_cart = service.get_cart(owner)
        guest_cart = service.get_cart(Owner.guest(guest_session))

        assert user_cart["cart_id"] != guest_cart["cart_id"]
        assert guest_cart["session_id"] == guest_session
        assert guest_cart["items"] == []
        assert guest_cart["total"] == Decimal("0")


class TestAddItem:
    def test_adds_catalog_line(self, service, owner, make_product):
        product = make_product(price="10.00", stock=5)

        cart = service.add_item(owner, product.id, 2)

        assert len(cart["items"]) == 1
        assert cart["items"][0]["kind"] == "CATALOG"
        assert cart["items"][0]["quantity"] == 2
        assert cart["total"] == Decimal("20.00")

    def test_same_product_merges_quantity(self, service, owner, make_product):
        product = make_product(stock=5)

        service.add_item(owner, product.id, 2)
        cart = service.add_item(owner, product.id, 3)

        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 5

    def test_merge_cannot_overflow_stock(self, service, owner, make_product):
        product = make_product(stock=5)
        service.add_item(owner, product.id, 4)

        with pytest.raises(InsufficientStockError) as exc_info:
            service.add_item(owner, product.id, 2)

        assert exc_info.value.requested == 6
        assert exc_info.value.available == 5
        cart = service.get_cart(owner)
        assert cart["items"][0]["quantity"] == 4

    def test_missing_product(self, service, owner):
        with pytest.raises(NotFoundError):
            service.add_item(owner, 999, 1)

    def test_inactive_product(self, service, owner, make_product):
        product = make_product(is_active=False)

        with pytest.raises(ProductUnavailableError):
            service.add_item(owner, product.id, 1)

    def test_quantity_above_stock(self, service, owner, make_product):
        product = make_product(stock=1)

        with pytest.raises(InsufficientStockError):
            service.add_item(owner, product.id, 2)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_rejects_non_positive_quantity(self, service, owner, make_product, quantity):
        product = make_product()

        with pytest.raises(ValidationError):
            service.add_item(owner, product.id, quantity)


class TestExternalItems:
    def test_external_lines_never_merge(self, service, owner):
        service.add_external_item(owner, "Game key", "https://market.example/item/1", "7.50")
        cart = service.add_external_item(owner, "Game key", "https://market.example/item/1", "7.50", quantity=2)

        assert [i["quantity"] for i in cart["items"]] == [1, 2]
        assert all(i["kind"] == "EXTERNAL" for i in cart["items"])
        assert cart["total"] == Decimal("22.50")

    def test_rejects_non_http_url(self, service, owner):
        with pytest.raises(ValidationError):
            service.add_external_item(owner, "Game key", "javascript:alert(1)", "7.50")

    def test_rejects_non_positive_price(self, service, owner):
        with pytest.raises(ValidationError):
            service.add_external_item(owner, "Game key", "https://market.example/item/1", "0")


class TestTotal:
    def test_uses_live_catalog_price(self, service, owner, make_product, db):
        product = make_product(price="10.00", stock=5)
        service.add_item(owner, product.id, 2)
        service.add_external_item(owner, "Gift card", "https://market.example/gift", "5.00")

        db.get(ProductModel, product.id).price = Decimal("12.50")
        db.commit()

        cart = service.get_cart(owner)
        assert cart["total"] == Decimal("30.00")
        assert cart["total"] == sum(i["unit_price"] * i["quantity"] for i in cart["items"])


class TestUpdateAndRemove:
    def test_update_quantity_rechecks_stock(self, service, owner, make_product):
        product = make_product(stock=3)
        item_id = service.add_item(owner, product.id, 1)["items"][0]["id"]

        with pytest.raises(InsufficientStockError):
            service.update_item_quantity(owner, item_id, 4)

        cart = service.update_item_quantity(owner, item_id, 3)
        assert cart["items"][0]["quantity"] == 3

    def test_update_external_skips_stock(self, service, owner):
        item_id = service.add_external_item(owner, "Skin", "https://market.example/skin", "1.00")["items"][0]["id"]

        cart = service.update_item_quantity(owner, item_id, 50)

        assert cart["items"][0]["quantity"] == 50

    def test_foreign_item_is_not_found(self, service, owner, make_user, make_product):
        product = make_product()
        other = Owner.user(make_user().id)
        item_id = service.add_item(other, product.id, 1)["items"][0]["id"]

        with pytest.raises(NotFoundError):
            service.update_item_quantity(owner, item_id, 2)
        with pytest.raises(NotFoundError):
            service.remove_item(owner, item_id)

        assert service.get_cart(other)["items"][0]["quantity"] == 1

    def test_remove_item(self, service, owner, make_product):
        product = make_product()
        item_id = service.add_item(owner, product.id, 1)["items"][0]["id"]

        cart = service.remove_item(owner, item_id)

        assert cart["items"] == []
        with pytest.raises(NotFoundError):
            service.remove_item(owner, item_id)

    def test_clear_empty_cart_is_noop(self, service, owner):
        assert service.clear(owner) == 0
        service.get_or_create(owner)
        assert service.clear(owner) == 0

    def test_clear_removes_all_lines(self, service, owner, make_product):
        product = make_product()
        service.add_item(owner, product.id, 1)
        service.add_external_item(owner, "Skin", "https://market.example/skin", "1.00")

        assert service.clear(owner) == 2
        assert service.get_cart(owner)["items"] == []


class TestMergeGuestCart:
    def test_moves_lines_and_caps_at_stock(self, service, owner, make_product, guest_session, db):
        product = make_product(stock=4)
        inactive = make_product(name="Old mouse", stock=10)
        guest = Owner.guest(guest_session)

        service.add_item(owner, product.id, 2)
        service.add_item(guest, product.id, 3)
        service.add_external_item(guest, "Skin", "https://market.example/skin", "1.00")
        # produkt wylaczony juz po dodaniu do koszyka goscia
        service.add_item(guest, inactive.id, 1)
        db.get(ProductModel, inactive.id).is_active = False
        db.commit()

        moved = service.merge_guest_cart(owner.user_id, guest_session)

        assert moved == 2
        cart = service.get_cart(owner)
        by_kind = {i["kind"]: i for i in cart["items"]}
        assert by_kind["CATALOG"]["quantity"] == 4
        assert by_kind["EXTERNAL"]["name"] == "Skin"
        assert db.query(CartModel).filter(CartModel.session_id == guest_session).count() == 0

    def test_no_guest_cart(self, service, owner, guest_session):
        assert service.merge_guest_cart(owner.user_id, guest_session) == 0

    def test_rejects_malformed_session(self, service, owner):
        with pytest.raises(ValidationError):
            service.merge_guest_cart(owner.user_id, "not-a-session")
