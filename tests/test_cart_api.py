from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from armoire.data.models import CartModel
from armoire.repos.cart_repo import CartRepo
from armoire.services.cart_service import CartService


def test_cart_requires_user(client):
    assert client.get("/cart").status_code == 401
    assert client.get("/cart", headers={"X-User-Id": "999"}).status_code == 401


def test_empty_cart(client, customer, auth):
    resp = client.get("/cart", headers=auth(customer))

    assert resp.status_code == 200
    assert resp.json()["items"] == []
    assert Decimal(resp.json()["subtotal"]) == Decimal("0")


def test_add_merges_quantities_and_prices_variant(client, customer, product, auth):
    medium, xl = product.variants

    client.post("/cart/items", json={"variant_id": medium.id, "quantity": 1}, headers=auth(customer))
    client.post("/cart/items", json={"variant_id": xl.id, "quantity": 1}, headers=auth(customer))
    resp = client.post("/cart/items", json={"variant_id": medium.id, "quantity": 2}, headers=auth(customer))

    assert resp.status_code == 200
    body = resp.json()
    lines = {i["variant_id"]: i for i in body["items"]}
    assert lines[medium.id]["quantity"] == 3
    assert Decimal(lines[medium.id]["unit_price"]) == Decimal("400.00")
    assert Decimal(lines[xl.id]["unit_price"]) == Decimal("500.00")
    assert Decimal(body["subtotal"]) == Decimal("1700.00")


def test_add_more_than_stock_is_rejected(client, customer, product, auth):
    _, xl = product.variants

    resp = client.post("/cart/items", json={"variant_id": xl.id, "quantity": 4}, headers=auth(customer))

    assert resp.status_code == 400
    assert "stock" in resp.json()["detail"]


def test_add_unknown_variant(client, customer, auth):
    resp = client.post("/cart/items", json={"variant_id": 12345, "quantity": 1}, headers=auth(customer))

    assert resp.status_code == 400


def test_update_and_remove(client, customer, product, auth):
    medium, _ = product.variants
    client.post("/cart/items", json={"variant_id": medium.id, "quantity": 1}, headers=auth(customer))

    resp = client.patch(f"/cart/items/{medium.id}", json={"quantity": 5}, headers=auth(customer))
    assert resp.json()["items"][0]["quantity"] == 5

    resp = client.delete(f"/cart/items/{medium.id}", headers=auth(customer))
    assert resp.status_code == 200
    assert resp.json()["items"] == []

    resp = client.delete(f"/cart/items/{medium.id}", headers=auth(customer))
    assert resp.status_code == 400


def test_quantity_must_be_positive(client, customer, product, auth):
    medium, _ = product.variants

    resp = client.post("/cart/items", json={"variant_id": medium.id, "quantity": 0}, headers=auth(customer))

    assert resp.status_code == 422


def test_second_active_cart_for_a_user_is_rejected(db, customer):
    db.add(CartModel(user_id=customer.id, status="ACTIVE", version=1))
    db.commit()

    db.add(CartModel(user_id=customer.id, status="ACTIVE", version=1))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

    # koszyk po zamowieniu nie blokuje nowego
    db.add(CartModel(user_id=customer.id, status="CHECKED_OUT", version=1))
    db.commit()


def test_concurrent_first_add_lands_in_existing_cart(db, ctx, customer, product, fill_cart, monkeypatch):
    medium, _ = product.variants
    cart = fill_cart((medium, 1))
    real_lookup = CartRepo.get_active_cart_by_user
    lookups = []

    def miss_once(self, user_id):
        # pierwsze odczytanie jak przed commitem rownoleglego requestu
        lookups.append(user_id)
        if len(lookups) == 1:
            return None
        return real_lookup(self, user_id)

    monkeypatch.setattr(CartRepo, "get_active_cart_by_user", miss_once)

    body = CartService(db).add_product(ctx, medium.id, 2)

    assert body["cart_id"] == cart.id
    assert [(i["variant_id"], i["quantity"]) for i in body["items"]] == [(medium.id, 3)]
    assert db.execute(select(func.count(CartModel.id))).scalar_one() == 1
