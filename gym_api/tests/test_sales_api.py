from decimal import Decimal

import pytest

from gym_api.core.database import SessionLocal
from gym_api.core.errors import ConflictError
from gym_api.models.product import Product
from gym_api.models.product_sale import ProductSale
from gym_api.services import sale_ledger
from gym_api.tests.helpers import admin_identity, create_client, create_membership, create_product


def _sell(client, headers, product_id, client_id, quantity, code, **extra):
    payload = {"product_id": product_id, "client_id": client_id, "quantity_sold": quantity, "sale_code": code}
    payload.update(extra)
    return client.post("/product-sales/sell", headers=headers, json=payload)


def _setup(client, headers, stock=5):
    membership = create_membership(client, headers)
    client_id = create_client(client, headers, membership).json()["id"]
    product_id = create_product(client, headers, stock=stock)
    return product_id, client_id


def _product(client, headers, product_id):
    r = client.get(f"/products/{product_id}", headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


def test_selling_all_stock_marks_product_out_of_stock(client, admin):
    headers, _ = admin
    product_id, client_id = _setup(client, headers, stock=5)

    r = _sell(client, headers, product_id, client_id, 5, "V-001")
    assert r.status_code == 201, r.text
    sale = r.json()["sale"]
    assert sale["sale_status"] == "Exitosa"
    assert sale["product_name"] == "Proteína"
    assert sale["client_name"] == "Luis García Soto"
    assert Decimal(sale["total_sale"]) == Decimal("125.00")

    product = _product(client, headers, product_id)
    assert product["stock_quantity"] == 0
    assert product["status"] == "Agotado"
    assert product["sales_obtained"] == 5

    r = _sell(client, headers, product_id, client_id, 1, "V-002")
    assert r.status_code == 409
    assert r.json()["message"].startswith("Stock insuficiente")
    assert r.json()["available"] == 0

    product = _product(client, headers, product_id)
    assert product["stock_quantity"] == 0
    assert product["sales_obtained"] == 5
    assert client.get("/product-sales/", headers=headers).json()["total"] == 1


def test_cancel_restores_stock_and_status(client, admin):
    headers, _ = admin
    product_id, client_id = _setup(client, headers, stock=5)
    sale_id = _sell(client, headers, product_id, client_id, 5, "V-001").json()["sale"]["id"]

    r = client.post("/product-sales/cancel", headers=headers, json={"id": sale_id, "reason": "Devolución"})
    assert r.status_code == 200, r.text
    sale = r.json()["sale"]
    assert sale["sale_status"] == "Cancelada"
    assert sale["cancellation_reason"] == "Devolución"
    assert sale["cancelled_by_type"] == "Administrador"
    assert sale["cancelled_at"] is not None
    assert sale["quantity_sold"] == 5
    assert Decimal(sale["total_sale"]) == Decimal("125.00")

    product = _product(client, headers, product_id)
    assert product["stock_quantity"] == 5
    assert product["status"] == "Activo"
    assert product["sales_obtained"] == 0


def test_cancelling_twice_is_rejected(client, admin):
    headers, _ = admin
    product_id, client_id = _setup(client, headers, stock=5)
    sale_id = _sell(client, headers, product_id, client_id, 2, "V-001").json()["sale"]["id"]

    assert client.post("/product-sales/cancel", headers=headers, json={"id": sale_id}).status_code == 200
    r = client.post("/product-sales/cancel", headers=headers, json={"id": sale_id})
    assert r.status_code == 409

    product = _product(client, headers, product_id)
    assert product["stock_quantity"] == 5
    assert product["sales_obtained"] == 0


def test_sale_input_validation(client, admin):
    headers, _ = admin
    product_id, client_id = _setup(client, headers)

    assert _sell(client, headers, product_id, client_id, 0, "V-001").status_code == 400
    assert client.post("/product-sales/sell", headers=headers, json={"product_id": product_id}).status_code == 400
    assert _sell(client, headers, 9999, client_id, 1, "V-001").status_code == 404
    assert _sell(client, headers, product_id, 9999, 1, "V-001").status_code == 404

    assert _sell(client, headers, product_id, client_id, 1, "V-001").status_code == 201
    r = _sell(client, headers, product_id, client_id, 1, "V-001")
    assert r.status_code == 409
    assert _product(client, headers, product_id)["stock_quantity"] == 4


def test_explicit_sale_price_overrides_total(client, admin):
    headers, _ = admin
    product_id, client_id = _setup(client, headers)
    r = _sell(client, headers, product_id, client_id, 2, "V-001", sale_price="40.00")
    assert r.status_code == 201, r.text
    assert Decimal(r.json()["sale"]["total_sale"]) == Decimal("40.00")
    assert Decimal(r.json()["sale"]["unit_price"]) == Decimal("25.00")


def test_only_cancelled_sales_leave_the_history(client, admin):
    headers, _ = admin
    product_id, client_id = _setup(client, headers)
    sale_id = _sell(client, headers, product_id, client_id, 1, "V-001").json()["sale"]["id"]

    r = client.post("/product-sales/delete", headers=headers, json={"id": sale_id})
    assert r.status_code == 400

    client.post("/product-sales/cancel", headers=headers, json={"id": sale_id})
    r = client.post("/product-sales/delete", headers=headers, json={"id": sale_id})
    assert r.status_code == 200, r.text
    assert client.get(f"/product-sales/{sale_id}", headers=headers).status_code == 404


def test_bulk_delete_is_all_or_nothing(client, admin):
    headers, _ = admin
    product_id, client_id = _setup(client, headers)
    first = _sell(client, headers, product_id, client_id, 1, "V-001").json()["sale"]["id"]
    second = _sell(client, headers, product_id, client_id, 1, "V-002").json()["sale"]["id"]
    client.post("/product-sales/cancel", headers=headers, json={"id": first})

    r = client.post("/product-sales/delete-bulk", headers=headers, json={"ids": [first, 9999]})
    assert r.status_code == 404
    assert r.json()["missing_ids"] == [9999]

    r = client.post("/product-sales/delete-bulk", headers=headers, json={"ids": [first, second]})
    assert r.status_code == 400
    assert [s["id"] for s in r.json()["invalid_sales"]] == [second]
    assert client.get("/product-sales/", headers=headers).json()["total"] == 2

    client.post("/product-sales/cancel", headers=headers, json={"id": second})
    r = client.post("/product-sales/delete-bulk", headers=headers, json={"ids": [first, second]})
    assert r.status_code == 200, r.text
    assert sorted(r.json()["deleted_ids"]) == sorted([first, second])
    assert client.get("/product-sales/", headers=headers).json()["total"] == 0


def test_collaborator_sells_but_cannot_cancel(client, admin, collaborator):
    headers, _ = admin
    product_id, client_id = _setup(client, headers)

    r = _sell(client, collaborator, product_id, client_id, 1, "V-001")
    assert r.status_code == 201, r.text
    assert r.json()["sale"]["seller_role"] == "Colaborador"
    assert r.json()["sale"]["seller_name"] == "Carlos Pérez Ruiz"

    r = client.post("/product-sales/cancel", headers=collaborator, json={"id": r.json()["sale"]["id"]})
    assert r.status_code == 403


def test_sales_are_scoped_to_the_gym(client, admin, other_admin):
    headers, _ = admin
    other_headers, _ = other_admin
    product_id, client_id = _setup(client, headers)
    sale_id = _sell(client, headers, product_id, client_id, 1, "V-001").json()["sale"]["id"]

    other_membership = create_membership(client, other_headers)
    other_client = create_client(client, other_headers, other_membership).json()["id"]
    assert _sell(client, other_headers, product_id, other_client, 1, "V-OTRO").status_code == 404
    assert client.get(f"/product-sales/{sale_id}", headers=other_headers).status_code == 404
    assert client.post("/product-sales/cancel", headers=other_headers, json={"id": sale_id}).status_code == 404
    assert client.get("/product-sales/", headers=other_headers).json()["total"] == 0


def test_sales_list_filters(client, admin):
    headers, _ = admin
    product_id, client_id = _setup(client, headers)
    first = _sell(client, headers, product_id, client_id, 1, "V-001").json()["sale"]["id"]
    _sell(client, headers, product_id, client_id, 1, "V-002")
    client.post("/product-sales/cancel", headers=headers, json={"id": first})

    r = client.get("/product-sales/", headers=headers, params={"sale_status": "Cancelada"})
    assert [s["id"] for s in r.json()["items"]] == [first]

    r = client.get("/product-sales/", headers=headers, params={"product_id": product_id})
    assert r.json()["total"] == 2


def _in_other_session(work):
    session = SessionLocal()
    try:
        work(session)
        session.commit()
    finally:
        session.close()


def test_stock_drained_after_load_is_not_oversold(client, admin, db, monkeypatch):
    headers, gym_id = admin
    product_id, client_id = _setup(client, headers, stock=1)
    real_get = sale_ledger.get_scoped_or_404

    def get_then_drain(session, model, obj_id, gym, message="Not found"):
        obj = real_get(session, model, obj_id, gym, message)
        if model is Product:
            _in_other_session(lambda other: other.query(Product).filter(Product.id == obj_id).update(
                {Product.stock_quantity: 0}, synchronize_session=False,
            ))
        return obj

    monkeypatch.setattr(sale_ledger, "get_scoped_or_404", get_then_drain)

    with pytest.raises(ConflictError) as excinfo:
        sale_ledger.sell_product(db, admin_identity(db, gym_id), product_id, 1, client_id, "V-001")
    assert excinfo.value.details == {"available": 0}

    product = _product(client, headers, product_id)
    assert product["stock_quantity"] == 0
    assert product["sales_obtained"] == 0
    assert db.query(ProductSale).count() == 0


def test_sale_code_taken_mid_sale_gives_the_stock_back(client, admin, db, monkeypatch):
    headers, gym_id = admin
    product_id, client_id = _setup(client, headers, stock=5)
    assert _sell(client, headers, product_id, client_id, 1, "V-001").status_code == 201
    real_take = sale_ledger._take_stock

    def take_then_lose_code(session, product, quantity, identity):
        taken = real_take(session, product, quantity, identity)
        # Another register books V-002 between the code check and the insert
        _in_other_session(lambda other: other.query(ProductSale).filter(ProductSale.sale_code == "V-001").update(
            {ProductSale.sale_code: "V-002"}, synchronize_session=False,
        ))
        return taken

    monkeypatch.setattr(sale_ledger, "_take_stock", take_then_lose_code)

    with pytest.raises(ConflictError):
        sale_ledger.sell_product(db, admin_identity(db, gym_id), product_id, 2, client_id, "V-002")

    product = _product(client, headers, product_id)
    assert product["stock_quantity"] == 4
    assert product["sales_obtained"] == 1
    assert product["status"] == "Activo"
    assert client.get("/product-sales/", headers=headers).json()["total"] == 1


def test_products_sell_route_records_a_sale(client, admin):
    headers, _ = admin
    product_id, client_id = _setup(client, headers, stock=3)

    r = client.post("/products/sell", headers=headers, json={
        "product_id": product_id, "client_id": client_id, "quantity_sold": 2, "sale_code": "V-001",
    })
    assert r.status_code == 201, r.text
    assert r.json()["sale"]["quantity_sold"] == 2
    assert _product(client, headers, product_id)["stock_quantity"] == 1
