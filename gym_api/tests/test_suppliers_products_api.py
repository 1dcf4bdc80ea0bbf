from gym_api.tests.helpers import create_product


def _supplier(client, headers, name="Nutri MX", email="Ventas@NutriMX.com"):
    return client.post("/suppliers/create", headers=headers, json={"name": name, "phone": "5550001111", "email": email})


def test_supplier_email_is_unique_per_gym(client, admin, other_admin):
    headers, _ = admin
    other_headers, _ = other_admin
    r = _supplier(client, headers)
    assert r.status_code == 201, r.text
    assert r.json()["registered_by_name"] == "Ana López"

    assert _supplier(client, headers, name="Otro nombre", email="ventas@nutrimx.com").status_code == 409
    assert _supplier(client, other_headers).status_code == 201


def test_supplier_in_use_cannot_be_deleted(client, admin, collaborator):
    headers, _ = admin
    supplier_id = _supplier(client, headers).json()["id"]
    product_id = create_product(client, collaborator, supplier_id=supplier_id)

    product = client.get(f"/products/{product_id}", headers=headers).json()
    assert product["supplier_name"] == "Nutri MX"
    assert product["registered_by_type"] == "Colaborador"

    assert client.post("/suppliers/delete", headers=collaborator, json={"id": supplier_id}).status_code == 403
    r = client.post("/suppliers/delete", headers=headers, json={"id": supplier_id})
    assert r.status_code == 409
    assert r.json()["products"] == 1

    client.post("/products/delete", headers=headers, json={"id": product_id})
    assert client.post("/suppliers/delete", headers=headers, json={"id": supplier_id}).status_code == 200


def test_supplier_update_and_search(client, admin):
    headers, _ = admin
    supplier_id = _supplier(client, headers).json()["id"]
    _supplier(client, headers, name="Bebidas del Norte", email=None)

    r = client.post("/suppliers/update", headers=headers, json={"id": supplier_id, "phone": "5559998888"})
    assert r.status_code == 200
    assert r.json()["phone"] == "5559998888"
    assert r.json()["updated_by_name"] == "Ana López"

    r = client.get("/suppliers/all", headers=headers, params={"q": "norte"})
    assert [s["name"] for s in r.json()["items"]] == ["Bebidas del Norte"]


def test_product_from_foreign_supplier_is_not_found(client, admin, other_admin):
    headers, _ = admin
    other_headers, _ = other_admin
    foreign = _supplier(client, other_headers).json()["id"]
    r = client.post("/products/create", headers=headers, json={
        "name_product": "Creatina", "stock_unit": "kg", "category": "Suplementos", "supplier_id": foreign,
    })
    assert r.status_code == 404


def test_product_validation(client, admin):
    headers, _ = admin
    base = {"name_product": "Toalla", "stock_unit": "pieza", "category": "Accesorios"}
    assert client.post("/products/create", headers=headers, json={**base, "stock_unit": "docena"}).status_code == 400
    assert client.post("/products/create", headers=headers, json={**base, "category": "Comida"}).status_code == 400
    assert client.post("/products/create", headers=headers, json={**base, "stock_quantity": -1}).status_code == 400
    assert client.post("/products/create", headers=headers, json={**base, "price_amount": "-5"}).status_code == 400


def test_manual_stock_update_drives_status(client, admin):
    headers, _ = admin
    product_id = create_product(client, headers, stock=0)
    product = client.get(f"/products/{product_id}", headers=headers).json()
    assert product["status"] == "Agotado"

    r = client.post("/products/update", headers=headers, json={"id": product_id, "stock_quantity": 10})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "Activo"

    r = client.post("/products/update", headers=headers, json={"id": product_id, "status": "Inactivo"})
    assert r.json()["status"] == "Inactivo"
    r = client.post("/products/update", headers=headers, json={"id": product_id, "stock_quantity": 0})
    assert r.json()["status"] == "Agotado"
    r = client.post("/products/update", headers=headers, json={"id": product_id, "stock_quantity": 3})
    assert r.json()["status"] == "Inactivo"

    r = client.post("/products/update", headers=headers, json={"id": product_id, "sales_obtained": 99})
    assert r.status_code == 400
    assert client.get(f"/products/{product_id}", headers=headers).json()["sales_obtained"] == 0
