from gym_api.tests.helpers import auth, create_membership, create_product, gym_payload


def _register_admin(client, email="solo@gym.mx"):
    r = client.post("/admin/register", json={"name": "Sol", "last_name": "Ríos", "email": email, "password": "secret123"})
    assert r.status_code == 201, r.text
    return auth(r.json()["token"])


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_gym_with_dependents_cannot_be_deleted(client, admin, collaborator):
    headers, gym_id = admin
    r = client.post("/gym/delete", headers=headers, json={"id": gym_id})
    assert r.status_code == 409
    dependencies = r.json()["dependencies"]
    assert dependencies == {
        "collaborators": 1,
        "clients": 0,
        "memberships": 0,
        "products": 0,
        "sales": 0,
        "suppliers": 0,
    }
    assert client.get("/gym/mygym", headers=headers).status_code == 200


def test_empty_gym_is_deleted_and_references_cleared(client):
    headers = _register_admin(client)
    r = client.post("/gym/created", headers=headers, json=gym_payload("Nuevo Gym"))
    assert r.status_code == 201, r.text
    gym_id = r.json()["gym"]["id"]

    # The token issued before the gym existed still resolves the gym from the stored admin
    r = client.get("/gym/mygym", headers=headers)
    assert r.status_code == 200
    assert r.json()["name"] == "Nuevo Gym"

    client.post("/notes/create", headers=headers, json={"title": "Apertura", "content": "Revisar equipo"})
    r = client.post("/gym/delete", headers=headers, json={"id": gym_id})
    assert r.status_code == 200, r.text
    assert client.get("/gym/mygym", headers=headers).status_code == 404
    assert client.get("/admin/me", headers=headers).json()["gym_id"] is None
    assert client.get("/notes/all", headers=headers).json()["total"] == 0


def test_admin_can_only_have_one_gym(client, admin):
    headers, _ = admin
    r = client.post("/gym/created", headers=headers, json=gym_payload("Segundo Gym"))
    assert r.status_code == 409


def test_gym_name_is_unique(client, admin):
    headers = _register_admin(client)
    r = client.post("/gym/created", headers=headers, json=gym_payload("Iron Gym"))
    assert r.status_code == 409


def test_gym_of_another_admin_is_forbidden(client, admin, other_admin):
    headers, _ = admin
    _, other_gym = other_admin
    assert client.post("/gym/updated", headers=headers, json={"id": other_gym, "logo_url": "x"}).status_code == 403
    assert client.post("/gym/delete", headers=headers, json={"id": other_gym}).status_code == 403


def test_gym_update_validates_hours(client, admin):
    headers, gym_id = admin
    r = client.post("/gym/updated", headers=headers, json={"id": gym_id, "closing_time": "25:00"})
    assert r.status_code == 400
    r = client.post("/gym/updated", headers=headers, json={"id": gym_id, "closing_time": "23:30"})
    assert r.status_code == 200
    assert r.json()["closing_time"] == "23:30"


def test_missing_and_invalid_tokens(client):
    r = client.get("/products/all")
    assert r.status_code == 401
    assert r.json()["message"] == "Token no proporcionado"
    assert client.get("/products/all", headers=auth("not-a-token")).status_code == 403


def test_login_errors(client, admin):
    r = client.post("/admin/login", json={"email": "ana@irongym.mx", "password": "wrong"})
    assert r.status_code == 401
    r = client.post("/admin/login", json={"email": "nadie@irongym.mx", "password": "secret123"})
    assert r.status_code == 404
    r = client.post("/admin/login", json={"email": "ana@irongym.mx", "password": "secret123"})
    assert r.status_code == 200
    assert r.json()["gym"]["name"] == "Iron Gym"


def test_deleted_actor_token_is_rejected(client, admin, collaborator):
    headers, _ = admin
    collaborators = client.get("/colaborators/all", headers=headers).json()["items"]
    assert len(collaborators) == 1
    assert collaborators[0]["collaborator_code"][:3] == "PRC"
    client.post("/colaborators/delete", headers=headers, json={"id": collaborators[0]["id"]})

    assert client.get("/colaborators/me", headers=collaborator).status_code == 401


def test_role_gating(client, admin, collaborator):
    headers, _ = admin
    r = client.post("/memberships/created", headers=collaborator, json={
        "name_membership": "VIP", "price": "900.00", "duration_days": 30, "period": "mensual",
    })
    assert r.status_code == 403
    assert client.get("/colaborators/all", headers=collaborator).status_code == 403
    assert client.get("/colaborators/me", headers=collaborator).json()["email"] == "carlos@irongym.mx"

    product_id = create_product(client, collaborator)
    r = client.post("/products/update", headers=collaborator, json={"id": product_id, "stock_quantity": 1})
    assert r.status_code == 403
    r = client.post("/products/delete", headers=collaborator, json={"id": product_id})
    assert r.status_code == 403
    membership_id = create_membership(client, headers)
    assert client.get(f"/memberships/{membership_id}", headers=collaborator).status_code == 200


def test_identity_without_gym_is_asked_to_assign_one(client):
    headers = _register_admin(client)
    r = client.get("/products/all", headers=headers)
    assert r.status_code == 400
    assert "gimnasio" in r.json()["message"]


def test_products_are_scoped_to_the_gym(client, admin, other_admin):
    headers, _ = admin
    other_headers, _ = other_admin
    product_id = create_product(client, headers, barcode="750100")

    assert client.get(f"/products/{product_id}", headers=other_headers).status_code == 404
    assert client.get("/products/all", headers=other_headers).json()["total"] == 0
    # Barcodes are unique per gym only
    create_product(client, other_headers, barcode="750100")
    r = client.post("/products/create", headers=headers, json={
        "name_product": "Agua", "stock_quantity": 1, "stock_unit": "litro",
        "category": "Bebidas", "barcode": "750100",
    })
    assert r.status_code == 409
