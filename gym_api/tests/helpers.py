"""Request builders shared by the API tests."""


def gym_payload(name="Iron Gym"):
    return {
        "name": name,
        "address": {
            "street": "Av. Juárez 100",
            "colony": "Centro",
            "avenue": "Juárez",
            "postal_code": "06000",
            "city": "CDMX",
            "state": "CDMX",
            "country": "México",
        },
        "opening_time": "06:00",
        "closing_time": "22:00",
    }


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def register_admin_with_gym(client, email, gym_name):
    r = client.post("/admin/register-with-gym", json={
        "name": "Ana",
        "last_name": "López",
        "email": email,
        "password": "secret123",
        "gym": gym_payload(gym_name),
    })
    assert r.status_code == 201, r.text
    body = r.json()
    return auth(body["token"]), body["gym"]["id"]


def create_membership(client, headers, name="Mensual", price="500.00"):
    r = client.post("/memberships/created", headers=headers, json={
        "name_membership": name,
        "price": price,
        "duration_days": 30,
        "period": "mensual",
    })
    assert r.status_code == 201, r.text
    return r.json()["id"]


def create_client(client, headers, membership_id, email="cliente@correo.mx", **extra):
    payload = {
        "full_name": {"first": "Luis", "last_father": "García", "last_mother": "Soto"},
        "email": email,
        "membership_id": membership_id,
    }
    payload.update(extra)
    return client.post("/clients/created", headers=headers, json=payload)


def create_product(client, headers, stock=5, price="25.00", **extra):
    payload = {
        "name_product": "Proteína",
        "stock_quantity": stock,
        "stock_unit": "pieza",
        "price_amount": price,
        "category": "Suplementos",
    }
    payload.update(extra)
    r = client.post("/products/create", headers=headers, json=payload)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def memberships_by_id(client, headers):
    r = client.get("/memberships/", headers=headers)
    assert r.status_code == 200, r.text
    return {m["id"]: m for m in r.json()["items"]}


def admin_identity(db, gym_id):
    """Identity of the gym's administrator, for calling services directly."""
    from gym_api.core.deps import Identity
    from gym_api.core.roles import Role
    from gym_api.models.admin import Admin

    admin = db.query(Admin).filter(Admin.gym_id == gym_id).first()
    return Identity(id=admin.id, role=Role.admin, gym_id=gym_id, name=admin.full_name)
