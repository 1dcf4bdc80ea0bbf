from datetime import date, timedelta


def _note(client, headers, title, content="Contenido", category="nota"):
    r = client.post("/notes/create", headers=headers, json={"title": title, "content": content, "category": category})
    assert r.status_code == 201, r.text
    return r.json()["id"]


def _event(client, headers, title="Junta", event_date=None, start="09:00", end="10:00", category="meetings"):
    return client.post("/calendar/create", headers=headers, json={
        "title": title,
        "event_date": (event_date or date.today()).isoformat(),
        "start_time": start,
        "end_time": end,
        "category": category,
    })


def test_notes_are_private_to_their_owner(client, admin, collaborator):
    headers, _ = admin
    note_id = _note(client, collaborator, "Inventario", "Contar mancuernas", "productos")

    assert client.get(f"/notes/{note_id}", headers=collaborator).status_code == 200
    assert client.get(f"/notes/{note_id}", headers=headers).status_code == 404
    assert client.post("/notes/delete", headers=headers, json={"id": note_id}).status_code == 404
    assert client.get("/notes/all", headers=headers).json()["total"] == 0


def test_note_validation(client, admin):
    headers, _ = admin
    r = client.post("/notes/create", headers=headers, json={"title": "x" * 101, "content": "c"})
    assert r.status_code == 400
    r = client.post("/notes/create", headers=headers, json={"title": "t", "content": "c", "category": "chisme"})
    assert r.status_code == 400
    r = client.post("/notes/create", headers=headers, json={"title": "t", "content": "c" * 2001})
    assert r.status_code == 400


def test_note_update_list_stats_and_search(client, admin):
    headers, _ = admin
    first = _note(client, headers, "Curso de spinning", category="curso")
    _note(client, headers, "Queja regadera", "La regadera 3 no calienta", category="quejas")
    _note(client, headers, "Recordatorio pago luz", category="recordatorio")

    r = client.post("/notes/update", headers=headers, json={"id": first, "content": "Sábado 10am"})
    assert r.status_code == 200
    assert r.json()["content"] == "Sábado 10am"

    r = client.get("/notes/all", headers=headers, params={"category": "quejas"})
    assert r.json()["total"] == 1
    assert r.json()["by_category"] == {"quejas": 1}

    r = client.get("/notes/all", headers=headers, params={"sort_by": "title", "sort_order": "asc"})
    assert [n["title"] for n in r.json()["items"]] == ["Curso de spinning", "Queja regadera", "Recordatorio pago luz"]

    stats = client.get("/notes/stats", headers=headers).json()
    assert stats["total_notes"] == 3
    assert stats["recent_notes"] == 3
    assert stats["by_category"] == {"curso": 1, "quejas": 1, "recordatorio": 1}
    assert stats["latest_note"] is not None

    r = client.get("/notes/search", headers=headers, params={"q": "REGADERA"})
    assert r.json()["total"] == 1
    assert client.get("/notes/search", headers=headers).status_code == 400


def test_event_hours_must_be_ordered(client, admin):
    headers, _ = admin
    assert _event(client, headers, start="10:00", end="09:00").status_code == 400
    assert _event(client, headers, start="9am", end="10:00").status_code == 400
    assert _event(client, headers, category="fiesta").status_code == 400

    event_id = _event(client, headers).json()["id"]
    r = client.put(f"/calendar/{event_id}", headers=headers, json={"end_time": "08:00"})
    assert r.status_code == 400
    r = client.put(f"/calendar/{event_id}", headers=headers, json={"end_time": "11:30", "title": "Junta larga"})
    assert r.status_code == 200
    assert r.json()["end_time"] == "11:30"


def test_today_and_date_range(client, admin, collaborator):
    headers, _ = admin
    today = date.today()
    _event(client, headers, "Corte", start="18:00", end="19:00", category="reports")
    _event(client, headers, "Apertura", start="06:00", end="07:00")
    _event(client, headers, "Mantenimiento", event_date=today + timedelta(days=3), category="maintenance")
    _event(client, collaborator, "Ajeno")

    r = client.get("/calendar/today", headers=headers)
    body = r.json()
    assert body["total"] == 2
    assert [e["title"] for e in body["items"]] == ["Apertura", "Corte"]
    assert set(body["by_category"]) == {"meetings", "reports"}

    r = client.get("/calendar/date-range", headers=headers, params={
        "start_date": today.isoformat(),
        "end_date": (today + timedelta(days=7)).isoformat(),
    })
    assert r.json()["total"] == 3

    r = client.get("/calendar/date-range", headers=headers, params={
        "start_date": (today + timedelta(days=1)).isoformat(),
        "end_date": today.isoformat(),
    })
    assert r.status_code == 400
    assert client.get("/calendar/date-range", headers=headers).status_code == 400

    r = client.get("/calendar/all", headers=headers, params={"category": "maintenance"})
    assert r.json()["total"] == 1


def test_event_delete_is_owner_only(client, admin, collaborator):
    headers, _ = admin
    event_id = _event(client, collaborator).json()["id"]
    assert client.delete(f"/calendar/{event_id}", headers=headers).status_code == 404
    assert client.delete(f"/calendar/{event_id}", headers=collaborator).status_code == 200
    assert client.get(f"/calendar/{event_id}", headers=collaborator).status_code == 404
