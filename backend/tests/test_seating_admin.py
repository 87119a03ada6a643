from fastapi.testclient import TestClient


def create_unit(client: TestClient, unit_id="u1"):
    response = client.post("/api/units", json={"id": unit_id, "name": "Bistro", "timezone": "Europe/Budapest"})
    assert response.status_code == 201
    return response.json()


def create_zone(client: TestClient, unit_id="u1", **kwargs):
    payload = {"name": "Main", "priority": 1}
    payload.update(kwargs)
    response = client.post(f"/api/units/{unit_id}/zones", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def create_table(client: TestClient, zone_id, unit_id="u1", **kwargs):
    payload = {"name": "T1", "zone_id": zone_id, "capacity_min": 2, "capacity_max": 4}
    payload.update(kwargs)
    response = client.post(f"/api/units/{unit_id}/tables", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_and_get_unit(client: TestClient):
    unit = create_unit(client)
    assert unit == {"id": "u1", "name": "Bistro", "timezone": "Europe/Budapest"}

    assert client.get("/api/units/u1").json()["timezone"] == "Europe/Budapest"
    assert client.get("/api/units/missing").status_code == 404
    assert client.post("/api/units", json={"id": "u1", "name": "Again"}).status_code == 409


def test_unit_rejects_unknown_timezone(client: TestClient):
    response = client.post("/api/units", json={"id": "u2", "name": "Bistro", "timezone": "Mars/Olympus"})
    assert response.status_code == 422


def test_zone_crud_and_soft_delete(client: TestClient):
    create_unit(client)
    zone = create_zone(client, id="z1", tags=[" Window ", "", "QUIET"], type="table")
    assert zone["id"] == "z1"
    assert zone["state"] == "active"
    assert zone["tags"] == ["window", "quiet"]

    response = client.put("/api/units/u1/zones/z1", json={"priority": 5, "is_emergency": True})
    assert response.status_code == 200
    assert response.json()["priority"] == 5
    assert response.json()["is_emergency"] is True

    response = client.delete("/api/units/u1/zones/z1")
    assert response.status_code == 200
    assert response.json()["state"] == "inactive"

    assert client.get("/api/units/u1/zones").json() == []
    assert [z["id"] for z in client.get("/api/units/u1/zones?include_inactive=true").json()] == ["z1"]


def test_zone_type_is_validated(client: TestClient):
    create_unit(client)
    response = client.post("/api/units/u1/zones", json={"name": "Roof", "type": "rooftop"})
    assert response.status_code == 422


def test_zones_listed_in_priority_order(client: TestClient):
    create_unit(client)
    create_zone(client, id="z2", name="Terrace", priority=2)
    create_zone(client, id="z1", name="Main", priority=1)
    assert [z["id"] for z in client.get("/api/units/u1/zones").json()] == ["z1", "z2"]


def test_table_capacity_validation(client: TestClient):
    create_unit(client)
    zone = create_zone(client)

    response = client.post(
        "/api/units/u1/tables", json={"name": "T1", "zone_id": zone["id"], "capacity_min": 5, "capacity_max": 4}
    )
    assert response.status_code == 422

    response = client.post(
        "/api/units/u1/tables", json={"name": "T1", "zone_id": zone["id"], "capacity_min": 0, "capacity_max": 4}
    )
    assert response.status_code == 422

    table = create_table(client, zone["id"], id="t1")
    response = client.put("/api/units/u1/tables/t1", json={"capacity_min": 6})
    assert response.status_code == 422

    response = client.put("/api/units/u1/tables/t1", json={"capacity_min": 3, "can_seat_solo": True})
    assert response.status_code == 200
    assert response.json()["capacity_min"] == 3
    assert response.json()["capacity_max"] == table["capacity_max"]
    assert response.json()["can_seat_solo"] is True


def test_table_defaults(client: TestClient):
    create_unit(client)
    zone = create_zone(client)
    response = client.post("/api/units/u1/tables", json={"name": "Bar 1", "zone_id": zone["id"]})
    assert response.status_code == 201
    assert response.json()["capacity_min"] == 1
    assert response.json()["capacity_max"] == 2


def test_table_zone_must_belong_to_unit(client: TestClient):
    create_unit(client, "u1")
    create_unit(client, "u2")
    other_zone = create_zone(client, unit_id="u2")

    response = client.post(
        "/api/units/u1/tables", json={"name": "T1", "zone_id": other_zone["id"], "capacity_min": 1, "capacity_max": 2}
    )
    assert response.status_code == 400


def test_table_soft_delete(client: TestClient):
    create_unit(client)
    zone = create_zone(client)
    create_table(client, zone["id"], id="t1")

    assert client.delete("/api/units/u1/tables/t1").json()["state"] == "inactive"
    assert client.get("/api/units/u1/tables").json() == []
    assert client.delete("/api/units/u1/tables/nope").status_code == 404


def test_combination_validation(client: TestClient):
    create_unit(client)
    zone = create_zone(client)
    for table_id in ("t1", "t2", "t3"):
        create_table(client, zone["id"], id=table_id, name=table_id.upper())

    response = client.post("/api/units/u1/combinations", json={"id": "c1", "table_ids": ["t1", "t2"]})
    assert response.status_code == 201
    assert response.json()["table_ids"] == ["t1", "t2"]

    # duplicates and singletons are rejected by the payload model
    assert client.post("/api/units/u1/combinations", json={"table_ids": ["t1", "t1"]}).status_code == 422
    assert client.post("/api/units/u1/combinations", json={"table_ids": ["t1"]}).status_code == 422

    # above max_combine_count (default 2)
    assert client.post("/api/units/u1/combinations", json={"table_ids": ["t1", "t2", "t3"]}).status_code == 400

    # members must be active tables of the unit
    client.delete("/api/units/u1/tables/t3")
    assert client.post("/api/units/u1/combinations", json={"table_ids": ["t1", "t3"]}).status_code == 400
    assert client.post("/api/units/u1/combinations", json={"table_ids": ["t1", "ghost"]}).status_code == 400


def test_combination_size_follows_settings(client: TestClient):
    create_unit(client)
    zone = create_zone(client)
    for table_id in ("t1", "t2", "t3"):
        create_table(client, zone["id"], id=table_id, name=table_id.upper())

    client.put("/api/units/u1/seating-settings", json={"max_combine_count": 3})
    response = client.post("/api/units/u1/combinations", json={"table_ids": ["t1", "t2", "t3"]})
    assert response.status_code == 201

    combo_id = response.json()["id"]
    assert client.delete(f"/api/units/u1/combinations/{combo_id}").json()["state"] == "inactive"
    response = client.put(f"/api/units/u1/combinations/{combo_id}", json={"state": "active"})
    assert response.json()["state"] == "active"


def test_settings_defaults_and_nested_merge(client: TestClient):
    create_unit(client)

    settings = client.get("/api/units/u1/seating-settings").json()
    assert settings["allocation_enabled"] is False
    assert settings["buffer_minutes"] == 15
    assert settings["emergency_zones"] == {"enabled": False, "zone_ids": [], "active_rule": "always", "weekdays": []}

    response = client.put(
        "/api/units/u1/seating-settings",
        json={"emergency_zones": {"zone_ids": ["z9"], "active_rule": "byWeekday", "weekdays": [5, 6]}},
    )
    assert response.status_code == 200

    response = client.put(
        "/api/units/u1/seating-settings",
        json={"allocation_enabled": True, "emergency_zones": {"enabled": True}},
    )
    settings = response.json()
    assert settings["allocation_enabled"] is True
    assert settings["emergency_zones"] == {
        "enabled": True,
        "zone_ids": ["z9"],
        "active_rule": "byWeekday",
        "weekdays": [5, 6],
    }
    assert client.get("/api/units/u1/seating-settings").json() == settings


def test_settings_validation(client: TestClient):
    create_unit(client)
    assert client.put("/api/units/u1/seating-settings", json={"allocation_mode": "magic"}).status_code == 422
    assert client.put("/api/units/u1/seating-settings", json={"buffer_minutes": -5}).status_code == 422
    assert client.put("/api/units/u1/seating-settings", json={"emergency_zones": {"weekdays": [7]}}).status_code == 422
    assert client.get("/api/units/nope/seating-settings").status_code == 404


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
