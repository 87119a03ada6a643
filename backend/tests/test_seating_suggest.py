from datetime import datetime

from fastapi.testclient import TestClient
from sqlmodel import Session

from seating.models.reservation import Reservation


def setup_floor(client: TestClient, **settings):
    client.post("/api/units", json={"id": "u1", "name": "Bistro"})
    client.post("/api/units/u1/zones", json={"id": "z1", "name": "Main", "priority": 1})
    client.post("/api/units/u1/zones", json={"id": "z2", "name": "Terrace", "priority": 2})
    client.post("/api/units/u1/tables", json={"id": "t1", "name": "T1", "zone_id": "z1", "capacity_min": 2, "capacity_max": 4})
    client.post("/api/units/u1/tables", json={"id": "t2", "name": "T2", "zone_id": "z2", "capacity_min": 2, "capacity_max": 4})
    payload = {"allocation_enabled": True, "allocation_mode": "floorplan"}
    payload.update(settings)
    response = client.put("/api/units/u1/seating-settings", json=payload)
    assert response.status_code == 200


def test_suggest_first_zone(client: TestClient):
    setup_floor(client)
    response = client.post(
        "/api/units/u1/seating/suggest",
        json={"start_time": "2026-03-10T19:00:00", "party_size": 3},
    )
    assert response.status_code == 200
    assert response.json() == {
        "zone_id": "z1",
        "table_ids": ["t1"],
        "reason": "ZONE_FIRST",
        "confidence": 0.75,
        "allocation_mode": "floorplan",
        "allocation_strategy": "bestFit",
    }


def test_suggest_skips_reserved_table(client: TestClient, session: Session):
    setup_floor(client)
    session.add(
        Reservation(
            id="r1",
            unit_id="u1",
            start_time=datetime(2026, 3, 10, 18, 0),
            end_time=datetime(2026, 3, 10, 20, 0),
            assigned_table_ids=["t1"],
        )
    )
    session.commit()

    # 20:00+01:00 is 19:00 UTC
    response = client.post(
        "/api/units/u1/seating/suggest",
        json={"start_time": "2026-03-10T20:00:00+01:00", "party_size": 3},
    )
    assert response.json()["table_ids"] == ["t2"]


def test_business_outcomes_are_200(client: TestClient):
    setup_floor(client)
    response = client.post("/api/units/u1/seating/suggest", json={"start_time": "2026-03-10T19:00:00", "party_size": 0})
    assert response.status_code == 200
    assert response.json()["reason"] == "INVALID_PARTY_SIZE"

    response = client.post("/api/units/u1/seating/suggest", json={"start_time": "2026-03-10T19:00:00", "party_size": 9})
    assert response.status_code == 200
    assert response.json()["reason"] == "NO_FIT"
    assert response.json()["table_ids"] == []

    client.put("/api/units/u1/seating-settings", json={"allocation_enabled": False})
    response = client.post("/api/units/u1/seating/suggest", json={"start_time": "2026-03-10T19:00:00", "party_size": 3})
    assert response.status_code == 200
    assert response.json()["reason"] == "ALLOCATION_DISABLED"


def test_suggest_unknown_unit_and_bad_window(client: TestClient):
    response = client.post("/api/units/nope/seating/suggest", json={"start_time": "2026-03-10T19:00:00", "party_size": 2})
    assert response.status_code == 404

    setup_floor(client)
    response = client.post(
        "/api/units/u1/seating/suggest",
        json={"start_time": "2026-03-10T19:00:00", "end_time": "2026-03-10T18:00:00", "party_size": 2},
    )
    assert response.status_code == 422


def test_emergency_suggestion_is_logged(client: TestClient, session: Session):
    setup_floor(client, emergency_zones={"enabled": True, "zone_ids": ["z2"]})
    session.add(
        Reservation(
            id="r1",
            unit_id="u1",
            start_time=datetime(2026, 3, 10, 19, 0),
            end_time=datetime(2026, 3, 10, 21, 0),
            assigned_table_ids=["t1"],
        )
    )
    session.commit()

    response = client.post(
        "/api/units/u1/seating/suggest",
        json={"start_time": "2026-03-10T19:00:00", "party_size": 2, "booking_id": "b7"},
    )
    assert response.json()["reason"] == "EMERGENCY_ZONE"

    logs = client.get("/api/units/u1/allocation-logs?kind=emergency").json()
    assert len(logs) == 1
    assert logs[0]["booking_id"] == "b7"
    assert logs[0]["selected_table_ids"] == ["t2"]
    assert logs[0]["snapshot"] == {"overflow_zones_count": 0, "zone_priority_count": 0, "emergency_zones_count": 1}


def test_override_crud_and_use(client: TestClient):
    setup_floor(client)
    url = "/api/units/u1/reservations/b1/override"
    assert client.get(url).status_code == 404

    response = client.put(url, json={"forced_zone_id": " z2 ", "forced_table_ids": ["t2", "t2", ""], "note": "VIP"})
    assert response.status_code == 200
    override = response.json()
    assert override["forced_zone_id"] == "z2"
    assert override["forced_table_ids"] == ["t2"]
    assert override["note"] == "VIP"

    response = client.post(
        "/api/units/u1/seating/suggest",
        json={"start_time": "2026-03-10T19:00:00", "party_size": 3, "booking_id": "b1"},
    )
    assert response.json()["reason"] == "OVERRIDE_TABLES"
    assert response.json()["table_ids"] == ["t2"]
    assert response.json()["confidence"] == 1.0

    assert client.delete(url).status_code == 204
    assert client.get(url).status_code == 404

    response = client.post(
        "/api/units/u1/seating/suggest",
        json={"start_time": "2026-03-10T19:00:00", "party_size": 3, "booking_id": "b1"},
    )
    assert response.json()["reason"] == "ZONE_FIRST"


def test_allocation_decision_is_recorded_once_per_booking(client: TestClient):
    setup_floor(client)
    url = "/api/units/u1/bookings/b1/allocation-decision"
    body = {"start_time": "2026-03-10T19:00:00", "party_size": 3}

    first = client.post(url, json=body)
    assert first.status_code == 200
    data = first.json()
    assert data["suggestion"]["table_ids"] == ["t1"]
    assert data["allocation"]["zone_id"] == "z1"
    assert data["allocation"]["diagnostics_summary"] == "ZONE_FIRST"
    assert data["algo_version"] == "seating_v1"
    assert len(data["event_id"]) == 64

    second = client.post(url, json=body).json()
    assert second["event_id"] == data["event_id"]
    # same inputs, same trace id
    assert len(data["allocation"]["trace_id"]) == 16
    assert data["event_id"].startswith(data["allocation"]["trace_id"])
    assert second["allocation"]["trace_id"] == data["allocation"]["trace_id"]

    logs = client.get("/api/units/u1/allocation-logs?kind=decision").json()
    assert len(logs) == 1
    assert logs[0]["booking_end_time"] == "2026-03-10T21:00:00"


def test_allocation_decision_when_disabled(client: TestClient):
    setup_floor(client, allocation_enabled=False)
    response = client.post(
        "/api/units/u1/bookings/b1/allocation-decision",
        json={"start_time": "2026-03-10T19:00:00", "party_size": 3},
    )
    assert response.status_code == 200
    assert response.json()["suggestion"]["reason"] == "ALLOCATION_DISABLED"
    assert response.json()["allocation"] is None
