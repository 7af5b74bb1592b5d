from sqlalchemy import delete

from routinedesk.models.time_slot import TimeSlotDefinition


def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code == 200
    payload = ready.json()
    assert payload["database"]["ok"] is True
    assert payload["database"]["missing_tables"] == []
    assert payload["time_slots"]["configured"] == 8


def test_ready_is_degraded_without_time_slots(client, db_session_factory):
    with db_session_factory() as db:
        db.execute(delete(TimeSlotDefinition))
        db.commit()

    ready = client.get("/api/health/ready")
    assert ready.status_code == 503
    assert ready.json()["status"] == "degraded"


def test_responses_carry_security_and_timing_headers(client):
    response = client.get("/api/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Response-Time-Ms" in response.headers
