"""Tests del transporte HTTP (FastAPI TestClient)."""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeDeliveryClient, make_settings
from relay_api.errors import PersistenceError
from relay_api.main import create_app
from relay_api.measurements import InMemoryMeasurementStore
from relay_api.schemas import (
    MSG_ANOMALY_NO_HISTORY,
    MSG_ANOMALY_SUBSTITUTED,
    MSG_DATA_RECEIVED,
    MSG_INVALID_DATA,
    MSG_INVALID_TARGET,
    MSG_TARGET_UPDATED,
)
from relay_api.services import build_services


@pytest.fixture
def relay(tmp_path):
    settings = make_settings(tmp_path)
    store = InMemoryMeasurementStore()
    client = FakeDeliveryClient(True)
    services = build_services(settings, store=store, client=client)
    app = create_app(settings, services=services, start_sweeper=False)
    with TestClient(app) as http:
        yield http, services
    assert store.closed is True


class TestDataEndpoint:

    def test_normal_reading(self, relay):
        http, services = relay

        resp = http.post("/api/data", json={"weight": 3000, "status": "stable"})

        assert resp.status_code == 200
        assert resp.json() == {
            "message": MSG_DATA_RECEIVED,
            "weight": 3000.0,
            "targetWeight": 5000.0,
            "status": "stable",
            "is_anomaly": False,
        }
        assert services.store.get(1).is_sent_to_vps is True

    def test_weight_as_string(self, relay):
        http, _ = relay
        resp = http.post("/api/data", json={"weight": "2500.5", "status": "stable"})
        assert resp.status_code == 200
        assert resp.json()["weight"] == 2500.5

    def test_anomaly_with_substitute(self, relay):
        http, _ = relay
        http.post("/api/data", json={"weight": 3000, "status": "stable"})

        resp = http.post("/api/data", json={"weight": 6000, "status": "overload"})

        body = resp.json()
        assert resp.status_code == 200
        assert body["weight"] == 3000.0
        assert body["status"] == "stable"
        assert body["message"] == MSG_ANOMALY_SUBSTITUTED
        assert "timestamp" in body

    def test_anomaly_without_history(self, relay):
        http, _ = relay
        resp = http.post("/api/data", json={"weight": 9000, "status": "overload"})
        assert resp.status_code == 200
        assert resp.json() == {"message": MSG_ANOMALY_NO_HISTORY}

    @pytest.mark.parametrize(
        "body",
        [{}, {"weight": 3000}, {"status": "x"}, {"weight": "abc", "status": "x"}, {"weight": 1, "status": ""}],
    )
    def test_invalid_reading_is_400(self, relay, body):
        http, services = relay
        resp = http.post("/api/data", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"message": MSG_INVALID_DATA}
        assert services.store.get(1) is None

    def test_malformed_json_is_400(self, relay):
        http, _ = relay
        resp = http.post("/api/data", content=b"{not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json() == {"message": MSG_INVALID_DATA}

    def test_out_of_range_integer_weight_is_400(self, relay):
        http, services = relay
        body = b'{"weight": 1' + b"0" * 400 + b', "status": "ok"}'

        resp = http.post("/api/data", content=body, headers={"Content-Type": "application/json"})

        assert resp.status_code == 400
        assert resp.json() == {"message": MSG_INVALID_DATA}
        assert services.store.get(1) is None

    def test_persistence_error_is_500(self, relay, monkeypatch):
        http, services = relay

        def broken(*args, **kwargs):
            raise PersistenceError("insert failed: OperationalError")

        monkeypatch.setattr(services.store, "insert", broken)

        resp = http.post("/api/data", json={"weight": 3000, "status": "stable"})

        assert resp.status_code == 500
        assert resp.json() == {"error": "insert failed: OperationalError"}

    def test_delivery_failure_still_answers_200(self, relay):
        http, services = relay
        services.client.result = False

        resp = http.post("/api/data", json={"weight": 3000, "status": "stable"})

        assert resp.status_code == 200
        assert resp.json()["is_anomaly"] is False
        assert services.store.count_undelivered() == 1


class TestTargetWeightEndpoint:

    def test_update(self, relay):
        http, services = relay
        resp = http.post("/api/targetWeight", json={"targetWeight": 7000})
        assert resp.status_code == 200
        assert resp.json() == {"message": MSG_TARGET_UPDATED}
        assert services.store.get_threshold() == 7000.0

    @pytest.mark.parametrize("body", [{}, {"targetWeight": -5}, {"targetWeight": 0}, {"targetWeight": "x"}])
    def test_invalid_is_400(self, relay, body):
        http, services = relay
        resp = http.post("/api/targetWeight", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"message": MSG_INVALID_TARGET}
        assert services.store.get_threshold() == 5000.0

    def test_out_of_range_integer_is_400(self, relay):
        http, services = relay
        body = b'{"targetWeight": 1' + b"0" * 400 + b"}"

        resp = http.post("/api/targetWeight", content=body, headers={"Content-Type": "application/json"})

        assert resp.status_code == 400
        assert resp.json() == {"message": MSG_INVALID_TARGET}
        assert services.store.get_threshold() == 5000.0

    def test_persistence_error_is_500(self, relay, monkeypatch):
        http, services = relay

        def broken(value):
            raise PersistenceError("update failed: OperationalError")

        monkeypatch.setattr(services.store, "set_threshold", broken)

        resp = http.post("/api/targetWeight", json={"targetWeight": 4000})

        assert resp.status_code == 500
        assert resp.json() == {"error": "update failed: OperationalError"}

    def test_malformed_json_is_400(self, relay):
        http, _ = relay
        resp = http.post("/api/targetWeight", content=b"[", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json() == {"message": MSG_INVALID_TARGET}


class TestHealthEndpoints:

    def test_health(self, relay):
        http, _ = relay
        assert http.get("/health").json() == {"status": "ok"}

    def test_ready(self, relay):
        http, _ = relay
        resp = http.get("/ready")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ready", "targetWeight": 5000.0}

    def test_delivery_health(self, relay):
        http, services = relay
        services.client.result = False
        http.post("/api/data", json={"weight": 3000, "status": "stable"})

        body = http.get("/health/delivery").json()

        assert body["pending"] == 1
        assert body["ingest"]["left_pending"] == 1
        assert body["sweeper"]["running"] is False
        assert body["client"]["attempts"] == 1


def test_app_builds_sql_services_from_settings(tmp_path, monkeypatch):
    """Sin servicios inyectados, el lifespan arma el store SQLite desde Settings."""
    settings = make_settings(tmp_path, retry_interval_seconds=3600)
    app = create_app(settings)

    with TestClient(app) as http:
        resp = http.post("/api/targetWeight", json={"targetWeight": 4000})
        assert resp.status_code == 200
        assert app.state.services.sweeper.is_running

    assert (tmp_path / "weight_sensor.db").exists()
    assert not app.state.services.sweeper.is_running
