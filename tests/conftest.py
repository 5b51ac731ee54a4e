"""Fixtures compartidas de los tests del relay."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import pytest

from common.config import Settings
from common.db import get_engine
from relay_api.delivery import DeliveryClient
from relay_api.measurements import InMemoryMeasurementStore, SqlMeasurementStore


def make_settings(tmp_path: Path, **overrides: Any) -> Settings:
    values = dict(
        db_path=str(tmp_path / "weight_sensor.db"),
        collector_url="http://collector.test/api/data",
        delivery_timeout_seconds=1.0,
        collector_cb_enabled=False,
        retry_interval_seconds=300.0,
        default_target_weight=5000.0,
        resend_last_normal_on_anomaly=True,
        host="127.0.0.1",
        port=8083,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


class FakeDeliveryClient(DeliveryClient):
    """Cliente de entrega en memoria; registra cada payload recibido."""

    def __init__(self, result: Union[bool, Callable[[Dict[str, Any]], bool]] = True) -> None:
        self.result = result
        self.payloads: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def deliver(self, payload: Dict[str, Any]) -> bool:
        with self._lock:
            self.payloads.append(payload)
        if callable(self.result):
            return self.result(payload)
        return self.result

    def get_stats(self) -> dict:
        return {"attempts": len(self.payloads)}


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def sql_store(settings):
    store = SqlMeasurementStore(get_engine(settings))
    store.initialize(settings.default_target_weight)
    yield store
    store.close()


@pytest.fixture
def memory_store() -> InMemoryMeasurementStore:
    store = InMemoryMeasurementStore()
    store.initialize(5000)
    return store


@pytest.fixture(params=["sql", "memory"])
def store(request, sql_store, memory_store):
    """Ambas implementaciones deben cumplir el mismo contrato."""
    return sql_store if request.param == "sql" else memory_store


@pytest.fixture
def ok_client() -> FakeDeliveryClient:
    return FakeDeliveryClient(True)


@pytest.fixture
def down_client() -> FakeDeliveryClient:
    return FakeDeliveryClient(False)
