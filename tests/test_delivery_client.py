"""Tests del cliente de entrega al colector y su circuit breaker."""

from unittest.mock import MagicMock

import pytest
import requests

from relay_api.delivery import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
    CollectorClient,
)
from relay_api.errors import DeliveryFailure

URL = "http://collector.test/api/data"
PAYLOAD = {"weight": 3000.0, "status": "stable", "timestamp": "2026-01-01T00:00:00+00:00"}


def _response(status_code: int) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    return resp


@pytest.fixture
def session() -> MagicMock:
    s = MagicMock()
    s.post = MagicMock(return_value=_response(200))
    return s


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


# =============================================================================
# CONTRATO deliver() -> bool
# =============================================================================

class TestCollectorClient:

    def test_success_on_http_200(self, session):
        client = CollectorClient(URL, timeout_seconds=2.5, session=session)

        assert client.deliver(PAYLOAD) is True
        session.post.assert_called_once_with(URL, json=PAYLOAD, timeout=2.5)

    @pytest.mark.parametrize("status_code", [201, 400, 404, 500, 503])
    def test_non_200_is_failure(self, session, status_code):
        session.post.return_value = _response(status_code)
        client = CollectorClient(URL, session=session)

        assert client.deliver(PAYLOAD) is False

    def test_timeout_is_failure_not_exception(self, session):
        session.post.side_effect = requests.Timeout("read timed out")
        client = CollectorClient(URL, session=session)

        assert client.deliver(PAYLOAD) is False

    def test_connection_error_is_failure(self, session):
        session.post.side_effect = requests.ConnectionError("refused")
        client = CollectorClient(URL, session=session)

        assert client.deliver(PAYLOAD) is False

    def test_stats_count_attempts(self, session):
        client = CollectorClient(URL, session=session)
        client.deliver(PAYLOAD)
        session.post.return_value = _response(500)
        client.deliver(PAYLOAD)

        stats = client.get_stats()
        assert stats["attempts"] == 2
        assert stats["successes"] == 1
        assert stats["failures"] == 1
        assert "circuit_state" not in stats


# =============================================================================
# CIRCUIT BREAKER
# =============================================================================

class TestCircuitBreaker:

    def _breaker(self, clock, failure_threshold=3):
        return CircuitBreaker(
            "collector",
            CircuitBreakerConfig(
                failure_threshold=failure_threshold,
                recovery_timeout_seconds=30.0,
                success_threshold=1,
            ),
            clock=clock,
        )

    @staticmethod
    def _failure():
        return DeliveryFailure("collector rejected payload", status_code=503)

    def test_opens_after_consecutive_failures(self):
        cb = self._breaker(FakeClock())

        for _ in range(3):
            assert cb.allow()
            cb.record_failure(self._failure())

        assert cb.state == CircuitState.OPEN
        assert cb.allow() is False
        assert cb.remaining_seconds() == 30.0

    def test_half_open_after_timeout_then_recovers(self):
        clock = FakeClock()
        cb = self._breaker(clock, failure_threshold=1)
        cb.record_failure(self._failure())

        clock.now += 31.0

        assert cb.state == CircuitState.HALF_OPEN
        assert cb.allow() is True
        cb.record_success()
        assert cb.state == CircuitState.CLOSED

    def test_failure_in_half_open_reopens(self):
        clock = FakeClock()
        cb = self._breaker(clock, failure_threshold=1)
        cb.record_failure(self._failure())
        clock.now += 31.0
        assert cb.allow()

        cb.record_failure(self._failure())

        assert cb.state == CircuitState.OPEN
        assert cb.get_stats()["times_opened"] == 2

    def test_success_resets_consecutive_failures(self):
        cb = self._breaker(FakeClock())
        for _ in range(2):
            cb.record_failure(self._failure())
        cb.record_success()
        for _ in range(2):
            cb.record_failure(self._failure())

        assert cb.state == CircuitState.CLOSED
        assert cb.get_stats()["consecutive_failures"] == 2

    def test_stats_describe_last_transition(self):
        cb = self._breaker(FakeClock(), failure_threshold=1)
        cb.record_failure(self._failure())

        stats = cb.get_stats()

        assert stats["state"] == "open"
        assert stats["last_transition"] == "closed -> open"
        assert "HTTP 503" in stats["last_failure"]

    def test_open_breaker_short_circuits_delivery(self, session):
        session.post.return_value = _response(503)
        cb = self._breaker(FakeClock(), failure_threshold=2)
        client = CollectorClient(URL, breaker=cb, session=session)

        assert client.deliver(PAYLOAD) is False
        assert client.deliver(PAYLOAD) is False
        # Circuito abierto: no se llama al colector
        assert client.deliver(PAYLOAD) is False

        assert session.post.call_count == 2
        stats = client.get_stats()
        assert stats["short_circuited"] == 1
        assert stats["circuit_state"] == "open"
        assert stats["circuit_breaker"]["times_opened"] == 1

    def test_client_recovers_through_trial_delivery(self, session):
        clock = FakeClock()
        session.post.return_value = _response(503)
        client = CollectorClient(URL, breaker=self._breaker(clock, failure_threshold=1), session=session)
        assert client.deliver(PAYLOAD) is False

        clock.now += 31.0
        session.post.return_value = _response(200)

        assert client.deliver(PAYLOAD) is True
        assert client.get_stats()["circuit_state"] == "closed"

    def test_client_bug_does_not_trip_breaker(self, session):
        session.post.side_effect = KeyError("bad payload mapping")
        cb = self._breaker(FakeClock(), failure_threshold=1)
        client = CollectorClient(URL, breaker=cb, session=session)

        with pytest.raises(KeyError):
            client.deliver(PAYLOAD)

        assert cb.state == CircuitState.CLOSED
