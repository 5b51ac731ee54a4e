"""Entrega al colector aguas abajo.

Contiene:
- DeliveryClient: interfaz deliver(payload) -> bool
- CollectorClient: implementación HTTP (requests) con timeout
- CircuitBreaker: corta entregas mientras el colector está caído
"""

from .circuit_breaker import CircuitBreaker, CircuitBreakerConfig, CircuitState
from .client import CollectorClient, DeliveryClient

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    "CollectorClient",
    "DeliveryClient",
]
