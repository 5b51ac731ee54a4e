"""Construcción de los componentes del relay a partir de Settings.

El proceso es dueño del store; pipeline y sweeper lo reciben explícitamente.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from common.config import Settings
from common.db import get_engine

from .delivery import CircuitBreaker, CircuitBreakerConfig, CollectorClient, DeliveryClient
from .measurements import MeasurementStore, SqlMeasurementStore
from .pipeline import IngestionPipeline
from .sweeper import RetrySweeper, SweeperConfig

logger = logging.getLogger(__name__)


@dataclass
class RelayServices:
    store: MeasurementStore
    client: DeliveryClient
    pipeline: IngestionPipeline
    sweeper: RetrySweeper


def build_store(settings: Settings) -> SqlMeasurementStore:
    store = SqlMeasurementStore(get_engine(settings), settings.default_target_weight)
    store.initialize(settings.default_target_weight)
    return store


def build_client(settings: Settings) -> CollectorClient:
    breaker = None
    if settings.collector_cb_enabled:
        breaker = CircuitBreaker("collector", CircuitBreakerConfig.from_env())
    return CollectorClient(
        settings.collector_url,
        timeout_seconds=settings.delivery_timeout_seconds,
        breaker=breaker,
    )


def build_services(
    settings: Settings,
    store: MeasurementStore | None = None,
    client: DeliveryClient | None = None,
) -> RelayServices:
    if store is None:
        store = build_store(settings)
    else:
        store.initialize(settings.default_target_weight)
    if client is None:
        client = build_client(settings)

    pipeline = IngestionPipeline(
        store,
        client,
        resend_last_normal_on_anomaly=settings.resend_last_normal_on_anomaly,
    )
    sweeper_config = SweeperConfig.from_env()
    sweeper_config.interval_seconds = settings.retry_interval_seconds
    sweeper = RetrySweeper(store, client, sweeper_config)

    logger.info(
        "Relay listo: collector=%s timeout=%.1fs retry_interval=%.1fs",
        settings.collector_url,
        settings.delivery_timeout_seconds,
        settings.retry_interval_seconds,
    )
    return RelayServices(store=store, client=client, pipeline=pipeline, sweeper=sweeper)
