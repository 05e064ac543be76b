"""Application lifespan: tracing setup on startup, flush and engine dispose on shutdown."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from orgflow.core.config import get_settings
from orgflow.infrastructure.persistence import database
from orgflow.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    set_telemetry,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start telemetry when enabled, yield to serve, then tear down."""
    settings = get_settings()

    if settings.telemetry_enabled:
        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            environment=settings.telemetry_environment,
        )
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        telemetry.instrument(
            app, database.get_engine() if settings.sql_configured else None
        )
        set_telemetry(telemetry)

    logger.info("%s %s started", settings.app_name, settings.app_version)
    yield

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)
    await database.dispose_engine()
