"""Application lifespan: startup and shutdown.

Single place for startup/shutdown wiring: store engine and migrations, database connector,
audit dispatcher, telemetry, engine disposal. No business logic here.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from sqlgate.core.config import get_settings
from sqlgate.infrastructure.external.database_connector import SqlAlchemyDatabaseConnector
from sqlgate.infrastructure.services.audit_dispatcher import AuditDispatcher, SqlQueryAuditSink

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: store engine and optional migrations (if configured), connector, audit
    dispatcher, telemetry (if enabled). Shutdown order: audit dispatcher
    drain, connector dispose, telemetry shutdown, store engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    from sqlgate.infrastructure.persistence import database

    if settings.database_url:
        if settings.database_migrate_on_startup:
            await database.run_migrations()
        database.get_session_factory()
        logger.info("Policy store engine ready")

    app.state.db_connector = SqlAlchemyDatabaseConnector(
        pool_size=settings.connector_pool_size,
        pool_recycle=settings.connector_pool_recycle_seconds,
    )
    app.state.audit_dispatcher = AuditDispatcher(
        SqlQueryAuditSink(), max_size=settings.audit_queue_max_size
    )
    app.state.audit_dispatcher.start()

    if settings.telemetry_enabled:
        from sqlgate.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            enabled=True,
            environment=settings.telemetry_environment,
        )
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_fastapi(app)
        if database.engine is not None:
            telemetry.instrument_sqlalchemy(database.engine)
        logger.info("Telemetry initialized")

    yield

    # ---- Shutdown ----
    await app.state.audit_dispatcher.stop()
    await app.state.db_connector.dispose()
    logger.info("Database connector disposed")

    from sqlgate.shared.telemetry.telemetry import get_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        logger.info("Telemetry shutdown complete")

    if database.engine is not None:
        await database.dispose_engine()
        logger.info("Database engine disposed")
