"""
HTTP surface for operating the watchdog: status, manual sweeps, force
repair, and validated record access.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request

from .schemas import (
    HealthCheckResultResponse,
    HealthResponse,
    RecordListResponse,
    RecordResponse,
    RecordSummary,
    RecordWriteRequest,
    WatchdogStatusResponse,
)
from ..core.accessor import read_or_default, safe_write
from ..core.config import VERSION, debug_enabled
from ..core.db import health_check
from ..core.store import StoreError
from ..core.watchdog import WatchdogHandle, WatchdogOptions, configure
from ..util.logging import logger


def get_watchdog(request: Request) -> WatchdogHandle:
    handle = getattr(request.app.state, "watchdog", None)
    if handle is None:
        raise HTTPException(status_code=503, detail="Watchdog not configured")
    return handle


def create_app(handle: Optional[WatchdogHandle] = None) -> FastAPI:
    """
    Build the API. Without a handle, one is configured from the environment
    at startup and stopped at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = handle is None
        app.state.watchdog = configure(options=WatchdogOptions.from_env()) if owned else handle
        try:
            yield
        finally:
            if owned:
                app.state.watchdog.stop()

    app = FastAPI(
        title="Store Guard API",
        version=VERSION,
        description="Integrity watchdog for the shared key-value store",
        docs_url="/docs" if debug_enabled() else None,
        redoc_url="/redoc" if debug_enabled() else None,
        lifespan=lifespan
    )

    @app.get("/health", response_model=HealthResponse)
    def health_check_endpoint(watchdog: WatchdogHandle = Depends(get_watchdog)):
        """Check store and watchdog health."""
        db_health = health_check(watchdog.store.db_path)
        latest = watchdog.get_health_status()

        try:
            used = watchdog.store.used_bytes()
        except StoreError:
            used = None

        healthy = db_health and (latest is None or latest.is_healthy)
        return HealthResponse(
            status="healthy" if healthy else "unhealthy",
            version=VERSION,
            db_health=db_health,
            watchdog_running=watchdog.is_running,
            last_check_healthy=latest.is_healthy if latest else None,
            used_bytes=used
        )

    @app.get("/watchdog/status", response_model=WatchdogStatusResponse)
    def watchdog_status(watchdog: WatchdogHandle = Depends(get_watchdog)):
        return WatchdogStatusResponse(**watchdog.status())

    @app.post("/watchdog/check", response_model=HealthCheckResultResponse)
    def run_check(watchdog: WatchdogHandle = Depends(get_watchdog)):
        """Run a full sweep now."""
        return HealthCheckResultResponse.from_result(watchdog.run_health_check())

    @app.post("/watchdog/repair-all", response_model=HealthCheckResultResponse)
    def repair_all(watchdog: WatchdogHandle = Depends(get_watchdog)):
        """Reset every monitored record to its default."""
        logger.warning("Force repair requested over HTTP")
        watchdog.force_repair_all()
        return HealthCheckResultResponse.from_result(watchdog.get_health_status())

    @app.get("/records", response_model=RecordListResponse)
    def list_records(watchdog: WatchdogHandle = Depends(get_watchdog)):
        return RecordListResponse(records=[
            RecordSummary(key=c.key, is_required=c.is_required, state=watchdog.checker.inspect(c).value)
            for c in watchdog.registry
        ])

    @app.get("/records/{key}", response_model=RecordResponse)
    def get_record(key: str, watchdog: WatchdogHandle = Depends(get_watchdog)):
        """Read a monitored record, falling back to its default when unusable."""
        config = watchdog.registry.get(key)
        if config is None:
            raise HTTPException(status_code=404, detail=f"Key not monitored: {key}")
        return RecordResponse(key=key, value=read_or_default(watchdog.store, config))

    @app.put("/records/{key}", response_model=RecordResponse)
    def put_record(key: str, req: RecordWriteRequest, watchdog: WatchdogHandle = Depends(get_watchdog)):
        config = watchdog.registry.get(key)
        if config is None:
            raise HTTPException(status_code=404, detail=f"Key not monitored: {key}")
        if not config.is_valid(req.value):
            raise HTTPException(status_code=422, detail=f"Value rejected by validator for {key}")
        if not safe_write(watchdog.store, key, req.value):
            raise HTTPException(status_code=507, detail=f"Store rejected write for {key}")
        return RecordResponse(key=key, value=req.value)

    return app


app = create_app()
