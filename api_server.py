from __future__ import annotations  # FastAPI server exposing interview analysis

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from analysis.service import AIAnalysisService, create_service
from api.routes import router, set_service
from services.health import HealthMonitor

logger = logging.getLogger(__name__)


def create_app(service: Optional[AIAnalysisService] = None, *, monitor_health: bool = True) -> FastAPI:  # Build app with lifespan-managed service
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        svc = service or create_service()
        set_service(svc)
        monitor: Optional[HealthMonitor] = None
        if monitor_health:
            monitor = HealthMonitor(
                svc.registry,
                svc.clients,
                limiter=svc.limiter,
                interval_s=svc.settings.HEALTH_CHECK_INTERVAL_S,
            )
            monitor.start()
        app.state.service = svc
        app.state.health_monitor = monitor
        try:
            yield
        finally:
            if monitor is not None:
                await monitor.stop()
            await svc.aclose()
            set_service(None)

    app = FastAPI(title="Interview Analysis API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()
