"""FastAPI application factory for Inspection-Engine."""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inspection_engine.common.config import get_settings
from inspection_engine.common.exceptions import InspectionEngineError
from inspection_engine.common.logging import get_logger, setup_logging
from inspection_engine.common.schemas import ErrorResponse, HealthResponse

logger = get_logger("app")


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from inspection_engine.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        logger.info("Inspection-Engine started (%s)", settings.environment)
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s -> %d", request.method, request.url.path, response.status_code,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return response

    @app.exception_handler(InspectionEngineError)
    async def handle_domain_error(request: Request, exc: InspectionEngineError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        body = ErrorResponse(error=type(exc).__name__, code=exc.code, detail=exc.message)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @app.get("/health", response_model=HealthResponse)
    async def health():
        from inspection_engine.deps import get_db
        database = "ok" if await get_db().ping() else "unavailable"
        return HealthResponse(
            status="ok" if database == "ok" else "degraded",
            version=settings.api_version,
            database=database,
        )

    # Mount routers
    from inspection_engine.auth.router import admin_router
    from inspection_engine.auth.router import router as auth_router
    from inspection_engine.catalog.router import router as catalog_router
    from inspection_engine.deliveries.router import router as delivery_router
    from inspection_engine.inspections.router import checklist_router
    from inspection_engine.inspections.router import router as inspection_router
    from inspection_engine.reports.router import router as report_router

    prefix = settings.api_prefix
    app.include_router(auth_router, prefix=prefix)
    app.include_router(admin_router, prefix=prefix)
    app.include_router(inspection_router, prefix=prefix)
    app.include_router(delivery_router, prefix=prefix)
    app.include_router(checklist_router, prefix=prefix)
    app.include_router(catalog_router, prefix=prefix)
    app.include_router(report_router, prefix=prefix)

    return app
