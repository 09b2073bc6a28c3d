from contextlib import asynccontextmanager

from fastapi import FastAPI, Response

from auth import router as auth_router
from auth.security import TokenAuthenticator
from cars import router as cars_router
from cars.repository import CarStore
from core.db import Database
from core.errors import register_error_handlers
from core.logging_config import setup_logging
from core.metrics import RequestMetrics, RequestMetricsMiddleware
from engines import router as engines_router
from engines.repository import EngineStore


def create_app(
    *,
    database: Database | None = None,
    authenticator: TokenAuthenticator | None = None,
    metrics: RequestMetrics | None = None,
) -> FastAPI:
    setup_logging()

    db = database if database is not None else Database()
    request_metrics = metrics if metrics is not None else RequestMetrics()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # One pool per process, shared by both stores.
        await db.connect()
        app.state.car_store = CarStore(db)
        app.state.engine_store = EngineStore(db)
        try:
            yield
        finally:
            await db.close()

    app = FastAPI(title="carzone", lifespan=lifespan)
    app.state.db = db
    app.state.authenticator = authenticator if authenticator is not None else TokenAuthenticator.from_env()
    app.state.metrics = request_metrics

    app.add_middleware(RequestMetricsMiddleware, metrics=request_metrics)
    register_error_handlers(app)

    app.include_router(auth_router.router, tags=["auth"])
    app.include_router(cars_router.router, tags=["cars"])
    app.include_router(engines_router.router, tags=["engines"])

    @app.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        body, content_type = request_metrics.render()
        return Response(content=body, media_type=content_type)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
