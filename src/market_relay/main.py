from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .config import Settings, get_settings
from .container import RelayServices, build_services
from .observability import PROMETHEUS_CONTENT_TYPE, generate_prometheus_metrics

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_file_handler: logging.Handler | None = None


def configure_logging(settings: Settings) -> None:
    global _file_handler
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    if not settings.log_dir or _file_handler is not None:
        return
    log_path = Path(settings.log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    _file_handler = logging.FileHandler(log_path / "market_relay.log")
    _file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root_logger.addHandler(_file_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    services: RelayServices = app.state.services
    logger = logging.getLogger(services.settings.service_name)
    logger.info("Starting %s", services.settings.service_name)
    await services.start()
    yield
    logger.info("Stopping %s", services.settings.service_name)
    await services.aclose()
    logger.info("%s stopped", services.settings.service_name)


def create_app(settings: Settings | None = None, services: RelayServices | None = None) -> FastAPI:
    settings = settings or (services.settings if services else get_settings())
    configure_logging(settings)
    app = FastAPI(title="Market Relay", lifespan=lifespan)
    app.state.services = services or build_services(settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(api_router)

    @app.get("/metrics")
    async def prometheus_metrics() -> Response:
        payload = generate_prometheus_metrics()
        return Response(content=payload, media_type=PROMETHEUS_CONTENT_TYPE)

    @app.get("/healthz")
    async def healthz() -> dict[str, object]:
        relay: RelayServices = app.state.services
        caches = {}
        for cache in relay.caches():
            age = cache.age_seconds()
            caches[cache.name] = {
                "hasValue": cache.current.value is not None,
                "ageSeconds": round(age, 3) if age is not None else None,
            }
        return {
            "status": "ok",
            "service": relay.settings.service_name,
            "scheduler": relay.scheduler.status().as_dict(),
            "caches": caches,
        }

    return app


app = create_app()
