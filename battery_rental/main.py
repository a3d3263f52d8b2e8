from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from battery_rental import __version__
from battery_rental.api.v1 import (
    customers,
    dashboard,
    health,
    inventory,
    payments,
    rentals,
    users,
)
from battery_rental.config.logging import setup_logging
from battery_rental.config.settings import Settings
from battery_rental.db.database import get_engine, get_sessionmaker
from battery_rental.db.models import Base
from battery_rental.monitoring.metrics import init_app_info, setup_instrumentator


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting battery-rental service")

    settings: Settings = app.state.settings
    engine = get_engine(settings.database_url)
    if settings.create_schema:
        Base.metadata.create_all(engine)
    app.state.engine = engine
    app.state.sessionmaker = get_sessionmaker(engine)

    yield

    engine.dispose()
    logger.info("Shutting down battery-rental service")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    setup_logging(settings)

    app = FastAPI(
        title="Battery Rental Service",
        description="Inventory, customers, rentals and payments for a battery rental business",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    if settings.metrics_enabled:
        instrumentator = setup_instrumentator()
        instrumentator.instrument(app).expose(app)
        init_app_info(__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(inventory.router, prefix="/api/v1", tags=["inventory"])
    app.include_router(customers.router, prefix="/api/v1", tags=["customers"])
    app.include_router(rentals.router, prefix="/api/v1", tags=["rentals"])
    app.include_router(payments.router, prefix="/api/v1", tags=["payments"])
    app.include_router(dashboard.router, prefix="/api/v1", tags=["dashboard"])
    app.include_router(users.router, prefix="/api/v1", tags=["users"])

    return app


def main():
    import uvicorn

    uvicorn.run(
        "battery_rental.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_config=None,
    )


if __name__ == "__main__":
    main()
