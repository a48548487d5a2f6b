"""FastAPI application entrypoint."""

import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from src.core.config import settings
from src.core.exceptions import register_exception_handlers
from src.core.logging import configure_logging
from src.modules.appointments import router as appointments
from src.modules.catalog import router as catalog
from src.modules.notifications import router as notifications
from src.modules.orders import router as orders
from src.modules.schedule import router as schedule

logger = logging.getLogger(__name__)

CUSTOMER_ROUTERS = (catalog.router, schedule.router, appointments.router, orders.router, notifications.router)
ADMIN_ROUTERS = (schedule.admin_router, appointments.admin_router, orders.admin_router, notifications.admin_router)


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version="0.1.0",
    )
    register_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    for router in (*CUSTOMER_ROUTERS, *ADMIN_ROUTERS):
        app.include_router(router)

    # Designs, payment proofs and refund receipts are stored as paths relative to this mount.
    app.mount(settings.media_url, StaticFiles(directory=settings.media_root, check_dir=False), name="media")
    logger.info("Serving uploads from %s at %s", settings.media_root, settings.media_url)
    return app


app = create_app()
