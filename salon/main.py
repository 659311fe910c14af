# salon/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import LOG_LEVEL
from .db import init_db
from .errors import SalonError
from .queue import ArqJobQueue, NotificationScheduler
from .routers import (
    appointments_routes,
    auth_routes,
    clients_routes,
    dashboard_routes,
    manicurists_routes,
    services_routes,
    settings_routes,
    users_routes,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    init_db()
    queue = ArqJobQueue()
    app.state.scheduler = NotificationScheduler(queue)
    yield
    logger.info("Application shutting down...")
    await queue.close()


app = FastAPI(title="Salon Scheduler API", version="0.1.0", lifespan=lifespan)


@app.exception_handler(SalonError)
async def salon_error_handler(request: Request, exc: SalonError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(manicurists_routes.router)
app.include_router(services_routes.router)
app.include_router(clients_routes.router)
app.include_router(appointments_routes.router)
app.include_router(dashboard_routes.router)
app.include_router(settings_routes.router)
