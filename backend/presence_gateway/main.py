# presence_gateway/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from presence_gateway.config import settings
from presence_gateway.core.db import init_db, close_db
from presence_gateway.core.gateway import PresenceGateway
from presence_gateway.services.account_store import build_account_store

from presence_gateway.api.v1.routers import notifications, presence
from presence_gateway.api.v1.routers.ws_presence import router as ws_presence_router

logger = logging.getLogger("uvicorn.error")


def build_gateway() -> PresenceGateway:
    """Create the gateway from settings (account store, timeout, sweep interval)."""
    store = build_account_store(settings.account_store)
    return PresenceGateway(
        store,
        timeout=settings.heartbeat_timeout,
        interval=settings.sweep_interval,
        sync_timeout=settings.status_sync_timeout,
    )


app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup():
    # The database store needs Tortoise before the first identify arrives
    if settings.account_store == "database":
        await init_db()
    gateway = build_gateway()
    app.state.gateway = gateway
    gateway.monitor.start()
    logger.info("[presence] gateway ready (account store: %s)", gateway.synchronizer.store.name)


@app.on_event("shutdown")
async def on_shutdown():
    gateway = getattr(app.state, "gateway", None)
    if gateway is not None:
        await gateway.monitor.stop()
    if settings.account_store == "database":
        await close_db()


# REST
app.include_router(notifications.router, prefix="/api/v1")
app.include_router(presence.router, prefix="/api/v1")

# WebSocket
app.include_router(ws_presence_router)


@app.get("/healthz")
def healthz():
    gateway = getattr(app.state, "gateway", None)
    return {"ok": True, "sessions": len(gateway.registry) if gateway is not None else 0}
