# eventflow/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eventflow.config import settings
from eventflow.core.audit import audit_writer
from eventflow.core.bootstrap import ensure_demo_data
from eventflow.core.db import close_db, init_db
from eventflow.core.errors import register_exception_handlers
from eventflow.core.security import ensure_signing_key

from eventflow.api.middleware import ErrorAuditMiddleware
from eventflow.api.routers import auth, events, notifications, profile, system

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# Error responses of authenticated callers become ERROR audit events
app.add_middleware(ErrorAuditMiddleware)

# CORS for the dashboard frontend (added last so it wraps everything)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.on_event("startup")
async def on_startup():
    # Refuse to run without a signing key
    ensure_signing_key()
    await init_db()
    if settings.audit_async:
        await audit_writer.start()
    if settings.seed_demo_data:
        await ensure_demo_data()
    logger.info("[startup] %s ready (env=%s)", settings.APP_NAME, settings.env)


@app.on_event("shutdown")
async def on_shutdown():
    # Flush pending audit events before the connections go away
    await audit_writer.close()
    await close_db()


# REST
app.include_router(auth.router, prefix="/api")
app.include_router(events.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
app.include_router(profile.router, prefix="/api")
app.include_router(system.router)
