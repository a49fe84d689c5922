"""suraksha FastAPI application."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from suraksha.api import health, location, sos, trusted_contacts
from suraksha.core.config import settings
from suraksha.core.policies import LOCATION_RETENTION_DAYS
from suraksha.db.session import SessionLocal
from suraksha.services.location_service import purge_locations_older_than

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


def _purge_old_locations() -> int:
    db = SessionLocal()
    try:
        return purge_locations_older_than(db, LOCATION_RETENTION_DAYS)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup housekeeping: drop location samples past retention."""
    if settings.purge_locations_on_startup:
        await asyncio.to_thread(_purge_old_locations)
    yield


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(location.router)
app.include_router(trusted_contacts.router)
app.include_router(sos.router)
