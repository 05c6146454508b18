"""
ScrapX API application
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .core.logging import get_logger, setup_logging
from .database import engine
from .models.base import Base
from .routes import (
    auth, detection, diagnostics, files, listing_requests, listings, maps,
    materials, negotiations, pickups, rewards
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"{settings.app_name} starting up")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables checked and created if necessary")
    yield
    logger.info(f"{settings.app_name} shutting down")


app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description="""
        ScrapX connects scrap sellers with dealers and NGOs.

        * **Listings**: single-material, mixed-material and donation listings
        * **Negotiations**: offers, counter offers and acceptance
        * **Pickups**: map-based pickup coordination
        * **Detection**: material detection from photos
        * **Rewards**: RECYCLE tokens for sold listings

        Most endpoints require JWT authentication via the `Authorization: Bearer <token>` header.
        """,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(listings.router, prefix="/api/listings", tags=["Listings"])
app.include_router(negotiations.router, prefix="/api/negotiations", tags=["Negotiations"])
app.include_router(listing_requests.router, prefix="/api/requests", tags=["Listing Requests"])
app.include_router(pickups.router, prefix="/api/pickups", tags=["Pickups"])
app.include_router(maps.router, prefix="/api/map", tags=["Map"])
app.include_router(detection.router, prefix="/api/detection", tags=["Material Detection"])
app.include_router(materials.router, prefix="/api", tags=["Reference Data"])
app.include_router(files.router, prefix="/api/files")
app.include_router(rewards.router, prefix="/api/rewards", tags=["Rewards"])
app.include_router(diagnostics.router, prefix="/api/admin/diagnostics", tags=["Diagnostics"])


@app.get("/health")
def health_check():
    return {"status": "ok", "service": settings.app_name}
