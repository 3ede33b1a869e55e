"""
Blind Wine Tasting - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as PoolTimeoutError

from app.core.config import settings
from app.core.db import engine, Base
from app.core.errors import ConflictError, InternalError, TastingError, TransientError
from app.api import routes_admin, routes_player, routes_public, ws
from app.utils.responses import tasting_error_response

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Blind Wine Tasting",
    description="Backend for live blind wine-tasting events",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(TastingError)
async def handle_tasting_error(request: Request, exc: TastingError):
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.url.path} (event {exc.event_id}): {exc.message}")
    return tasting_error_response(exc)

@app.exception_handler(OperationalError)
@app.exception_handler(PoolTimeoutError)
async def handle_store_unavailable(request: Request, exc: Exception):
    logger.warning(f"Store unavailable on {request.url.path}: {exc}")
    return tasting_error_response(TransientError("Store temporarily unavailable"))

@app.exception_handler(IntegrityError)
async def handle_store_conflict(request: Request, exc: IntegrityError):
    return tasting_error_response(ConflictError("Conflicting write", details=str(exc.orig)))

@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unexpected error on {request.url.path}")
    return tasting_error_response(InternalError("Internal server error"))

# Include routers
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_player.router, prefix="/players", tags=["players"])
app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])
app.include_router(ws.router, prefix="/ws", tags=["websocket"])

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
