"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from courtbook.api import bookings, courts, tournaments, users
from courtbook.core.config import settings
from courtbook.core.database import init_db
from courtbook.core.exceptions import DomainException
from courtbook.services.scheduler import expiry_sweeper

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Courtbook booking service")
    logger.info(f"Debug mode: {settings.DEBUG}")

    if settings.AUTO_CREATE_TABLES:
        await init_db()

    if settings.SWEEPER_ENABLED:
        await expiry_sweeper.start()

    yield

    # Shutdown
    logger.info("Shutting down Courtbook booking service")
    await expiry_sweeper.stop()


# Create FastAPI app
app = FastAPI(
    title="Courtbook",
    description="Padel court bookings, payment verification and tournaments",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException):
    """Render domain errors as ``{"detail": {"message", "code", "details"}}``."""
    http_exc = exc.to_http_exception()
    if http_exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


# Include routers
app.include_router(users.router)
app.include_router(courts.router)
app.include_router(bookings.router)
app.include_router(tournaments.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "sweeper_running": expiry_sweeper.running,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("courtbook.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
