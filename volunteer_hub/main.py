"""Volunteer Hub web application."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import OperationalError

from volunteer_hub.core.config import settings
from volunteer_hub.core.database import create_db_and_tables
from volunteer_hub.core.errors import VolunteerHubError
from volunteer_hub.core.scheduler import shutdown_scheduler, start_scheduler
from volunteer_hub.routes import auth, dashboard, events, registrations

# Configure logging
log_dir = Path(settings.log_dir).expanduser()
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    # Startup
    logger.info("Starting Volunteer Hub application")
    create_db_and_tables()
    start_scheduler()
    yield
    # Shutdown
    shutdown_scheduler()
    logger.info("Volunteer Hub application shut down")


app = FastAPI(
    title=settings.app_name,
    description="Volunteer registration for capacity-limited events",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for external access
origins = (
    ["*"]
    if settings.allowed_origins == "*"
    else [o.strip() for o in settings.allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(VolunteerHubError)
async def volunteer_hub_error_handler(request: Request, exc: VolunteerHubError):
    """Surface ledger and repository errors with their user-facing message."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(OperationalError)
async def storage_error_handler(request: Request, exc: OperationalError):
    """The store is unreachable or locked; the client may retry."""
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "The database is unavailable, please retry", "retryable": True},
    )


# Include routers
app.include_router(auth.router)
app.include_router(events.router)
app.include_router(registrations.router)
app.include_router(dashboard.router)


@app.get("/")
async def root(request: Request):
    """Redirect root to upcoming events."""
    rp = request.scope.get("root_path", "")
    return RedirectResponse(f"{rp}/events?when=upcoming")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}
