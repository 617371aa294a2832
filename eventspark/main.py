"""Event Spark Web Application."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles

from eventspark.core.config import settings
from eventspark.core.database import create_db_and_tables
from eventspark.core.middleware import SecurityMiddleware, VisitorMiddleware
from eventspark.core.scheduler import shutdown_scheduler, start_scheduler
from eventspark.routes import admin, api, discover, events, saved

# Configure logging
settings.log_dir.mkdir(parents=True, exist_ok=True)
log_file = settings.log_dir / "latest.log"

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
    logger.info(f"Starting Event Spark application (event source: {settings.event_source})")
    create_db_and_tables()
    start_scheduler()
    yield
    # Shutdown
    shutdown_scheduler()
    logger.info("Event Spark application shut down")


app = FastAPI(
    title=settings.app_name,
    description="Swipe through local events, save the ones you like and share them",
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
# Added last so it runs first: visitor ids exist before the guards and routes see the request
app.add_middleware(SecurityMiddleware)
app.add_middleware(VisitorMiddleware)

# Mount static files
app.mount(
    "/static",
    StaticFiles(directory=str(Path(__file__).parent / "static")),
    name="static",
)

# Include routers
app.include_router(discover.router)
app.include_router(saved.router)
app.include_router(events.router)
app.include_router(admin.router)
app.include_router(api.router)


@app.get("/")
async def root(request: Request):
    """Redirect root to the swipe deck."""
    rp = request.scope.get("root_path", "")
    return RedirectResponse(f"{rp}/discover")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}
