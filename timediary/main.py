"""Time Diary web application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from timediary.core.cache import TTLCache
from timediary.core.config import settings
from timediary.core.database import create_db_and_tables
from timediary.core.scheduler import shutdown_scheduler, start_scheduler
from timediary.routes import (
    calendars,
    categories,
    daily,
    events,
    monthly,
    routines,
    todo_categories,
    todos,
)

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
    logger.info("Starting Time Diary application")
    create_db_and_tables()
    start_scheduler(app.state.cache)
    yield
    # Shutdown
    shutdown_scheduler()
    logger.info("Time Diary application shut down")


app = FastAPI(
    title=settings.app_name,
    description="Daily time diary: plan and actual timelines, routines, todos and reflections",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.cache = TTLCache(settings.day_cache_ttl_seconds)

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

# Include routers
app.include_router(events.router)
app.include_router(categories.router)
app.include_router(routines.router)
app.include_router(todos.router)
app.include_router(todo_categories.router)
app.include_router(daily.router)
app.include_router(calendars.router)
app.include_router(monthly.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}
