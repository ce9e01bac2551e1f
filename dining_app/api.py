"""FastAPI application creation and configuration."""
import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI

from .core.config import get_settings
from .database.session import init_db

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def start_scheduler(interval_hours: int) -> BackgroundScheduler:
    """Start the periodic menu scrape."""
    from .scraper.service import scheduled_scrape

    sched = BackgroundScheduler()
    sched.add_job(scheduled_scrape, "interval", hours=interval_hours, id="daily_menu_scrape")
    sched.start()
    logger.info("Scheduled menu scrape every %d hours", interval_hours)
    return sched


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan manager for FastAPI application."""
    settings = get_settings()
    # Create database tables and seed the dining halls
    init_db()
    app.state.scheduler = None
    if settings.SCRAPE_SCHEDULE_ENABLED:
        try:
            app.state.scheduler = start_scheduler(settings.SCRAPE_INTERVAL_HOURS)
        except Exception:
            # If scheduler setup fails, continue without scheduled scraping
            logger.exception("Failed to start scheduled scrape job")

    yield
    # Shutdown scheduler on app shutdown
    sched = getattr(app.state, "scheduler", None)
    if sched:
        sched.shutdown(wait=False)


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan
    )

    # Include routers
    from .routes import admin, health, meal_history, menu, nutrition, recommendations, scrape, users
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(menu.router, prefix="/api", tags=["menu"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(meal_history.router, prefix="/api", tags=["meal-history"])
    app.include_router(recommendations.router, prefix="/api", tags=["recommendations"])
    app.include_router(nutrition.router, prefix="/api", tags=["nutrition"])
    app.include_router(scrape.router, prefix="/api", tags=["scrape"])
    app.include_router(admin.router, prefix="/admin", tags=["admin"])

    return app
