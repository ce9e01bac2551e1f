"""Database session and engine configuration."""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from dining_app.core.config import get_settings
from dining_app.database.models import Base, DiningHall

logger = logging.getLogger(__name__)

settings = get_settings()

# Create database engine
# If using SQLite, allow cross-thread usage (the scheduler scrapes from a worker thread).
connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_sample_data(db):
    """Seed the configured dining halls if they are missing."""
    from dining_app.scraper.config import DINING_HALLS

    existing = {slug for (slug,) in db.query(DiningHall.slug).all()}
    missing = [DiningHall(name=hall.name, slug=hall.slug)
               for hall in DINING_HALLS.values() if hall.slug not in existing]
    if missing:
        db.add_all(missing)
        db.commit()
        logger.info("Seeded %d dining halls", len(missing))

def init_db(bind=None):
    """Create tables and seed dining halls."""
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    db = SessionLocal(bind=bind)
    try:
        init_sample_data(db)
    finally:
        db.close()

def get_db():
    """Dependency for database sessions."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
