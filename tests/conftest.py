"""
Shared fixtures: in-memory database, API client and menu builders.
"""
import os

# Must be set before dining_app reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""
os.environ["CRON_SECRET"] = ""
os.environ["ENVIRONMENT"] = "development"
os.environ["SCRAPE_SCHEDULE_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dining_app.api import create_app
from dining_app.database import queries
from dining_app.database.models import Base
from dining_app.database.session import get_db, init_sample_data
from dining_app.llm.client import reset_client

MENU_DATE = "2024-09-03"


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    init_sample_data(session)
    yield session
    session.close()


@pytest.fixture
def client(db):
    app = create_app()

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    # not entered as a context manager, so the lifespan (init_db, scheduler) does not run
    return TestClient(app)


@pytest.fixture(autouse=True)
def fresh_openai_client():
    reset_client()
    yield
    reset_client()


@pytest.fixture
def make_menu(db):
    """Store a meal period: make_menu("lunch", [("Grilled Chicken", {"calories": 300, ...}), ...])."""
    def _make(meal_period, dishes, hall_slug="ikenberry", menu_date=MENU_DATE):
        hall = queries.get_dining_hall_by_slug(db, hall_slug)
        menu = queries.get_or_create_daily_menu(db, hall.id, menu_date, meal_period)
        ids = {}
        for name, nutrition in dishes:
            item, _ = queries.get_or_create_menu_item(db, name)
            queries.add_menu_entry(db, menu.id, item.id)
            if nutrition is not None:
                queries.upsert_nutrition_info(db, item.id, nutrition)
            ids[name] = item.id
        db.commit()
        return ids
    return _make
