"""Shared fixtures: an in-memory SQLite catalog per test, plus a seeded product and page."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from trackplan.config import reset_settings
from trackplan.infrastructure import db as _db
from trackplan.infrastructure.db import Base, configure_sqlite, override_engine
from trackplan.catalog import library
from trackplan.catalog.codec import decode_properties
from trackplan.catalog.events import create_event
import trackplan.models.tables  # noqa: F401


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def engine():
    """In-memory database shared by every session of one test."""
    e = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    configure_sqlite(e)
    override_engine(e)
    Base.metadata.create_all(e)
    yield e
    e.dispose()


@pytest.fixture
def session(engine):
    s = _db.SessionLocal()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def product(session):
    return library.create_product(session, "Shop", "Storefront")


@pytest.fixture
def page(session, product):
    return library.create_page(session, product.id, "Home", "/")


@pytest.fixture
def make_event(session, page):
    """Create an event on the seeded page with the given payload."""
    def _make(event_name="Page Viewed", /, **properties):
        return create_event(session, page.id, event_name, properties=properties)
    return _make


def payload_of(event):
    return decode_properties(event.properties)
