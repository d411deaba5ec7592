from __future__ import annotations
from fastapi import Header
from trackplan.config import get_settings
from trackplan.infrastructure import db as _db


def get_db():
    # looked up at call time so override_engine() in tests takes effect
    db = _db.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_author(x_author: str | None = Header(None, alias="X-Author")) -> str:
    """Identity recorded on history rows; falls back to DEFAULT_AUTHOR."""
    return x_author or get_settings().default_author
