"""Tests for the storage helpers."""

import pytest

from trackplan.catalog import library
from trackplan.errors import CatalogValidationError
from trackplan.infrastructure.db import healthcheck, session_scope
from trackplan.models.tables import Product


def test_session_scope_commits(engine):
    with session_scope() as s:
        library.create_product(s, "Shop")
    with session_scope() as s:
        assert s.query(Product).count() == 1


def test_session_scope_rolls_back_whole_operation(engine):
    with pytest.raises(CatalogValidationError):
        with session_scope() as s:
            product = library.create_product(s, "Shop")
            library.create_page(s, product.id, "")
    with session_scope() as s:
        assert s.query(Product).count() == 0


def test_healthcheck(engine):
    assert healthcheck() is True
