"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
For shared doubles and sample data, see tests/mocks/matcher_mocks.py
"""

import pytest

from database.database import configure_database
from database.models import Base


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as requiring database (deselect with '-m \"not db\"')"
    )


@pytest.fixture
def sqlite_db():
    """
    Fresh in-memory database bound to SessionLocal for one test.

    matching_uow() and history_uow() use it transparently.
    """
    engine = configure_database("sqlite:///:memory:", create_tables=True)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()
