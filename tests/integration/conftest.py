import os

import pytest


def pytest_collection_modifyitems(items):
    """Mark collected tests in this directory as integration tests."""
    for item in items:
        if "tests/integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def _require_database_url():
    """Integration tests talk to the PostgreSQL named by DATABASE_URL."""
    if not os.getenv("DATABASE_URL"):
        pytest.skip("DATABASE_URL not set")
