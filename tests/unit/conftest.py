"""Unit test environment helpers."""

import pytest

from erp_dal.translation import clear_translation_cache


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Unit tests never reach a real database."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    for name in (
        "ERP_DB_POOL_MIN_SIZE",
        "ERP_DB_POOL_MAX_SIZE",
        "ERP_DB_ACQUIRE_TIMEOUT_SECS",
        "ERP_DB_IDLE_TIMEOUT_SECS",
        "ERP_DB_COMMAND_TIMEOUT_SECS",
        "ERP_DB_SSL_MODE",
        "ERP_DB_STATEMENT_CACHE_SIZE",
        "ERP_DB_APPLICATION_NAME",
        "ERP_DB_TEXT_PARAMS",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_translation_cache():
    """Drop cached translations after each test."""
    yield
    clear_translation_cache()
