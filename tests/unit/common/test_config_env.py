"""Tests for environment helpers and dotenv loading."""

import os

import pytest

from common.config.env import (
    get_env_bool,
    get_env_choice,
    get_env_float,
    get_env_int,
    get_env_str,
    load_env_files,
)


@pytest.fixture
def _restore_environ():
    snapshot = dict(os.environ)
    yield
    os.environ.clear()
    os.environ.update(snapshot)


def test_load_env_files_local_overrides_base(tmp_path, monkeypatch, _restore_environ):
    monkeypatch.delenv("ERP_TEST_A", raising=False)
    monkeypatch.delenv("ERP_TEST_B", raising=False)
    (tmp_path / ".env").write_text("ERP_TEST_A=base\nERP_TEST_B=base\n", encoding="utf-8")
    (tmp_path / ".env.local").write_text("ERP_TEST_B=local\n", encoding="utf-8")

    loaded = load_env_files(tmp_path)

    assert loaded == [tmp_path / ".env", tmp_path / ".env.local"]
    assert os.environ["ERP_TEST_A"] == "base"
    assert os.environ["ERP_TEST_B"] == "local"


def test_load_env_files_never_overrides_process_env(tmp_path, monkeypatch, _restore_environ):
    monkeypatch.setenv("ERP_TEST_A", "process")
    (tmp_path / ".env").write_text("ERP_TEST_A=file\n", encoding="utf-8")
    (tmp_path / ".env.local").write_text("ERP_TEST_A=local\n", encoding="utf-8")

    load_env_files(tmp_path)

    assert os.environ["ERP_TEST_A"] == "process"


def test_load_env_files_missing_files(tmp_path):
    assert load_env_files(tmp_path) == []


def test_get_env_int_and_float(monkeypatch):
    monkeypatch.setenv("ERP_TEST_INT", "7")
    monkeypatch.setenv("ERP_TEST_FLOAT", "2.5")
    monkeypatch.setenv("ERP_TEST_BLANK", " ")

    assert get_env_int("ERP_TEST_INT") == 7
    assert get_env_float("ERP_TEST_FLOAT") == 2.5
    assert get_env_int("ERP_TEST_BLANK", 3) == 3
    assert get_env_float("ERP_TEST_UNSET_FLOAT") is None


def test_get_env_int_invalid(monkeypatch):
    monkeypatch.setenv("ERP_TEST_INT", "seven")
    with pytest.raises(ValueError, match="must be an integer"):
        get_env_int("ERP_TEST_INT")


def test_required_values(monkeypatch):
    monkeypatch.delenv("ERP_TEST_REQUIRED", raising=False)
    with pytest.raises(KeyError):
        get_env_str("ERP_TEST_REQUIRED", required=True)


@pytest.mark.parametrize(
    "raw, expected", [("true", True), ("ON", True), ("0", False), ("", False)]
)
def test_get_env_bool(monkeypatch, raw, expected):
    monkeypatch.setenv("ERP_TEST_BOOL", raw)
    assert get_env_bool("ERP_TEST_BOOL") is expected


def test_get_env_choice(monkeypatch):
    monkeypatch.setenv("ERP_TEST_CHOICE", " Local ")
    assert get_env_choice("ERP_TEST_CHOICE", "legacy", {"legacy", "local"}) == "local"

    monkeypatch.setenv("ERP_TEST_CHOICE", "utc")
    with pytest.raises(ValueError, match="Allowed values: legacy, local"):
        get_env_choice("ERP_TEST_CHOICE", "legacy", {"legacy", "local"})
