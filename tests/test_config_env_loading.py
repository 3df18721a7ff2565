"""
Test environment file loading and settings validation.

Already-set environment variables take precedence over the .env file,
and the nearest .env up the directory tree is the one loaded.
"""

import os

import pytest
from pydantic import ValidationError

from evolua.core.config import (
    DatabaseSettings,
    DocumentSettings,
    Settings,
    _load_env_file_if_available,
    get_settings,
    reset_settings,
    settings_summary,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


def test_env_file_found_in_parent_directory(monkeypatch, tmp_path):
    # setenv records the original state, so the loaded value is removed on teardown.
    monkeypatch.setenv("MONGO_DB_NAME", "unset")
    monkeypatch.delenv("MONGO_DB_NAME")
    (tmp_path / ".env").write_text("MONGO_DB_NAME=from_env_file\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    _load_env_file_if_available()

    assert os.getenv("MONGO_DB_NAME") == "from_env_file"


def test_already_set_env_vars_take_precedence(monkeypatch, tmp_path):
    monkeypatch.setenv("MONGO_DB_NAME", "already_set")
    (tmp_path / ".env").write_text("MONGO_DB_NAME=from_env_file\n")
    monkeypatch.chdir(tmp_path)

    _load_env_file_if_available()

    assert os.getenv("MONGO_DB_NAME") == "already_set"


def test_no_env_files_no_crash(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    _load_env_file_if_available()


def test_get_settings_is_cached_until_reset(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MONGO_DB_NAME", "first")
    first = get_settings()
    assert first.database.db_name == "first"

    monkeypatch.setenv("MONGO_DB_NAME", "second")
    assert get_settings() is first

    reset_settings()
    assert get_settings().database.db_name == "second"


def test_empty_mongo_uri_selects_in_memory():
    assert not DatabaseSettings(uri="").enabled
    assert DatabaseSettings(uri="mongodb://localhost:27017").enabled
    with pytest.raises(ValidationError):
        DatabaseSettings(uri="postgres://localhost")


def test_document_settings_validation():
    settings = DocumentSettings(max_file_size_mb=10, virus_signatures="SIG-A, SIG-B")
    assert settings.max_file_size_bytes == 10 * 1024 * 1024
    assert settings.virus_signatures == ["SIG-A", "SIG-B"]

    with pytest.raises(ValidationError):
        DocumentSettings(max_file_size_mb=100)
    with pytest.raises(ValidationError):
        DocumentSettings(default_retention_years=0)


def test_app_settings_validation():
    with pytest.raises(ValidationError):
        Settings(app_env="qa")
    with pytest.raises(ValidationError):
        Settings(port=70000)
    assert Settings(app_env="Testing").is_testing


def test_summary_has_no_secrets():
    settings = Settings(database=DatabaseSettings(uri="mongodb://user:secret@db:27017"))
    summary = settings_summary(settings)
    assert summary["mongo"] is True
    assert "secret" not in str(summary)
