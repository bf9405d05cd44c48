import logging

import pytest

from project_access.config import LOG_FORMAT, Settings, configure_logging, validate_environment


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("ACCESS_DATA_DIR", "ACCESS_DB_PATH", "ACCESS_RULES_PATH", "ACCESS_LOG_LEVEL", "ACCESS_REQUIRED_ENV"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.db_path.endswith("access.db")
    assert settings.rules_path is None
    assert settings.log_level == "INFO"
    assert settings.required_env == []


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("ACCESS_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("ACCESS_RULES_PATH", str(tmp_path / "rules.yaml"))
    monkeypatch.setenv("ACCESS_LOG_LEVEL", "debug")
    monkeypatch.setenv("ACCESS_REQUIRED_ENV", "IDENTITY_URL, BUS_URL")
    monkeypatch.delenv("ACCESS_DB_PATH", raising=False)

    settings = Settings()

    assert settings.db_path == str(tmp_path / "access.db")
    assert settings.rules_path == tmp_path / "rules.yaml"
    assert settings.log_level == "DEBUG"
    assert settings.required_env == ["IDENTITY_URL", "BUS_URL"]


def test_missing_required_env(monkeypatch, tmp_path):
    monkeypatch.setenv("ACCESS_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("ACCESS_REQUIRED_ENV", "IDENTITY_URL")
    monkeypatch.delenv("IDENTITY_URL", raising=False)

    with pytest.raises(RuntimeError, match="IDENTITY_URL"):
        validate_environment(Settings())


def test_validate_creates_data_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("ACCESS_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("ACCESS_REQUIRED_ENV", raising=False)

    validate_environment(Settings())

    assert (tmp_path / "data").is_dir()


def test_configure_logging_format():
    assert "%(levelname)s" in LOG_FORMAT
    configure_logging("WARNING")
    assert logging.getLogger().handlers
