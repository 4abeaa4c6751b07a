"""Tests for rummy_ledger.config loading and overrides."""

import configparser

import pytest

import rummy_ledger.config as config_module
from rummy_ledger.config import (
    LedgerConfig,
    _load_from_ini,
    load_config,
    print_config_summary,
    use_test_database,
)


@pytest.fixture
def no_config_files(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, "CONFIG_FILE", tmp_path / "missing.ini")
    monkeypatch.setattr(config_module, "CONFIG_EXAMPLE", tmp_path / "missing.example.ini")


@pytest.mark.unit
def test_defaults_without_config_files(no_config_files):
    cfg = load_config()

    assert cfg.database.path == "data/rummy.db"
    assert cfg.database.busy_timeout_ms == 5000
    assert cfg.logging.level == "INFO"
    assert cfg.ledger.max_conflict_retries == 3
    assert cfg.ledger.retry_backoff_ms == 50
    assert cfg.ledger.default_page_size == 100
    assert cfg.ledger.max_page_size == 1000


@pytest.mark.unit
def test_env_overrides(no_config_files, monkeypatch):
    monkeypatch.setenv("RUMMY_DB_PATH", "/tmp/elsewhere.db")
    monkeypatch.setenv("RUMMY_DB_BUSY_TIMEOUT_MS", "250")
    monkeypatch.setenv("RUMMY_LOG_LEVEL", "debug")
    monkeypatch.setenv("RUMMY_LOG_FORMAT", "simple")
    monkeypatch.setenv("RUMMY_LEDGER_MAX_RETRIES", "7")
    monkeypatch.setenv("RUMMY_LEDGER_RETRY_BACKOFF_MS", "5")
    monkeypatch.setenv("RUMMY_LEDGER_DEFAULT_PAGE_SIZE", "30")
    monkeypatch.setenv("RUMMY_LEDGER_MAX_PAGE_SIZE", "300")

    cfg = load_config()

    assert cfg.database.path == "/tmp/elsewhere.db"
    assert str(cfg.database.absolute_path) == "/tmp/elsewhere.db"
    assert cfg.database.busy_timeout_ms == 250
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.format == "simple"
    assert cfg.ledger.max_conflict_retries == 7
    assert cfg.ledger.retry_backoff_ms == 5
    assert cfg.ledger.default_page_size == 30
    assert cfg.ledger.max_page_size == 300


@pytest.mark.unit
def test_ini_sections():
    parser = configparser.ConfigParser()
    parser.read_dict(
        {
            "database": {"path": "var/ledger.db", "busy_timeout_ms": "1200"},
            "logging": {"level": "warning", "format": "bogus"},
            "ledger": {"default_page_size": "20", "max_page_size": "200"},
        }
    )

    cfg = LedgerConfig()
    _load_from_ini(parser, cfg)

    assert cfg.database.path == "var/ledger.db"
    assert cfg.database.absolute_path == config_module.PROJECT_ROOT / "var/ledger.db"
    assert cfg.database.busy_timeout_ms == 1200
    assert cfg.logging.level == "WARNING"
    assert cfg.logging.format == "detailed"
    assert cfg.ledger.default_page_size == 20
    assert cfg.ledger.max_page_size == 200


@pytest.mark.unit
def test_ini_file_is_read(tmp_path, monkeypatch):
    ini = tmp_path / "ledger.ini"
    ini.write_text("[ledger]\nmax_conflict_retries = 9\n")
    monkeypatch.setattr(config_module, "CONFIG_FILE", ini)

    assert load_config().ledger.max_conflict_retries == 9


@pytest.mark.unit
def test_reload_config_replaces_singleton(no_config_files, monkeypatch):
    monkeypatch.setattr(config_module, "config", config_module.config)
    monkeypatch.setenv("RUMMY_LEDGER_MAX_RETRIES", "11")

    reloaded = config_module.reload_config()

    assert config_module.config is reloaded
    assert reloaded.ledger.max_conflict_retries == 11


@pytest.mark.unit
def test_use_test_database_restores_path(tmp_path):
    original = config_module.config.database.path
    with use_test_database(tmp_path / "x.db") as path:
        assert config_module.config.database.path == str(path)
    assert config_module.config.database.path == original


@pytest.mark.unit
def test_print_config_summary_lists_page_sizes(capsys, monkeypatch):
    monkeypatch.setattr(config_module.config.ledger, "default_page_size", 42)
    monkeypatch.setattr(config_module.config.ledger, "max_page_size", 420)

    print_config_summary()

    assert "Page size:     42 (max 420)" in capsys.readouterr().out
