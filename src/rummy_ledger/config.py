"""
Ledger configuration management.

This module handles loading and accessing configuration from multiple sources
with a clear priority order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/ledger.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The LedgerConfig
dataclass provides typed access to all settings.

Usage:
    from rummy_ledger.config import config

    print(config.database.absolute_path)
    print(config.ledger.max_conflict_retries)

Environment Variable Mapping:
    RUMMY_DB_PATH                  -> database.path
    RUMMY_DB_BUSY_TIMEOUT_MS       -> database.busy_timeout_ms
    RUMMY_LOG_LEVEL                -> logging.level
    RUMMY_LOG_FORMAT               -> logging.format
    RUMMY_LEDGER_MAX_RETRIES       -> ledger.max_conflict_retries
    RUMMY_LEDGER_RETRY_BACKOFF_MS  -> ledger.retry_backoff_ms
    RUMMY_LEDGER_DEFAULT_PAGE_SIZE -> ledger.default_page_size
    RUMMY_LEDGER_MAX_PAGE_SIZE     -> ledger.max_page_size
"""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "ledger.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "ledger.example.ini"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class DatabaseSettings:
    """Database configuration."""

    path: str = "data/rummy.db"
    busy_timeout_ms: int = 5000

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to database file."""
        p = Path(self.path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "detailed"


@dataclass
class LedgerSettings:
    """Balance authority and ledger read settings."""

    max_conflict_retries: int = 3
    retry_backoff_ms: int = 50
    default_page_size: int = 100
    max_page_size: int = 1000


@dataclass
class LedgerConfig:
    """
    Complete configuration.

    Aggregates all settings sections. Access via the module-level `config`
    singleton.
    """

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    ledger: LedgerSettings = field(default_factory=LedgerSettings)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _load_from_ini(parser: configparser.ConfigParser, cfg: LedgerConfig) -> None:
    """Load configuration from parsed INI file into LedgerConfig."""
    # Database section
    if parser.has_section("database"):
        if parser.has_option("database", "path"):
            cfg.database.path = parser.get("database", "path")
        if parser.has_option("database", "busy_timeout_ms"):
            cfg.database.busy_timeout_ms = parser.getint("database", "busy_timeout_ms")

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]

    # Ledger section
    if parser.has_section("ledger"):
        if parser.has_option("ledger", "max_conflict_retries"):
            cfg.ledger.max_conflict_retries = parser.getint("ledger", "max_conflict_retries")
        if parser.has_option("ledger", "retry_backoff_ms"):
            cfg.ledger.retry_backoff_ms = parser.getint("ledger", "retry_backoff_ms")
        if parser.has_option("ledger", "default_page_size"):
            cfg.ledger.default_page_size = parser.getint("ledger", "default_page_size")
        if parser.has_option("ledger", "max_page_size"):
            cfg.ledger.max_page_size = parser.getint("ledger", "max_page_size")


def _apply_env_overrides(cfg: LedgerConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # Database settings
    if env_db := os.getenv("RUMMY_DB_PATH"):
        cfg.database.path = env_db
    if env_timeout := os.getenv("RUMMY_DB_BUSY_TIMEOUT_MS"):
        cfg.database.busy_timeout_ms = int(env_timeout)

    # Logging settings
    if env_log := os.getenv("RUMMY_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()
    if env_format := os.getenv("RUMMY_LOG_FORMAT"):
        if env_format.lower() in ("simple", "detailed"):
            cfg.logging.format = env_format.lower()  # type: ignore[assignment]

    # Ledger settings
    if env_retries := os.getenv("RUMMY_LEDGER_MAX_RETRIES"):
        cfg.ledger.max_conflict_retries = int(env_retries)
    if env_backoff := os.getenv("RUMMY_LEDGER_RETRY_BACKOFF_MS"):
        cfg.ledger.retry_backoff_ms = int(env_backoff)
    if env_page := os.getenv("RUMMY_LEDGER_DEFAULT_PAGE_SIZE"):
        cfg.ledger.default_page_size = int(env_page)
    if env_max_page := os.getenv("RUMMY_LEDGER_MAX_PAGE_SIZE"):
        cfg.ledger.max_page_size = int(env_max_page)


def load_config() -> LedgerConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/ledger.ini
        3. config/ledger.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        LedgerConfig: Fully populated configuration object.
    """
    cfg = LedgerConfig()

    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        config_file = CONFIG_EXAMPLE

    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)

    return cfg


def reload_config() -> "LedgerConfig":
    """
    Reload configuration from disk and environment.

    This updates the module-level `config` singleton. Modules that read
    ``config`` lazily (all repository modules do) observe the new values on
    their next call.

    Returns:
        LedgerConfig: The newly loaded configuration.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_config_status() -> dict:
    """Get configuration source information for diagnostics."""
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "database_path": str(config.database.absolute_path),
        "log_level": config.logging.level,
    }


def print_config_summary() -> None:
    """Print a summary of current configuration to stdout."""
    status = get_config_status()
    print("\n" + "=" * 60)
    print("LEDGER CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {status['config_file_path']}")
    print(f"File exists: {status['config_file_exists']}")
    if status["using_example"]:
        print("WARNING: Using example config (copy to ledger.ini for production)")
    print("-" * 60)
    print(f"Database:      {config.database.absolute_path}")
    print(f"Busy timeout:  {config.database.busy_timeout_ms} ms")
    print(f"Log level:     {config.logging.level}")
    print(f"Max retries:   {config.ledger.max_conflict_retries}")
    print(f"Retry backoff: {config.ledger.retry_backoff_ms} ms")
    print(f"Page size:     {config.ledger.default_page_size} (max {config.ledger.max_page_size})")
    print("=" * 60 + "\n")


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_test_database:
    """
    Context manager for using a temporary test database.

    Usage:
        from rummy_ledger.config import use_test_database

        def test_something(tmp_path):
            with use_test_database(tmp_path / "test.db"):
                schema.init_database()

    Args:
        db_path: Path to the test database file
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.original_path: str | None = None

    def __enter__(self) -> Path:
        """Set up test database path."""
        self.original_path = config.database.path
        config.database.path = str(self.db_path)
        return self.db_path

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore original database path."""
        if self.original_path is not None:
            config.database.path = self.original_path
        return None
