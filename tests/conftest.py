"""
Shared pytest fixtures for the ledger test suite.

Fixtures available to all test files:
- Temporary, isolated SQLite databases
- Sample users and games
"""

import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from rummy_ledger.config import use_test_database
from rummy_ledger.db import games_repo, schema, users_repo
from tests.constants import TEST_EMAIL, TEST_GAME_METADATA, TEST_USERNAME

# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """
    Create a temporary database file for testing.

    Each test function gets a unique database through the config system's
    use_test_database context manager.

    Yields:
        Path to temporary database file
    """
    temp_dir = tempfile.mkdtemp()
    temp_db = Path(temp_dir) / "test_rummy.db"

    with use_test_database(temp_db):
        yield temp_db

    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(scope="function")
def test_db(temp_db_path: Path) -> Generator[None, None, None]:
    """Initialize a test database with schema but no data."""
    schema.init_database()

    yield


# ============================================================================
# DATA FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def user_id(test_db) -> int:
    """Create one user with a zero balance and return its id."""
    created = users_repo.create_user(TEST_USERNAME, TEST_EMAIL)
    assert created is not None
    return created


@pytest.fixture(scope="function")
def other_user_id(test_db) -> int:
    """Create a second user for isolation checks."""
    created = users_repo.create_user("bob", "bob@example.com")
    assert created is not None
    return created


@pytest.fixture(scope="function")
def game_id(test_db) -> int:
    """Create one game and return its id."""
    return games_repo.create_game(TEST_GAME_METADATA)
