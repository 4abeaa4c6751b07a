"""Rummy Ledger - coin ledger and game audit core for a multiplayer Rummy service.

The package owns the only write path to a user's coin balance, the append-only
economy log that backs it, per-round results, and the game-action audit trail.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("rummy_ledger")
except PackageNotFoundError:
    __version__ = "0.1.0"
