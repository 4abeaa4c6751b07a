"""Keyset pagination helpers shared by the ordered read accessors.

Every listing orders by a strictly increasing integer key and accepts the last
key the caller has seen, so a reader can stop and resume without skipping or
repeating rows even while new rows are appended.
"""

from __future__ import annotations

from rummy_ledger.db.errors import InvalidArgumentError


def resolve_page_size(limit: int | None) -> int:
    """Clamp ``limit`` to the configured page-size bounds.

    ``None`` selects ``ledger.default_page_size``.
    """
    from rummy_ledger.config import config

    if limit is None:
        return config.ledger.default_page_size
    if limit < 1:
        raise InvalidArgumentError(f"limit must be >= 1, got {limit}")
    return min(limit, config.ledger.max_page_size)


def keyset_clause(column: str, after: int | None) -> tuple[str, tuple[int, ...]]:
    """Return the ``AND <column> > ?`` fragment and its parameters."""
    if after is None:
        return "", ()
    return f" AND {column} > ?", (after,)
