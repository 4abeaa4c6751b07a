"""Tests for package version exposure."""

import pytest

import rummy_ledger


@pytest.mark.unit
def test_version_is_a_non_empty_string():
    assert isinstance(rummy_ledger.__version__, str)
    assert rummy_ledger.__version__
