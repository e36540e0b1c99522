"""Shared pytest fixtures for the puffs-gen-c test suite."""

from __future__ import annotations

import pytest

from tests.helpers import AstBuilder, find_c_compiler


@pytest.fixture
def needs_cc():
    """Skip test if no C compiler is available."""
    if find_c_compiler() is None:
        pytest.skip("no C compiler available")


@pytest.fixture
def b():
    """A fresh AST builder with its own identifier table."""
    return AstBuilder()
