"""Shared fixtures for modelvalidate tests."""

import pytest

from modelvalidate.validation import default_registry, reset_default_validator


@pytest.fixture(autouse=True)
def isolated_validation_state():
    """Give every test a fresh default validator and no leftover listeners."""
    yield
    default_registry.clear()
    reset_default_validator()
