"""Pytest configuration and fixtures for the test suite."""

import pytest

from tests.test_utils import ManualClock


@pytest.fixture
def clock() -> ManualClock:
    """Provide a manually driven clock."""
    return ManualClock()
