# tests/conftest.py

"""Shared pytest fixtures for all pullstats tests."""

import logging
from collections.abc import Generator

import pytest


@pytest.fixture(autouse=True)
def reset_project_logger() -> Generator[None, None, None]:
    """Close and detach pullstats log handlers added during a test."""
    yield
    root_logger = logging.getLogger("pullstats")
    for handler in list(root_logger.handlers):
        handler.close()
        root_logger.removeHandler(handler)
