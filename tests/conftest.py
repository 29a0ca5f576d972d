"""Pytest configuration and fixtures for validation package tests."""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from dataknobs_validation.config import set_default_config


@pytest.fixture
def remote_server():
    """A stand-in for a remote collaborator whose calls are counted."""
    server = Mock()
    server.send_errors.return_value = None
    return server


@pytest.fixture
def executor():
    """A thread pool with enough workers to run every supplier at once."""
    pool = ThreadPoolExecutor(max_workers=4)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture(autouse=True)
def reset_default_config(monkeypatch):
    """Keep the process-wide parallel config independent between tests."""
    monkeypatch.delenv("DATAKNOBS_VALIDATION_MAX_WORKERS", raising=False)
    monkeypatch.delenv("DATAKNOBS_VALIDATION_TIMEOUT", raising=False)
    set_default_config(None)
    yield
    set_default_config(None)
