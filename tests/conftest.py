"""Pytest fixtures for typed-hooks tests."""

import os

import pytest
from loguru import logger


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(messages.append, level="DEBUG", format="{level}|{message}")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove TYPED_HOOKS_* variables so settings fall back to defaults."""
    for key in list(os.environ):
        if key.startswith("TYPED_HOOKS_"):
            monkeypatch.delenv(key)
    return monkeypatch
