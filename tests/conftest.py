"""Shared test fixtures for apireflect tests."""

from __future__ import annotations

import os

import pytest

from apireflect import Operation, Reflector, ReflectorConfig


@pytest.fixture
def reflector(tmp_path, monkeypatch) -> Reflector:
    """Provide a reflector with default configuration and an empty document."""
    for key in list(os.environ):
        if key.startswith("APIREFLECT_"):
            monkeypatch.delenv(key)
    return Reflector(config=ReflectorConfig(project_dir=tmp_path))


@pytest.fixture
def operation() -> Operation:
    """Provide a fresh operation record."""
    return Operation()
