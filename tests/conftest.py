"""Shared fixtures: explicit settings and a test client per test."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from myapp.core.config import AppSettings
from myapp.main import create_app


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        environment="test",
        version="9.9.9",
        log_level="WARNING",
        log_json=True,
        port=3000,
        max_body_bytes=1024,
        shutdown_timeout=30.0,
    )


@pytest.fixture
def app(settings: AppSettings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
