"""Shared fixtures for API route tests: a migrated temp database and sessions."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from inkpost.adapters import events
from inkpost.adapters.sqlite.migrator import SQLiteMigrator
from inkpost.adapters.sqlite.repos import SQLiteUserRepo
from inkpost.api import deps
from inkpost.api.auth_utils import create_access_token
from inkpost.api.deps import Settings, get_settings
from inkpost.api.main import app
from inkpost.domain.entities import User
from tests.conftest import MIGRATIONS_DIR, RULES_PATH


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    s = Settings(data_dir=tmp_path / "data")
    s.data_dir.mkdir(parents=True)
    s.rules_path = RULES_PATH
    s.migrations_dir = MIGRATIONS_DIR
    s.image_backend = "fs"
    SQLiteMigrator(s.db_path, str(s.migrations_dir)).run_migrations()
    return s


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    app.dependency_overrides[get_settings] = lambda: settings
    deps._rate_limiter_instance = None
    yield TestClient(app)
    app.dependency_overrides.clear()
    deps._rate_limiter_instance = None


@pytest.fixture
def published_events() -> Iterator[list[tuple[str, dict[str, Any]]]]:
    seen: list[tuple[str, dict[str, Any]]] = []
    events.set_publisher(lambda name, payload: seen.append((name, payload)))
    yield seen
    events.set_publisher(None)


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def ada(settings: Settings) -> User:
    return SQLiteUserRepo(settings.db_path).save(
        User(email="ada@example.com", name="Ada", username="ada1234")
    )


@pytest.fixture
def bob(settings: Settings) -> User:
    return SQLiteUserRepo(settings.db_path).save(
        User(email="bob@example.com", name="Bob", username="bob5678")
    )


@pytest.fixture
def root(settings: Settings) -> User:
    return SQLiteUserRepo(settings.db_path).save(
        User(email="root@example.com", name="Root", username="root0001", role="admin")
    )
