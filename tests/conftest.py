from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import UUID

import pytest

from inkpost.adapters.sqlite.migrator import SQLiteMigrator
from inkpost.adapters.sqlite.repos import SQLiteUserRepo
from inkpost.domain.entities import Post, StorageRow, User
from inkpost.domain.policy import PolicyEngine
from inkpost.rules.loader import load_rules
from inkpost.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent
RULES_PATH = PROJECT_ROOT / "rules.yaml"
MIGRATIONS_DIR = PROJECT_ROOT / "migrations"


class FakeClock:
    """Deterministic clock; advance() moves it forward."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeImageStore:
    def __init__(self, fail_on: set[str] | None = None):
        self.deleted: list[str] = []
        self.fail_on = fail_on or set()

    def delete(self, key: str) -> None:
        if key in self.fail_on:
            raise RuntimeError(f"store unavailable for {key}")
        self.deleted.append(key)


class FakePostRepo:
    """In-memory PostRepoPort; records every write call."""

    def __init__(self) -> None:
        self.posts: dict[UUID, Post] = {}
        self.rows: dict[UUID, list[StorageRow]] = {}
        self.writes: list[str] = []

    def create(self, post: Post, rows: Sequence[StorageRow]) -> Post:
        self.writes.append("create")
        self.posts[post.id] = post
        self.rows[post.id] = [r.model_copy(update={"blog_id": post.id}) for r in rows]
        return post

    def save_metadata(self, post: Post) -> Post:
        self.writes.append("save_metadata")
        self.posts[post.id] = post
        return post

    def apply_update(self, post, *, to_update, to_insert, to_delete) -> Post:
        self.writes.append("apply_update")
        self.posts[post.id] = post
        gone = {r.id for r in to_delete}
        updated = {r.id: r for r in to_update}
        rows = [updated.get(r.id, r) for r in self.rows.get(post.id, []) if r.id not in gone]
        rows.extend(r.model_copy(update={"blog_id": post.id}) for r in to_insert)
        self.rows[post.id] = sorted(rows, key=lambda r: r.order)
        return post

    def get_by_id(self, post_id: UUID) -> Post | None:
        return self.posts.get(post_id)

    def get_by_slug(self, slug: str) -> Post | None:
        return next((p for p in self.posts.values() if p.slug == slug), None)

    def slug_exists(self, slug: str, exclude_id: UUID | None = None) -> bool:
        return any(p.slug == slug and p.id != exclude_id for p in self.posts.values())

    def list(self, user_id: UUID | None = None, published_only: bool = True) -> list[Post]:
        posts = [
            p
            for p in self.posts.values()
            if (user_id is None or p.user_id == user_id) and (p.published or not published_only)
        ]
        return sorted(posts, key=lambda p: p.created_at, reverse=True)

    def get_rows(self, post_id: UUID) -> list[StorageRow]:
        return sorted(self.rows.get(post_id, []), key=lambda r: r.order)

    def delete(self, post_id: UUID) -> None:
        self.writes.append("delete")
        self.posts.pop(post_id, None)
        self.rows.pop(post_id, None)


class FakeRelationRepo:
    """In-memory RelationRepoPort over a set of (actor, target) pairs."""

    def __init__(self) -> None:
        self.pairs: set[tuple[UUID, UUID]] = set()

    def exists(self, actor_id: UUID, target_id: UUID) -> bool:
        return (actor_id, target_id) in self.pairs

    def add(self, actor_id, target_id, relation_id, created_at) -> bool:
        if (actor_id, target_id) in self.pairs:
            return False
        self.pairs.add((actor_id, target_id))
        return True

    def remove(self, actor_id: UUID, target_id: UUID) -> bool:
        if (actor_id, target_id) not in self.pairs:
            return False
        self.pairs.discard((actor_id, target_id))
        return True

    def count(self, target_id: UUID) -> int:
        return sum(1 for _, t in self.pairs if t == target_id)

    def count_by_actor(self, actor_id: UUID) -> int:
        return sum(1 for a, _ in self.pairs if a == actor_id)

    def count_many(self, target_ids: Sequence[UUID]) -> dict[UUID, int]:
        counts = {t: self.count(t) for t in target_ids}
        return {t: c for t, c in counts.items() if c}

    def targets_of(self, actor_id: UUID, target_ids: Sequence[UUID]) -> set[UUID]:
        wanted = set(target_ids)
        return {t for a, t in self.pairs if a == actor_id and t in wanted}


@pytest.fixture
def rules() -> Rules:
    return load_rules(RULES_PATH)


@pytest.fixture
def policy(rules: Rules) -> PolicyEngine:
    return PolicyEngine(rules.rbac)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def author() -> User:
    return User(email="ada@example.com", name="Ada", username="ada1234")


@pytest.fixture
def other_user() -> User:
    return User(email="bob@example.com", name="Bob", username="bob5678")


@pytest.fixture
def admin_user() -> User:
    return User(email="root@example.com", name="Root", username="root0001", role="admin")


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    path = str(tmp_path / "inkpost.db")
    SQLiteMigrator(path, str(MIGRATIONS_DIR)).run_migrations()
    return path


@pytest.fixture
def saved_author(db_path: str, author: User) -> User:
    return SQLiteUserRepo(db_path).save(author)


@pytest.fixture
def saved_other(db_path: str, other_user: User) -> User:
    return SQLiteUserRepo(db_path).save(other_user)
