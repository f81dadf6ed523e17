import builtins
import json
import sqlite3
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from inkpost.domain.entities import (
    BlogComment,
    Post,
    ShortUrl,
    StorageRow,
    Tweet,
    TweetComment,
    User,
)
from inkpost.domain.slugs import SlugTakenError, UsernameTakenError


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _is_unique_violation(e: sqlite3.IntegrityError) -> bool:
    return "UNIQUE" in str(e).upper()


def _is_unique_on(e: sqlite3.IntegrityError, column: str) -> bool:
    return _is_unique_violation(e) and column in str(e)


def _placeholders(n: int) -> str:
    return ",".join("?" for _ in range(n))


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn


# --- Users ---


class SQLiteUserRepo(_SQLiteRepo):
    def save(self, user: User) -> User:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO users (
                    id, email, name, username, image, bio, role, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email=excluded.email,
                    name=excluded.name,
                    username=excluded.username,
                    image=excluded.image,
                    bio=excluded.bio,
                    role=excluded.role,
                    updated_at=excluded.updated_at
            """,
                (
                    str(user.id),
                    user.email,
                    user.name,
                    user.username,
                    user.image,
                    user.bio,
                    user.role,
                    user.created_at.isoformat(),
                    user.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return user
        except sqlite3.IntegrityError as e:
            conn.rollback()
            if user.username and _is_unique_on(e, "users.username"):
                raise UsernameTakenError(user.username) from e
            raise
        finally:
            conn.close()

    def _get_one(self, column: str, value: str) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute(f"SELECT * FROM users WHERE {column} = ?", (value,)).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def get_by_id(self, user_id: UUID) -> User | None:
        return self._get_one("id", str(user_id))

    def get_by_email(self, email: str) -> User | None:
        return self._get_one("email", email)

    def get_by_username(self, username: str) -> User | None:
        return self._get_one("username", username)

    def username_exists(self, username: str) -> bool:
        return self.get_by_username(username) is not None

    def _map_row(self, row: dict[str, Any]) -> User:
        return User(
            id=UUID(row["id"]),
            email=row["email"],
            name=row["name"],
            username=row["username"],
            image=row["image"],
            bio=row["bio"],
            role=row["role"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


# --- Posts and their block rows ---


class SQLitePostRepo(_SQLiteRepo):
    def _insert_row(self, conn: sqlite3.Connection, post_id: UUID, row: StorageRow) -> None:
        conn.execute(
            """
            INSERT INTO blog_components (
                id, blog_id, type, "order", content, text,
                image_key, alignment, video_url, video_type
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
            (row.id, str(post_id), *self._row_values(row)),
        )

    def _row_values(self, row: StorageRow) -> tuple[Any, ...]:
        return (
            row.type,
            row.order,
            json.dumps(row.content) if row.content is not None else None,
            row.text,
            row.image_key,
            row.alignment,
            row.video_url,
            row.video_type,
        )

    def _write_post(self, conn: sqlite3.Connection, post: Post) -> None:
        conn.execute(
            """
            INSERT INTO blogs (
                id, title, slug, short_description, tags_json, thumbnail_key,
                published, user_id, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                title=excluded.title,
                slug=excluded.slug,
                short_description=excluded.short_description,
                tags_json=excluded.tags_json,
                thumbnail_key=excluded.thumbnail_key,
                published=excluded.published,
                updated_at=excluded.updated_at
        """,
            (
                str(post.id),
                post.title,
                post.slug,
                post.short_description,
                json.dumps(post.tags),
                post.thumbnail_key,
                1 if post.published else 0,
                str(post.user_id),
                post.created_at.isoformat(),
                post.updated_at.isoformat(),
            ),
        )

    def create(self, post: Post, rows: Sequence[StorageRow]) -> Post:
        """Insert a post and all of its block rows in one transaction."""
        conn = self._get_conn()
        try:
            self._write_post(conn, post)
            for row in rows:
                self._insert_row(conn, post.id, row)
            conn.commit()
            return post
        except sqlite3.IntegrityError as e:
            conn.rollback()
            if _is_unique_on(e, "blogs.slug"):
                raise SlugTakenError(post.slug) from e
            raise
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def save_metadata(self, post: Post) -> Post:
        conn = self._get_conn()
        try:
            self._write_post(conn, post)
            conn.commit()
            return post
        except sqlite3.IntegrityError as e:
            conn.rollback()
            if _is_unique_on(e, "blogs.slug"):
                raise SlugTakenError(post.slug) from e
            raise
        finally:
            conn.close()

    def apply_update(
        self,
        post: Post,
        *,
        to_update: Iterable[StorageRow] = (),
        to_insert: Iterable[StorageRow] = (),
        to_delete: Iterable[StorageRow] = (),
    ) -> Post:
        """Write post metadata and a block diff atomically."""
        conn = self._get_conn()
        try:
            self._write_post(conn, post)
            for row in to_delete:
                conn.execute(
                    "DELETE FROM blog_components WHERE id = ? AND blog_id = ?",
                    (row.id, str(post.id)),
                )
            for row in to_update:
                conn.execute(
                    """
                    UPDATE blog_components SET
                        type = ?, "order" = ?, content = ?, text = ?,
                        image_key = ?, alignment = ?, video_url = ?, video_type = ?
                    WHERE id = ? AND blog_id = ?
                """,
                    (*self._row_values(row), row.id, str(post.id)),
                )
            for row in to_insert:
                self._insert_row(conn, post.id, row)
            conn.commit()
            return post
        except sqlite3.IntegrityError as e:
            conn.rollback()
            if _is_unique_on(e, "blogs.slug"):
                raise SlugTakenError(post.slug) from e
            raise
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_by_id(self, post_id: UUID) -> Post | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM blogs WHERE id = ?", (str(post_id),)).fetchone()
            return self._map_post(row) if row else None
        finally:
            conn.close()

    def get_by_slug(self, slug: str) -> Post | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM blogs WHERE slug = ?", (slug,)).fetchone()
            return self._map_post(row) if row else None
        finally:
            conn.close()

    def slug_exists(self, slug: str, exclude_id: UUID | None = None) -> bool:
        conn = self._get_conn()
        try:
            if exclude_id is None:
                row = conn.execute("SELECT 1 AS x FROM blogs WHERE slug = ?", (slug,)).fetchone()
            else:
                row = conn.execute(
                    "SELECT 1 AS x FROM blogs WHERE slug = ? AND id != ?",
                    (slug, str(exclude_id)),
                ).fetchone()
            return row is not None
        finally:
            conn.close()

    def list(self, user_id: UUID | None = None, published_only: bool = True) -> builtins.list[Post]:
        conn = self._get_conn()
        try:
            query = "SELECT * FROM blogs WHERE 1=1"
            params: builtins.list[Any] = []
            if user_id is not None:
                query += " AND user_id = ?"
                params.append(str(user_id))
            if published_only:
                query += " AND published = 1"
            query += " ORDER BY created_at DESC"
            return [self._map_post(r) for r in conn.execute(query, params).fetchall()]
        finally:
            conn.close()

    def get_rows(self, post_id: UUID) -> builtins.list[StorageRow]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                'SELECT * FROM blog_components WHERE blog_id = ? ORDER BY "order" ASC',
                (str(post_id),),
            ).fetchall()
            return [self._map_storage_row(r) for r in rows]
        finally:
            conn.close()

    def delete(self, post_id: UUID) -> None:
        conn = self._get_conn()
        try:
            # Blocks first, for databases created without ON DELETE CASCADE.
            conn.execute("DELETE FROM blog_components WHERE blog_id = ?", (str(post_id),))
            conn.execute("DELETE FROM blogs WHERE id = ?", (str(post_id),))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _map_post(self, row: dict[str, Any]) -> Post:
        return Post(
            id=UUID(row["id"]),
            title=row["title"],
            slug=row["slug"],
            short_description=row["short_description"],
            tags=json.loads(row["tags_json"] or "[]"),
            thumbnail_key=row["thumbnail_key"],
            published=bool(row["published"]),
            user_id=UUID(row["user_id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _map_storage_row(self, row: dict[str, Any]) -> StorageRow:
        content = row["content"]
        if content is not None:
            try:
                content = json.loads(content)
            except json.JSONDecodeError:
                # Legacy rows may hold raw text; the mapper decides what it means.
                pass
        return StorageRow(
            id=row["id"],
            blog_id=UUID(row["blog_id"]),
            type=row["type"],
            order=row["order"],
            content=content,
            text=row["text"],
            image_key=row["image_key"],
            alignment=row["alignment"],
            video_url=row["video_url"],
            video_type=row["video_type"],
        )


# --- Comments ---


class SQLiteBlogCommentRepo(_SQLiteRepo):
    def add(self, comment: BlogComment) -> BlogComment:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO blog_comments (id, blog_id, user_id, content, created_at)
                VALUES (?, ?, ?, ?, ?)
            """,
                (
                    str(comment.id),
                    str(comment.blog_id),
                    str(comment.user_id),
                    comment.content,
                    comment.created_at.isoformat(),
                ),
            )
            conn.commit()
            return comment
        finally:
            conn.close()

    def get(self, comment_id: UUID) -> BlogComment | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM blog_comments WHERE id = ?", (str(comment_id),)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def list_for_blog(self, blog_id: UUID) -> list[BlogComment]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM blog_comments WHERE blog_id = ? ORDER BY created_at ASC",
                (str(blog_id),),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            conn.close()

    def count_by_blog(self, blog_ids: Sequence[UUID]) -> dict[UUID, int]:
        if not blog_ids:
            return {}
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"""
                SELECT blog_id, COUNT(*) AS cnt FROM blog_comments
                WHERE blog_id IN ({_placeholders(len(blog_ids))})
                GROUP BY blog_id
            """,
                [str(b) for b in blog_ids],
            ).fetchall()
            return {UUID(r["blog_id"]): r["cnt"] for r in rows}
        finally:
            conn.close()

    def delete(self, comment_id: UUID) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM blog_comments WHERE id = ?", (str(comment_id),))
            conn.commit()
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> BlogComment:
        return BlogComment(
            id=UUID(row["id"]),
            blog_id=UUID(row["blog_id"]),
            user_id=UUID(row["user_id"]),
            content=row["content"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteTweetCommentRepo(_SQLiteRepo):
    def add(self, comment: TweetComment) -> TweetComment:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO tweet_comments (id, tweet_id, user_id, content, created_at)
                VALUES (?, ?, ?, ?, ?)
            """,
                (
                    str(comment.id),
                    str(comment.tweet_id),
                    str(comment.user_id),
                    comment.content,
                    comment.created_at.isoformat(),
                ),
            )
            conn.commit()
            return comment
        finally:
            conn.close()

    def get(self, comment_id: UUID) -> TweetComment | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM tweet_comments WHERE id = ?", (str(comment_id),)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def list_for_tweet(self, tweet_id: UUID) -> list[TweetComment]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM tweet_comments WHERE tweet_id = ? ORDER BY created_at ASC",
                (str(tweet_id),),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            conn.close()

    def delete(self, comment_id: UUID) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM tweet_comments WHERE id = ?", (str(comment_id),))
            conn.commit()
        finally:
            conn.close()

    def count_by_tweet(self, tweet_ids: Sequence[UUID]) -> dict[UUID, int]:
        if not tweet_ids:
            return {}
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"""
                SELECT tweet_id, COUNT(*) AS cnt FROM tweet_comments
                WHERE tweet_id IN ({_placeholders(len(tweet_ids))})
                GROUP BY tweet_id
            """,
                [str(t) for t in tweet_ids],
            ).fetchall()
            return {UUID(r["tweet_id"]): r["cnt"] for r in rows}
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> TweetComment:
        return TweetComment(
            id=UUID(row["id"]),
            tweet_id=UUID(row["tweet_id"]),
            user_id=UUID(row["user_id"]),
            content=row["content"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


# --- Join tables (likes, follows, retweets) ---

# table -> (actor column, target column)
RELATION_TABLES: dict[str, tuple[str, str]] = {
    "blog_likes": ("user_id", "blog_id"),
    "tweet_likes": ("user_id", "tweet_id"),
    "comment_likes": ("user_id", "comment_id"),
    "retweets": ("user_id", "tweet_id"),
    "follows": ("follower_id", "following_id"),
}


class SQLiteRelationRepo(_SQLiteRepo):
    """
    A unique (actor, target) pair table.

    add() reports False instead of raising when the pair already exists,
    which is how a concurrent duplicate insert surfaces.
    """

    def __init__(self, db_path: str, table: str):
        super().__init__(db_path)
        if table not in RELATION_TABLES:
            raise ValueError(f"Unknown relation table: {table}")
        self.table = table
        self.actor_col, self.target_col = RELATION_TABLES[table]

    def exists(self, actor_id: UUID, target_id: UUID) -> bool:
        conn = self._get_conn()
        try:
            row = conn.execute(
                f"SELECT 1 AS x FROM {self.table} WHERE {self.actor_col} = ? AND {self.target_col} = ?",
                (str(actor_id), str(target_id)),
            ).fetchone()
            return row is not None
        finally:
            conn.close()

    def add(self, actor_id: UUID, target_id: UUID, relation_id: UUID, created_at: datetime) -> bool:
        conn = self._get_conn()
        try:
            conn.execute(
                f"""
                INSERT INTO {self.table} (id, {self.actor_col}, {self.target_col}, created_at)
                VALUES (?, ?, ?, ?)
            """,
                (str(relation_id), str(actor_id), str(target_id), created_at.isoformat()),
            )
            conn.commit()
            return True
        except sqlite3.IntegrityError as e:
            conn.rollback()
            if _is_unique_violation(e):
                return False
            raise
        finally:
            conn.close()

    def remove(self, actor_id: UUID, target_id: UUID) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                f"DELETE FROM {self.table} WHERE {self.actor_col} = ? AND {self.target_col} = ?",
                (str(actor_id), str(target_id)),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def count_by_actor(self, actor_id: UUID) -> int:
        """How many targets the actor is related to (e.g. accounts a user follows)."""
        conn = self._get_conn()
        try:
            row = conn.execute(
                f"SELECT COUNT(*) AS cnt FROM {self.table} WHERE {self.actor_col} = ?",
                (str(actor_id),),
            ).fetchone()
            return row["cnt"]
        finally:
            conn.close()

    def count(self, target_id: UUID) -> int:
        return self.count_many([target_id]).get(target_id, 0)

    def count_many(self, target_ids: Sequence[UUID]) -> dict[UUID, int]:
        if not target_ids:
            return {}
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"""
                SELECT {self.target_col} AS target, COUNT(*) AS cnt FROM {self.table}
                WHERE {self.target_col} IN ({_placeholders(len(target_ids))})
                GROUP BY {self.target_col}
            """,
                [str(t) for t in target_ids],
            ).fetchall()
            return {UUID(r["target"]): r["cnt"] for r in rows}
        finally:
            conn.close()

    def targets_of(self, actor_id: UUID, target_ids: Sequence[UUID]) -> set[UUID]:
        """Subset of target_ids the actor is related to."""
        if not target_ids:
            return set()
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"""
                SELECT {self.target_col} AS target FROM {self.table}
                WHERE {self.actor_col} = ?
                AND {self.target_col} IN ({_placeholders(len(target_ids))})
            """,
                [str(actor_id), *[str(t) for t in target_ids]],
            ).fetchall()
            return {UUID(r["target"]) for r in rows}
        finally:
            conn.close()


# --- Tweets ---


class SQLiteTweetRepo(_SQLiteRepo):
    def save(self, tweet: Tweet) -> Tweet:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO tweets (
                    id, user_id, content, image_keys_json, reply_to_id,
                    is_retweet, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    content=excluded.content,
                    image_keys_json=excluded.image_keys_json,
                    updated_at=excluded.updated_at
            """,
                (
                    str(tweet.id),
                    str(tweet.user_id),
                    tweet.content,
                    json.dumps(tweet.image_keys),
                    str(tweet.reply_to_id) if tweet.reply_to_id else None,
                    1 if tweet.is_retweet else 0,
                    tweet.created_at.isoformat(),
                    tweet.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return tweet
        finally:
            conn.close()

    def get(self, tweet_id: UUID) -> Tweet | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM tweets WHERE id = ?", (str(tweet_id),)).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def feed(self, limit: int = 50) -> list[Tweet]:
        """Top-level original tweets, newest first."""
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM tweets
                WHERE is_retweet = 0 AND reply_to_id IS NULL
                ORDER BY created_at DESC
                LIMIT ?
            """,
                (limit,),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            conn.close()

    def list_by_user(self, user_id: UUID, limit: int = 50) -> list[Tweet]:
        """A user's top-level original tweets, newest first."""
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM tweets
                WHERE user_id = ? AND is_retweet = 0 AND reply_to_id IS NULL
                ORDER BY created_at DESC
                LIMIT ?
            """,
                (str(user_id), limit),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            conn.close()

    def count_by_user(self, user_id: UUID) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT COUNT(*) AS cnt FROM tweets
                WHERE user_id = ? AND is_retweet = 0 AND reply_to_id IS NULL
            """,
                (str(user_id),),
            ).fetchone()
            return row["cnt"]
        finally:
            conn.close()

    def delete(self, tweet_id: UUID) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM tweets WHERE id = ?", (str(tweet_id),))
            conn.commit()
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> Tweet:
        return Tweet(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            content=row["content"],
            image_keys=json.loads(row["image_keys_json"] or "[]"),
            reply_to_id=UUID(row["reply_to_id"]) if row["reply_to_id"] else None,
            is_retweet=bool(row["is_retweet"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


# --- Short links ---


class SQLiteShortUrlRepo(_SQLiteRepo):
    def insert(self, short_url: ShortUrl) -> bool:
        """False if the short code is already taken."""
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO short_urls (id, short_code, original_url, blog_slug, clicks, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """,
                (
                    str(short_url.id),
                    short_url.short_code,
                    short_url.original_url,
                    short_url.blog_slug,
                    short_url.clicks,
                    short_url.created_at.isoformat(),
                ),
            )
            conn.commit()
            return True
        except sqlite3.IntegrityError as e:
            conn.rollback()
            if _is_unique_violation(e):
                return False
            raise
        finally:
            conn.close()

    def get_by_code(self, code: str) -> ShortUrl | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM short_urls WHERE short_code = ?", (code,)).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def get_by_blog_slug(self, blog_slug: str) -> ShortUrl | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM short_urls WHERE blog_slug = ? ORDER BY created_at ASC LIMIT 1",
                (blog_slug,),
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def increment_clicks(self, code: str) -> ShortUrl | None:
        conn = self._get_conn()
        try:
            conn.execute("UPDATE short_urls SET clicks = clicks + 1 WHERE short_code = ?", (code,))
            conn.commit()
            row = conn.execute("SELECT * FROM short_urls WHERE short_code = ?", (code,)).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> ShortUrl:
        return ShortUrl(
            id=UUID(row["id"]),
            short_code=row["short_code"],
            original_url=row["original_url"],
            blog_slug=row["blog_slug"],
            clicks=row["clicks"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
