"""
Tests for the posts component: create, update, patch, delete and read.
"""

from __future__ import annotations

from uuid import UUID, uuid4

import pytest

from inkpost.components.posts import (
    SLUG_EXISTS_MESSAGE,
    CreatePostInput,
    DeletePostInput,
    GetPostInput,
    ListPostsInput,
    PatchPostInput,
    UpdatePostInput,
    ViewPostInput,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_patch,
    run_update,
    run_view,
)
from inkpost.domain.entities import Post
from inkpost.domain.slugs import SlugTakenError
from tests.conftest import FakeImageStore, FakePostRepo, FakeRelationRepo

HEADING_DOC = {
    "type": "doc",
    "content": [
        {"type": "heading", "attrs": {"level": 1}, "content": [{"type": "text", "text": "Intro"}]}
    ],
}


class FakeCommentCounts:
    def __init__(self, counts: dict[UUID, int] | None = None):
        self.counts = counts or {}

    def count_by_blog(self, blog_ids):
        return {b: self.counts[b] for b in blog_ids if b in self.counts}


class RacingPostRepo(FakePostRepo):
    """Slugs in `racing` are claimed by another writer between the check and the write."""

    def __init__(self, racing: set[str]):
        super().__init__()
        self.racing = set(racing)
        self.claimed: set[str] = set()

    def _claim(self, post: Post) -> None:
        if post.slug in self.racing:
            self.racing.discard(post.slug)
            self.claimed.add(post.slug)
            raise SlugTakenError(post.slug)

    def slug_exists(self, slug, exclude_id=None) -> bool:
        return slug in self.claimed or super().slug_exists(slug, exclude_id)

    def create(self, post, rows):
        self._claim(post)
        return super().create(post, rows)

    def save_metadata(self, post):
        self._claim(post)
        return super().save_metadata(post)

    def apply_update(self, post, **changes):
        self._claim(post)
        return super().apply_update(post, **changes)


@pytest.fixture
def repo() -> FakePostRepo:
    return FakePostRepo()


def _create(repo, rules, clock, user, **overrides):
    values = dict(
        user=user,
        title="Hello, World!",
        short_description="A first post",
        tags="python, web",
        thumbnail_key="thumbs/one.png",
        components=[
            {"id": "rt", "type": "richtext", "order": 0},
            {"id": "img", "type": "image", "order": 1},
        ],
        component_data={"rt": HEADING_DOC, "img": {"key": "pics/a.png"}},
    )
    values.update(overrides)
    return run_create(CreatePostInput(**values), repo=repo, rules=rules, time_port=clock)


class TestCreate:
    def test_success(self, repo, rules, clock, author) -> None:
        result = _create(repo, rules, clock, author)

        assert result.success
        assert result.post.slug == "hello-world"
        assert result.post.tags == ["python", "web"]
        assert result.post.user_id == author.id
        assert result.post.created_at == clock.now
        rows = repo.get_rows(result.post.id)
        assert [r.type for r in rows] == ["richtext", "image"]
        assert [r.order for r in rows] == [0, 1]
        assert [b.type for b in result.blocks.blocks] == ["richtext", "image"]

    def test_requires_user(self, repo, rules, clock) -> None:
        result = _create(repo, rules, clock, None)
        assert result.errors[0].code == "auth_required"
        assert repo.writes == []

    def test_required_metadata_checked_before_writes(self, repo, rules, clock, author) -> None:
        result = _create(repo, rules, clock, author, title=" ", short_description="", tags="")
        assert not result.success
        assert {e.field for e in result.errors} == {"title", "short_description", "tags"}
        assert repo.writes == []

    def test_title_without_letters(self, repo, rules, clock, author) -> None:
        result = _create(repo, rules, clock, author, title="!!!")
        assert result.errors[0].field == "slug"

    def test_duplicate_slug_rejected(self, repo, rules, clock, author) -> None:
        _create(repo, rules, clock, author)
        result = _create(repo, rules, clock, author)
        assert result.errors[0].code == "slug_exists"
        assert result.errors[0].message == SLUG_EXISTS_MESSAGE
        assert repo.writes == ["create"]

    def test_slug_taken_during_write(self, rules, clock, author) -> None:
        repo = RacingPostRepo({"hello-world"})
        result = _create(repo, rules, clock, author)
        assert result.errors[0].code == "slug_exists"
        assert result.errors[0].message == SLUG_EXISTS_MESSAGE
        assert repo.posts == {}

    def test_invalid_block_is_validation_error(self, repo, rules, clock, author) -> None:
        result = _create(
            repo, rules, clock, author, components=[{"id": "x", "type": "poll"}], component_data={}
        )
        assert result.errors[0].code == "validation"
        assert result.errors[0].field == "content"
        assert repo.writes == []

    def test_empty_block_still_stored(self, repo, rules, clock, author) -> None:
        result = _create(
            repo, rules, clock, author, components=[{"id": "c", "type": "code"}], component_data={}
        )
        assert [r.type for r in repo.get_rows(result.post.id)] == ["code"]


class TestUpdate:
    def _update(self, repo, rules, policy, clock, user, post, images=None, **overrides):
        values = dict(
            user=user,
            post_id=post.id,
            title=post.title,
            short_description=post.short_description,
            tags=post.tags,
            thumbnail_key=post.thumbnail_key,
        )
        values.update(overrides)
        return run_update(
            UpdatePostInput(**values),
            repo=repo,
            rules=rules,
            policy=policy,
            time_port=clock,
            images=images,
        )

    def test_owner_only(self, repo, rules, policy, clock, author, other_user) -> None:
        post = _create(repo, rules, clock, author).post
        result = self._update(repo, rules, policy, clock, other_user, post, title="Stolen")
        assert result.errors[0].code == "forbidden"
        assert repo.writes == ["create"]

    def test_unknown_post(self, repo, rules, policy, clock, author) -> None:
        post = Post(title="x", slug="x", short_description="x", user_id=author.id)
        result = self._update(repo, rules, policy, clock, author, post)
        assert result.errors[0].code == "not_found"

    def test_title_change_disambiguates_slug(self, repo, rules, policy, clock, author) -> None:
        _create(repo, rules, clock, author, title="Taken")
        post = _create(repo, rules, clock, author, title="Original").post

        result = self._update(repo, rules, policy, clock, author, post, title="Taken")
        assert result.post.slug == "taken-2"

    def test_slug_taken_during_write_moves_to_next_suffix(
        self, rules, policy, clock, author
    ) -> None:
        repo = RacingPostRepo({"taken"})
        post = _create(repo, rules, clock, author, title="Original").post

        result = self._update(repo, rules, policy, clock, author, post, title="Taken")
        assert result.success
        assert result.post.slug == "taken-2"
        assert repo.posts[post.id].slug == "taken-2"

    def test_slug_taken_during_block_update(self, rules, policy, clock, author) -> None:
        repo = RacingPostRepo({"taken"})
        post = _create(repo, rules, clock, author, title="Original").post
        text_row, _ = repo.get_rows(post.id)

        result = self._update(
            repo,
            rules,
            policy,
            clock,
            author,
            post,
            title="Taken",
            components=[{"id": text_row.id, "type": "richtext"}],
            component_data={text_row.id: "Short"},
        )
        assert result.post.slug == "taken-2"
        assert repo.writes == ["create", "apply_update"]

    def test_same_title_keeps_slug(self, repo, rules, policy, clock, author) -> None:
        post = _create(repo, rules, clock, author).post
        clock.advance(60)
        result = self._update(repo, rules, policy, clock, author, post, short_description="new")
        assert result.post.slug == "hello-world"
        assert result.post.updated_at == clock.now
        assert repo.writes == ["create", "save_metadata"]

    def test_block_diff_applied_in_place(self, repo, rules, policy, clock, author) -> None:
        post = _create(repo, rules, clock, author).post
        text_row, _ = repo.get_rows(post.id)
        images = FakeImageStore()

        result = self._update(
            repo,
            rules,
            policy,
            clock,
            author,
            post,
            images=images,
            components=[
                {"id": text_row.id, "type": "richtext"},
                {"id": "code-new", "type": "code"},
            ],
            component_data={text_row.id: "Rewritten", "code-new": {"code": "x = 1"}},
        )

        assert result.success
        assert repo.writes == ["create", "apply_update"]
        rows = repo.get_rows(post.id)
        assert rows[0].id == text_row.id
        assert rows[1].type == "code"
        assert rows[1].id != "code-new"
        assert result.removed_image_keys == ("pics/a.png",)
        assert images.deleted == ["pics/a.png"]

    def test_replaced_thumbnail_cleaned_up(self, repo, rules, policy, clock, author) -> None:
        post = _create(repo, rules, clock, author).post
        images = FakeImageStore(fail_on={"thumbs/one.png"})
        result = self._update(
            repo, rules, policy, clock, author, post, images=images, thumbnail_key="thumbs/two.png"
        )
        assert result.success
        assert result.removed_image_keys == ("thumbs/one.png",)
        assert result.post.thumbnail_key == "thumbs/two.png"

    def test_block_image_moved_to_thumbnail_kept(self, repo, rules, policy, clock, author) -> None:
        post = _create(repo, rules, clock, author).post
        text_row, _ = repo.get_rows(post.id)
        images = FakeImageStore()

        result = self._update(
            repo,
            rules,
            policy,
            clock,
            author,
            post,
            images=images,
            thumbnail_key="pics/a.png",
            components=[{"id": text_row.id, "type": "richtext"}],
            component_data={text_row.id: HEADING_DOC},
        )
        assert result.success
        assert result.removed_image_keys == ("thumbs/one.png",)
        assert images.deleted == ["thumbs/one.png"]

    def test_old_thumbnail_still_used_by_block_kept(
        self, repo, rules, policy, clock, author
    ) -> None:
        post = _create(repo, rules, clock, author, thumbnail_key="pics/a.png").post
        images = FakeImageStore()

        result = self._update(
            repo, rules, policy, clock, author, post, images=images, thumbnail_key="thumbs/two.png"
        )
        assert result.success
        assert result.removed_image_keys == ()
        assert images.deleted == []


class TestPatch:
    def test_partial_update(self, repo, rules, policy, clock, author) -> None:
        post = _create(repo, rules, clock, author).post
        result = run_patch(
            PatchPostInput(user=author, post_id=post.id, tags=["go"]),
            repo=repo,
            rules=rules,
            policy=policy,
            time_port=clock,
        )
        assert result.post.tags == ["go"]
        assert result.post.title == post.title

    def test_empty_title_rejected(self, repo, rules, policy, clock, author) -> None:
        post = _create(repo, rules, clock, author).post
        result = run_patch(
            PatchPostInput(user=author, post_id=post.id, title=""),
            repo=repo,
            rules=rules,
            policy=policy,
            time_port=clock,
        )
        assert result.errors[0].field == "title"

    def test_clear_thumbnail(self, repo, rules, policy, clock, author) -> None:
        post = _create(repo, rules, clock, author).post
        images = FakeImageStore()
        result = run_patch(
            PatchPostInput(user=author, post_id=post.id, clear_thumbnail=True),
            repo=repo,
            rules=rules,
            policy=policy,
            time_port=clock,
            images=images,
        )
        assert result.post.thumbnail_key is None
        assert images.deleted == ["thumbs/one.png"]

    def test_clearing_thumbnail_used_by_block_keeps_image(
        self, repo, rules, policy, clock, author
    ) -> None:
        post = _create(repo, rules, clock, author, thumbnail_key="pics/a.png").post
        images = FakeImageStore()
        result = run_patch(
            PatchPostInput(user=author, post_id=post.id, clear_thumbnail=True),
            repo=repo,
            rules=rules,
            policy=policy,
            time_port=clock,
            images=images,
        )
        assert result.removed_image_keys == ()
        assert images.deleted == []

    def test_slug_taken_during_write(self, rules, policy, clock, author) -> None:
        repo = RacingPostRepo({"renamed"})
        post = _create(repo, rules, clock, author).post
        result = run_patch(
            PatchPostInput(user=author, post_id=post.id, title="Renamed"),
            repo=repo,
            rules=rules,
            policy=policy,
            time_port=clock,
        )
        assert result.post.slug == "renamed-2"


class TestDelete:
    def test_owner_deletes_and_images_cleaned(self, repo, rules, policy, clock, author) -> None:
        post = _create(repo, rules, clock, author).post
        images = FakeImageStore(fail_on={"pics/a.png"})

        result = run_delete(
            DeletePostInput(user=author, post_id=post.id), repo=repo, policy=policy, images=images
        )

        assert result.success
        assert repo.get_by_id(post.id) is None
        assert repo.get_rows(post.id) == []
        assert result.removed_image_keys == ("pics/a.png", "thumbs/one.png")
        assert images.deleted == ["thumbs/one.png"]

    def test_non_owner_forbidden(self, repo, rules, policy, clock, author, admin_user) -> None:
        post = _create(repo, rules, clock, author).post
        result = run_delete(DeletePostInput(user=admin_user, post_id=post.id), repo=repo, policy=policy)
        assert result.errors[0].code == "forbidden"
        assert repo.get_by_id(post.id) is not None

    def test_missing_post(self, repo, policy, author) -> None:
        result = run_delete(DeletePostInput(user=author, post_id=uuid4()), repo=repo, policy=policy)
        assert result.errors[0].code == "not_found"


class TestRead:
    def test_unpublished_visible_to_owner_only(
        self, repo, rules, clock, author, other_user
    ) -> None:
        post = _create(repo, rules, clock, author, published=False).post

        assert run_get(GetPostInput(slug=post.slug), repo=repo, rules=rules).errors[0].code == (
            "not_found"
        )
        assert not run_get(
            GetPostInput(slug=post.slug, viewer=other_user), repo=repo, rules=rules
        ).success
        assert run_get(GetPostInput(post_id=post.id, viewer=author), repo=repo, rules=rules).success

    def test_get_requires_key(self, repo, rules) -> None:
        assert run_get(GetPostInput(), repo=repo, rules=rules).errors[0].code == "validation"

    def test_list(self, repo, rules, clock, author, other_user) -> None:
        _create(repo, rules, clock, author, title="Draft", published=False)
        clock.advance(1)
        _create(repo, rules, clock, other_user, title="Public")

        everyone = run_list(ListPostsInput(), repo=repo)
        assert [p.title for p in everyone.posts] == ["Public"]
        mine = run_list(ListPostsInput(user_id=author.id), repo=repo)
        assert [p.title for p in mine.posts] == ["Draft"]

    def test_view(self, repo, rules, clock, author, other_user) -> None:
        post = _create(repo, rules, clock, author).post
        likes = FakeRelationRepo()
        likes.add(other_user.id, post.id, uuid4(), clock.now)

        view = run_view(
            ViewPostInput(slug="hello-world", viewer=other_user),
            repo=repo,
            rules=rules,
            likes=likes,
            comments=FakeCommentCounts({post.id: 4}),
        )

        assert view.success
        assert view.like_count == 1
        assert view.is_liked
        assert view.comment_count == 4
        assert [h.text for h in view.document.headings] == ["Intro"]
        assert "pics/a.png" in view.document.html

    def test_view_missing(self, repo, rules) -> None:
        view = run_view(
            ViewPostInput(slug="nope"),
            repo=repo,
            rules=rules,
            likes=FakeRelationRepo(),
            comments=FakeCommentCounts(),
        )
        assert view.errors[0].code == "not_found"
