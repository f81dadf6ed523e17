"""
Posts component - create, update, delete and read block-based posts.

Key behaviors:
- Title, short description and at least one tag are required; checked
  before anything is written
- Create rejects a taken slug, including one taken by a concurrent
  write; a title change on update regenerates the slug with a numeric
  suffix when needed
- Block updates are an in-place diff applied in one transaction
- Only the owner may update or delete a post
- Image cleanup is best-effort and never fails the request
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from uuid import UUID

from inkpost.components.drafts import split_tags
from inkpost.components.images import delete_images
from inkpost.components.mapper import (
    diff_blocks,
    from_storage_rows,
    parse_submission,
    to_storage_rows,
)
from inkpost.components.render import render_document
from inkpost.domain.blocks import BlockValidator
from inkpost.domain.entities import Post, StorageRow, User
from inkpost.domain.policy import PolicyEngine
from inkpost.domain.slugs import SlugTakenError, disambiguate_slug, slugify
from inkpost.rules.models import Rules

from .models import (
    CreatePostInput,
    DeletePostInput,
    GetPostInput,
    ListPostsInput,
    PatchPostInput,
    PostListOutput,
    PostOutput,
    PostValidationError,
    PostViewOutput,
    UpdatePostInput,
    ViewPostInput,
)
from .ports import CommentCountPort, ImageStorePort, LikeCountPort, PostRepoPort, TimePort

logger = logging.getLogger(__name__)

SLUG_WRITE_ATTEMPTS = 3
SLUG_EXISTS_MESSAGE = (
    "A blog with this URL already exists. Please modify the title to generate a unique URL."
)


def _fail(code: str, message: str, field: str | None = None) -> PostOutput:
    return PostOutput(post=None, errors=[PostValidationError(code, message, field)], success=False)


# --- Validation ---


def validate_metadata(
    rules: Rules,
    *,
    title: str | None,
    short_description: str | None,
    tags: list[str] | None,
    partial: bool = False,
) -> list[PostValidationError]:
    """
    Check required fields and configured limits.

    With partial=True, fields passed as None are skipped.
    """
    errors: list[PostValidationError] = []
    posts = rules.posts

    if title is not None or not partial:
        t = (title or "").strip()
        if not t:
            errors.append(PostValidationError("validation", "Title is required", "title"))
        elif len(t) > posts.title.max:
            errors.append(
                PostValidationError(
                    "validation", f"Title must be at most {posts.title.max} characters", "title"
                )
            )

    if short_description is not None or not partial:
        d = (short_description or "").strip()
        if not d:
            errors.append(
                PostValidationError(
                    "validation", "Short description is required", "short_description"
                )
            )
        elif len(d) > posts.short_description.max:
            errors.append(
                PostValidationError(
                    "validation",
                    f"Short description must be at most {posts.short_description.max} characters",
                    "short_description",
                )
            )

    if tags is not None or not partial:
        if not tags:
            errors.append(PostValidationError("validation", "At least one tag is required", "tags"))
        elif len(tags) > posts.max_tags:
            errors.append(
                PostValidationError(
                    "validation", f"At most {posts.max_tags} tags are allowed", "tags"
                )
            )

    return errors


def _normalize_tags(tags: list[str] | str | None) -> list[str] | None:
    if tags is None:
        return None
    return split_tags(tags)


def _slug_is_valid(slug: str, rules: Rules) -> bool:
    return bool(re.match(rules.posts.slug_pattern, slug))


def _rows_for_submission(
    components: list[dict],
    component_data: dict,
    rules: Rules,
) -> tuple[list, dict] | PostValidationError:
    try:
        blocks, payloads = parse_submission(components, component_data)
        BlockValidator(rules.blocks).validate([payloads[b.id] for b in blocks])
    except ValueError as e:
        return PostValidationError("validation", str(e), "content")
    return blocks, payloads


def _image_keys(rows: list[StorageRow]) -> set[str]:
    return {row.image_key for row in rows if row.image_key}


def _unused_image_keys(
    old_rows: list[StorageRow],
    old_thumbnail: str | None,
    new_rows: list[StorageRow],
    new_thumbnail: str | None,
) -> tuple[str, ...]:
    """Keys the post referenced before a change and no longer references anywhere."""
    before = _image_keys(old_rows) | ({old_thumbnail} if old_thumbnail else set())
    after = _image_keys(new_rows) | ({new_thumbnail} if new_thumbnail else set())
    return tuple(sorted(before - after))


def _write_post(
    repo: PostRepoPort, post: Post, write: Callable[[Post], Post]
) -> Post | None:
    """
    Run a metadata write; when another post took the slug in the meantime,
    move to the next free suffix and try again.

    Returns None if every attempt lost the race.
    """
    base = slugify(post.title)
    for _ in range(SLUG_WRITE_ATTEMPTS):
        try:
            return write(post)
        except SlugTakenError as e:
            slug = disambiguate_slug(base, lambda s: repo.slug_exists(s, exclude_id=post.id))
            logger.info("Slug %s was taken concurrently, retrying as %s", e.slug, slug)
            post = post.model_copy(update={"slug": slug})
    return None


# --- Component Entry Points ---


def run_create(
    inp: CreatePostInput,
    *,
    repo: PostRepoPort,
    rules: Rules,
    time_port: TimePort,
) -> PostOutput:
    """Validate and persist a new post with its blocks in one transaction."""
    if inp.user is None:
        return _fail("auth_required", "Authentication required")

    tags = _normalize_tags(inp.tags)
    errors = validate_metadata(
        rules, title=inp.title, short_description=inp.short_description, tags=tags
    )
    if errors:
        return PostOutput(post=None, errors=errors, success=False)

    title = inp.title.strip()
    slug = slugify(inp.slug) if inp.slug else slugify(title)
    if not slug or not _slug_is_valid(slug, rules):
        return _fail("validation", "Title must contain letters or numbers", "slug")

    parsed = _rows_for_submission(inp.components, inp.component_data, rules)
    if isinstance(parsed, PostValidationError):
        return PostOutput(post=None, errors=[parsed], success=False)
    blocks, payloads = parsed

    if repo.slug_exists(slug):
        return _fail("slug_exists", SLUG_EXISTS_MESSAGE, "slug")

    now = time_port.now_utc()
    post = Post(
        title=title,
        slug=slug,
        short_description=inp.short_description.strip(),
        tags=tags or [],
        thumbnail_key=inp.thumbnail_key or None,
        published=inp.published,
        user_id=inp.user.id,
        created_at=now,
        updated_at=now,
    )
    rows = to_storage_rows(blocks, payloads, post.id)
    try:
        repo.create(post, rows)
    except SlugTakenError:
        logger.info("Slug %s was taken concurrently", slug)
        return _fail("slug_exists", SLUG_EXISTS_MESSAGE, "slug")
    return PostOutput(post=post, blocks=from_storage_rows(rows, rules.images.public_origin))


def _load_owned(
    repo: PostRepoPort, policy: PolicyEngine, user: User | None, post_id: UUID
) -> Post | PostOutput:
    if user is None:
        return _fail("auth_required", "Authentication required")
    post = repo.get_by_id(post_id)
    if post is None:
        return _fail("not_found", "Blog not found")
    if not policy.can_edit_post(user, post):
        return _fail("forbidden", "You can only modify your own blogs")
    return post


def _regenerate_slug(repo: PostRepoPort, post: Post, title: str) -> str:
    base = slugify(title)
    if base == post.slug:
        return post.slug
    return disambiguate_slug(base, lambda s: repo.slug_exists(s, exclude_id=post.id))


def run_update(
    inp: UpdatePostInput,
    *,
    repo: PostRepoPort,
    rules: Rules,
    policy: PolicyEngine,
    time_port: TimePort,
    images: ImageStorePort | None = None,
) -> PostOutput:
    """
    Owner-only full update.

    Blocks are matched by id against the stored rows: changed rows are
    updated, new ones inserted and missing ones deleted, all in one
    transaction. Image keys no longer referenced are returned and deleted
    best-effort.
    """
    loaded = _load_owned(repo, policy, inp.user, inp.post_id)
    if isinstance(loaded, PostOutput):
        return loaded
    post = loaded

    tags = _normalize_tags(inp.tags)
    errors = validate_metadata(
        rules, title=inp.title, short_description=inp.short_description, tags=tags
    )
    if errors:
        return PostOutput(post=None, errors=errors, success=False)

    title = inp.title.strip()
    slug = post.slug
    if title != post.title:
        slug = _regenerate_slug(repo, post, title)
        if not slug or not _slug_is_valid(slug, rules):
            return _fail("validation", "Title must contain letters or numbers", "title")

    diff = None
    existing_rows = repo.get_rows(post.id)
    new_rows = existing_rows
    if inp.components is not None:
        parsed = _rows_for_submission(inp.components, inp.component_data, rules)
        if isinstance(parsed, PostValidationError):
            return PostOutput(post=None, errors=[parsed], success=False)
        blocks, payloads = parsed
        new_rows = to_storage_rows(blocks, payloads, post.id, keep_ids=True)
        diff = diff_blocks(existing_rows, new_rows)

    new_thumbnail = inp.thumbnail_key or None
    removed = _unused_image_keys(existing_rows, post.thumbnail_key, new_rows, new_thumbnail)

    updated = post.model_copy(
        update={
            "title": title,
            "slug": slug,
            "short_description": inp.short_description.strip(),
            "tags": tags or [],
            "thumbnail_key": new_thumbnail,
            "published": post.published if inp.published is None else inp.published,
            "updated_at": time_port.now_utc(),
        }
    )
    if diff is None:
        written = _write_post(repo, updated, repo.save_metadata)
    else:
        written = _write_post(
            repo,
            updated,
            lambda p: repo.apply_update(
                p,
                to_update=diff.to_update,
                to_insert=diff.to_insert,
                to_delete=diff.to_delete,
            ),
        )
    if written is None:
        return _fail("slug_exists", SLUG_EXISTS_MESSAGE, "slug")

    delete_images(removed, images)
    return PostOutput(
        post=written,
        blocks=from_storage_rows(repo.get_rows(post.id), rules.images.public_origin),
        removed_image_keys=removed,
    )


def run_patch(
    inp: PatchPostInput,
    *,
    repo: PostRepoPort,
    rules: Rules,
    policy: PolicyEngine,
    time_port: TimePort,
    images: ImageStorePort | None = None,
) -> PostOutput:
    """Owner-only partial metadata update."""
    loaded = _load_owned(repo, policy, inp.user, inp.post_id)
    if isinstance(loaded, PostOutput):
        return loaded
    post = loaded

    tags = _normalize_tags(inp.tags)
    errors = validate_metadata(
        rules,
        title=inp.title,
        short_description=inp.short_description,
        tags=tags,
        partial=True,
    )
    if errors:
        return PostOutput(post=None, errors=errors, success=False)

    updates: dict = {"updated_at": time_port.now_utc()}
    if inp.title is not None and inp.title.strip() != post.title:
        title = inp.title.strip()
        slug = _regenerate_slug(repo, post, title)
        if not slug or not _slug_is_valid(slug, rules):
            return _fail("validation", "Title must contain letters or numbers", "title")
        updates["title"] = title
        updates["slug"] = slug
    if inp.short_description is not None:
        updates["short_description"] = inp.short_description.strip()
    if tags is not None:
        updates["tags"] = tags
    if inp.published is not None:
        updates["published"] = inp.published

    removed: tuple[str, ...] = ()
    if inp.clear_thumbnail or inp.thumbnail_key is not None:
        new_thumbnail = None if inp.clear_thumbnail else inp.thumbnail_key
        rows = repo.get_rows(post.id)
        removed = _unused_image_keys(rows, post.thumbnail_key, rows, new_thumbnail)
        updates["thumbnail_key"] = new_thumbnail

    updated = post.model_copy(update=updates)
    written = _write_post(repo, updated, repo.save_metadata)
    if written is None:
        return _fail("slug_exists", SLUG_EXISTS_MESSAGE, "slug")
    delete_images(removed, images)
    return PostOutput(post=written, removed_image_keys=removed)


def run_delete(
    inp: DeletePostInput,
    *,
    repo: PostRepoPort,
    policy: PolicyEngine,
    images: ImageStorePort | None = None,
) -> PostOutput:
    """Owner-only delete; blocks go with the post, images are cleaned up after."""
    if inp.user is None:
        return _fail("auth_required", "Authentication required")
    post = repo.get_by_id(inp.post_id)
    if post is None:
        return _fail("not_found", "Blog not found")
    if not policy.can_delete_post(inp.user, post):
        return _fail("forbidden", "You can only delete your own blogs")

    keys = _image_keys(repo.get_rows(post.id))
    if post.thumbnail_key:
        keys.add(post.thumbnail_key)

    repo.delete(post.id)
    removed = tuple(sorted(keys))
    delete_images(removed, images)
    return PostOutput(post=post, removed_image_keys=removed)


def _visible(post: Post, viewer: User | None) -> bool:
    return post.published or PolicyEngine.owns(viewer, post)


def run_get(inp: GetPostInput, *, repo: PostRepoPort, rules: Rules) -> PostOutput:
    if inp.slug is not None:
        post = repo.get_by_slug(inp.slug)
    elif inp.post_id is not None:
        post = repo.get_by_id(inp.post_id)
    else:
        return _fail("validation", "A slug or id is required")

    if post is None or not _visible(post, inp.viewer):
        return _fail("not_found", "Blog not found")
    blocks = from_storage_rows(repo.get_rows(post.id), rules.images.public_origin)
    return PostOutput(post=post, blocks=blocks)


def run_list(inp: ListPostsInput, *, repo: PostRepoPort) -> PostListOutput:
    """A user's posts (drafts included), or every published post. Newest first."""
    if inp.user_id is not None:
        posts = repo.list(user_id=inp.user_id, published_only=False)
    else:
        posts = repo.list(published_only=True)
    return PostListOutput(posts=posts, total=len(posts))


def run_view(
    inp: ViewPostInput,
    *,
    repo: PostRepoPort,
    rules: Rules,
    likes: LikeCountPort,
    comments: CommentCountPort,
) -> PostViewOutput:
    """Everything the post page needs: blocks, rendered HTML, outline and counts."""
    found = run_get(GetPostInput(slug=inp.slug, viewer=inp.viewer), repo=repo, rules=rules)
    if not found.success or found.post is None or found.blocks is None:
        return PostViewOutput(post=None, errors=found.errors, success=False)

    post, blocks = found.post, found.blocks
    document = render_document(blocks.blocks, blocks.payloads, rules.images.public_origin)
    return PostViewOutput(
        post=post,
        blocks=blocks,
        document=document,
        like_count=likes.count(post.id),
        comment_count=comments.count_by_blog([post.id]).get(post.id, 0),
        is_liked=inp.viewer is not None and likes.exists(inp.viewer.id, post.id),
    )

