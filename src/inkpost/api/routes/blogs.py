from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from inkpost.adapters.clock import SystemClock
from inkpost.adapters.sqlite.repos import (
    SQLiteBlogCommentRepo,
    SQLitePostRepo,
    SQLiteRelationRepo,
)
from inkpost.api.deps import (
    get_blog_comment_repo,
    get_blog_like_repo,
    get_clock,
    get_current_user,
    get_image_store,
    get_optional_user,
    get_policy,
    get_post_repo,
    get_rules,
)
from inkpost.api.errors import raise_for_errors
from inkpost.api.schemas import (
    BlogCommentCreated,
    BlogCommentListResponse,
    BlogCommentResponse,
    BlogCreateRequest,
    BlogCreateResponse,
    BlogDetail,
    BlogListResponse,
    BlogPatchRequest,
    BlogRef,
    BlogSummary,
    BlogUpdateRequest,
    BlogUpdateResponse,
    CommentCreateRequest,
    ComponentRef,
    HeadingModel,
    LikeStatusResponse,
    LikeToggleResponse,
    OutlineNodeModel,
    PostStatsModel,
    StatsRequest,
    StatsResponse,
    SuccessResponse,
)
from inkpost.components.comments import (
    AddCommentInput,
    DeleteCommentInput,
    run_add_blog_comment,
    run_delete_blog_comment,
    run_list_blog_comments,
)
from inkpost.components.engagement import (
    ToggleInput,
    like_status,
    parse_ids,
    post_stats,
    toggle_post_like,
)
from inkpost.components.images import ImageStorePort
from inkpost.components.mapper import resolve_image_url
from inkpost.components.posts import (
    CreatePostInput,
    DeletePostInput,
    ListPostsInput,
    PatchPostInput,
    UpdatePostInput,
    ViewPostInput,
    run_create,
    run_delete,
    run_list,
    run_patch,
    run_update,
    run_view,
)
from inkpost.domain.entities import BlogComment, Post, User
from inkpost.domain.policy import PolicyEngine
from inkpost.rules.models import Rules

router = APIRouter()


def _summary_fields(post: Post, rules: Rules) -> dict[str, Any]:
    data = post.model_dump()
    data["thumbnail_url"] = resolve_image_url(rules.images.public_origin, post.thumbnail_key)
    return data


def _summary(post: Post, rules: Rules) -> BlogSummary:
    return BlogSummary.model_validate(_summary_fields(post, rules))


def _comment(comment: BlogComment) -> BlogCommentResponse:
    return BlogCommentResponse.model_validate(comment.model_dump())


# --- Listing and stats ---


@router.get("", response_model=BlogListResponse)
def list_blogs(
    user_id: UUID | None = Query(default=None, alias="userId"),
    repo: SQLitePostRepo = Depends(get_post_repo),
    rules: Rules = Depends(get_rules),
) -> BlogListResponse:
    """Published posts, or every post of `userId` (drafts included)."""
    result = run_list(ListPostsInput(user_id=user_id), repo=repo)
    return BlogListResponse(blogs=[_summary(p, rules) for p in result.posts])


@router.post("/stats", response_model=StatsResponse)
def blog_stats(
    req: StatsRequest,
    viewer: User | None = Depends(get_optional_user),
    likes: SQLiteRelationRepo = Depends(get_blog_like_repo),
    comments: SQLiteBlogCommentRepo = Depends(get_blog_comment_repo),
) -> StatsResponse:
    if not isinstance(req.blog_ids, list):
        raise HTTPException(status_code=400, detail="blogIds must be an array")
    stats = post_stats(parse_ids(req.blog_ids), viewer, likes=likes, comments=comments)
    return StatsResponse(
        stats={
            str(blog_id): PostStatsModel(
                like_count=s.like_count, comment_count=s.comment_count, is_liked=s.is_liked
            )
            for blog_id, s in stats.items()
        }
    )


@router.get("/slug/{slug}", response_model=BlogDetail)
def get_blog_by_slug(
    slug: str,
    viewer: User | None = Depends(get_optional_user),
    repo: SQLitePostRepo = Depends(get_post_repo),
    rules: Rules = Depends(get_rules),
    likes: SQLiteRelationRepo = Depends(get_blog_like_repo),
    comments: SQLiteBlogCommentRepo = Depends(get_blog_comment_repo),
) -> BlogDetail:
    """Post page: blocks for the editor plus rendered HTML and outline."""
    result = run_view(
        ViewPostInput(slug=slug, viewer=viewer),
        repo=repo,
        rules=rules,
        likes=likes,
        comments=comments,
    )
    if not result.success or result.post is None:
        raise_for_errors(result.errors)
    assert result.blocks is not None and result.document is not None

    wire = result.blocks.to_wire()
    document = result.document
    return BlogDetail(
        **_summary_fields(result.post, rules),
        components=[ComponentRef.model_validate(c) for c in wire["components"]],
        component_data=wire["componentData"],
        html=document.html,
        headings=[HeadingModel(id=h.id, text=h.text, level=h.level) for h in document.headings],
        outline=[OutlineNodeModel.model_validate(node.to_dict()) for node in document.outline],
        activation_threshold_px=rules.outline.activation_threshold_px,
        like_count=result.like_count,
        comment_count=result.comment_count,
        is_liked=result.is_liked,
    )


# --- Writes ---


@router.post("/create", response_model=BlogCreateResponse)
def create_blog(
    req: BlogCreateRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLitePostRepo = Depends(get_post_repo),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> BlogCreateResponse:
    inp = CreatePostInput(
        user=current_user,
        title=req.title,
        short_description=req.short_description,
        tags=req.tags,
        slug=req.slug,
        thumbnail_key=req.thumbnail_key,
        components=req.content.components,
        component_data=req.content.component_data,
        published=req.published,
    )
    result = run_create(inp, repo=repo, rules=rules, time_port=clock)
    if not result.success or result.post is None:
        raise_for_errors(result.errors)

    return BlogCreateResponse(
        blog=BlogRef(id=result.post.id, slug=result.post.slug),
        message="Blog created successfully",
    )


@router.put("/{blog_id}", response_model=BlogUpdateResponse)
def update_blog(
    blog_id: UUID,
    req: BlogUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLitePostRepo = Depends(get_post_repo),
    rules: Rules = Depends(get_rules),
    policy: PolicyEngine = Depends(get_policy),
    clock: SystemClock = Depends(get_clock),
    images: ImageStorePort = Depends(get_image_store),
) -> BlogUpdateResponse:
    inp = UpdatePostInput(
        user=current_user,
        post_id=blog_id,
        title=req.title,
        short_description=req.short_description,
        tags=req.tags,
        thumbnail_key=req.thumbnail_key,
        components=req.components,
        component_data=req.component_data,
        published=req.published,
    )
    result = run_update(
        inp, repo=repo, rules=rules, policy=policy, time_port=clock, images=images
    )
    if not result.success or result.post is None:
        raise_for_errors(result.errors)

    return BlogUpdateResponse(
        blog=BlogRef(id=result.post.id, slug=result.post.slug),
        removed_image_keys=list(result.removed_image_keys),
    )


@router.patch("/{blog_id}", response_model=BlogUpdateResponse)
def patch_blog(
    blog_id: UUID,
    req: BlogPatchRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLitePostRepo = Depends(get_post_repo),
    rules: Rules = Depends(get_rules),
    policy: PolicyEngine = Depends(get_policy),
    clock: SystemClock = Depends(get_clock),
    images: ImageStorePort = Depends(get_image_store),
) -> BlogUpdateResponse:
    # An explicit null thumbnail clears it; an absent one leaves it alone.
    clear_thumbnail = "thumbnail_key" in req.model_fields_set and not req.thumbnail_key
    inp = PatchPostInput(
        user=current_user,
        post_id=blog_id,
        title=req.title,
        short_description=req.short_description,
        tags=req.tags,
        thumbnail_key=req.thumbnail_key or None,
        clear_thumbnail=clear_thumbnail,
        published=req.published,
    )
    result = run_patch(inp, repo=repo, rules=rules, policy=policy, time_port=clock, images=images)
    if not result.success or result.post is None:
        raise_for_errors(result.errors)

    return BlogUpdateResponse(
        blog=BlogRef(id=result.post.id, slug=result.post.slug),
        removed_image_keys=list(result.removed_image_keys),
    )


@router.delete("/{blog_id}", response_model=SuccessResponse)
def delete_blog(
    blog_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: SQLitePostRepo = Depends(get_post_repo),
    policy: PolicyEngine = Depends(get_policy),
    images: ImageStorePort = Depends(get_image_store),
) -> SuccessResponse:
    result = run_delete(
        DeletePostInput(user=current_user, post_id=blog_id),
        repo=repo,
        policy=policy,
        images=images,
    )
    if not result.success:
        raise_for_errors(result.errors)
    return SuccessResponse()


# --- Likes ---


@router.get("/{blog_id}/like", response_model=LikeStatusResponse)
def get_like_status(
    blog_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    likes: SQLiteRelationRepo = Depends(get_blog_like_repo),
) -> LikeStatusResponse:
    count, is_liked = like_status(blog_id, viewer, likes=likes)
    return LikeStatusResponse(like_count=count, is_liked=is_liked)


@router.post("/{blog_id}/like", response_model=LikeToggleResponse)
def toggle_like(
    blog_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: SQLitePostRepo = Depends(get_post_repo),
    likes: SQLiteRelationRepo = Depends(get_blog_like_repo),
    clock: SystemClock = Depends(get_clock),
) -> LikeToggleResponse:
    result = toggle_post_like(
        ToggleInput(user=current_user, target_id=blog_id),
        likes=likes,
        lookup=repo.get_by_id,
        time_port=clock,
    )
    if not result.success:
        raise_for_errors(result.errors)
    return LikeToggleResponse(liked=result.active, like_count=result.count)


# --- Comments ---


@router.get("/{blog_id}/comments", response_model=BlogCommentListResponse)
def list_comments(
    blog_id: UUID,
    repo: SQLitePostRepo = Depends(get_post_repo),
    comments: SQLiteBlogCommentRepo = Depends(get_blog_comment_repo),
) -> BlogCommentListResponse:
    result = run_list_blog_comments(blog_id, repo=comments, posts=repo.get_by_id)
    if not result.success:
        raise_for_errors(result.errors)
    return BlogCommentListResponse(comments=[_comment(c) for c in result.comments])


@router.post("/{blog_id}/comments", response_model=BlogCommentCreated, status_code=201)
def add_comment(
    blog_id: UUID,
    req: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLitePostRepo = Depends(get_post_repo),
    comments: SQLiteBlogCommentRepo = Depends(get_blog_comment_repo),
    clock: SystemClock = Depends(get_clock),
) -> BlogCommentCreated:
    result = run_add_blog_comment(
        AddCommentInput(user=current_user, parent_id=blog_id, content=req.content),
        repo=comments,
        posts=repo.get_by_id,
        time_port=clock,
    )
    if not result.success or result.comment is None:
        raise_for_errors(result.errors)
    assert isinstance(result.comment, BlogComment)
    return BlogCommentCreated(comment=_comment(result.comment))


@router.delete("/{blog_id}/comments/{comment_id}", response_model=SuccessResponse)
def delete_comment(
    blog_id: UUID,
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: SQLitePostRepo = Depends(get_post_repo),
    comments: SQLiteBlogCommentRepo = Depends(get_blog_comment_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> SuccessResponse:
    result = run_delete_blog_comment(
        DeleteCommentInput(user=current_user, comment_id=comment_id, parent_id=blog_id),
        repo=comments,
        posts=repo.get_by_id,
        policy=policy,
    )
    if not result.success:
        raise_for_errors(result.errors)
    return SuccessResponse()
