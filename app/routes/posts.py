"""
Posts routes: public reads of published posts and author-only mutations.
"""
from datetime import datetime, timezone
from typing import Callable, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..auth import Caller, get_current_caller, get_required_caller
from ..config import get_settings
from ..database import get_session_factory
from ..gateway import StoreGateway, get_gateway
from ..limiter import limiter
from ..logging_config import api_logger, db_logger, timed
from ..models import Category, Post
from ..ownership import require_owner
from ..pagination import PageParams, get_page_params
from ..responses import (
    conflict,
    created,
    deleted,
    not_found,
    paginated,
    require,
    success,
    unauthorized,
    updated,
    validation_error,
)
from ..schemas.posts import PostCreate, PostResponse, PostStatus, PostUpdate, SlugRequest, SlugSuggestion
from ..text import SLUG_MAX_LENGTH, is_valid_slug, make_excerpt, slugify, unique_slug

settings = get_settings()

router = APIRouter(prefix="/api/posts", tags=["posts"])

SORT_ORDERS = {
    "latest": (Post.created_at.desc(), Post.id.desc()),
    "oldest": (Post.created_at.asc(), Post.id.asc()),
    "popular": (Post.view_count.desc(), Post.created_at.desc(), Post.id.desc()),
}


def post_to_dict(post: Post) -> dict:
    return PostResponse.model_validate(post).model_dump(mode="json")


def slugs_with_prefix(gateway: StoreGateway, base: str) -> list:
    # suffixed variants of a long base are cut shorter than the base itself
    prefix = base[: SLUG_MAX_LENGTH - 10]
    rows = gateway.all(gateway.query(Post.slug).filter(Post.slug.like(f"{prefix}%")))
    return [row.slug for row in rows]


def derive_slug(gateway: StoreGateway, title: str) -> str:
    """Slug from a title, disambiguated against slugs already stored."""
    base = slugify(title)
    if not is_valid_slug(base):
        validation_error("Could not derive a slug from the title", {"field": "title"})
    return unique_slug(base, slugs_with_prefix(gateway, base))


def check_slug(slug: str) -> str:
    if not is_valid_slug(slug):
        validation_error(
            "Slugs may only contain lowercase letters, digits, Hangul and hyphens (max 100)",
            {"field": "slug"},
        )
    return slug


def check_category(gateway: StoreGateway, category_id: Optional[int]) -> None:
    if category_id is not None and gateway.get(Category, category_id) is None:
        validation_error(f"Category {category_id} does not exist", {"field": "category_id"})


@timed(db_logger)
def increment_view_count(session_factory: Callable[[], Session], post_id: int) -> None:
    """Best-effort view counter run after the response; a miss is logged, never raised."""
    session = session_factory()
    try:
        session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(view_count=Post.view_count + 1, updated_at=Post.updated_at)
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        db_logger.warning("View count increment failed", error=e, post_id=post_id)
    finally:
        session.close()


@router.get("")
def list_posts(
    category: Optional[str] = None,
    status: PostStatus = "published",
    sort: Literal["latest", "oldest", "popular"] = "latest",
    params: PageParams = Depends(get_page_params),
    caller: Optional[Caller] = Depends(get_current_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    """List posts, newest first by default.

    Anyone may list published posts. Drafts and archived posts are only
    listed for their author.
    """
    query = gateway.query(Post).filter(Post.status == status)

    if status != "published":
        if caller is None:
            unauthorized("Sign in to list unpublished posts")
        query = query.filter(Post.author_id == caller.id)

    if category:
        found = gateway.first(gateway.query(Category).filter(Category.slug == category))
        if found is None:
            return paginated([], 0, params.page, params.limit)
        query = query.filter(Post.category_id == found.id)

    total = gateway.count(query)
    posts = gateway.all(
        query.options(joinedload(Post.category))
        .order_by(*SORT_ORDERS[sort])
        .offset(params.offset)
        .limit(params.limit)
    )
    return paginated([post_to_dict(p) for p in posts], total, params.page, params.limit)


@router.post("/generate-slug")
def generate_slug(body: SlugRequest, gateway: StoreGateway = Depends(get_gateway)):
    """Suggest a free slug for a title."""
    require(body.title, "title")
    base = slugify(body.title)
    if not is_valid_slug(base):
        validation_error("Could not derive a slug from the title", {"field": "title"})

    slug = unique_slug(base, slugs_with_prefix(gateway, base))
    return success(SlugSuggestion(slug=slug, isUnique=slug == base).model_dump())


@router.get("/id/{post_id}")
def get_post_by_id(
    post_id: int,
    caller: Optional[Caller] = Depends(get_current_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    """Get a post by id. Unpublished posts are visible to their author only."""
    post = gateway.first(
        gateway.query(Post).options(joinedload(Post.category)).filter(Post.id == post_id)
    )
    if post is None:
        not_found("Post", post_id)
    if post.status != "published" and (caller is None or caller.id != post.author_id):
        not_found("Post", post_id)
    return success(post_to_dict(post))


@router.get("/{slug}")
def get_post_by_slug(
    slug: str,
    background_tasks: BackgroundTasks,
    gateway: StoreGateway = Depends(get_gateway),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """Get a published post by slug and count the view."""
    post = gateway.first(
        gateway.query(Post)
        .options(joinedload(Post.category))
        .filter(Post.slug == slug, Post.status == "published")
    )
    if post is None:
        not_found("Post", slug)

    data = post_to_dict(post)
    background_tasks.add_task(increment_view_count, session_factory, post.id)
    return success(data)


@router.post("", status_code=201)
@limiter.limit(settings.mutation_rate_limit)
def create_post(
    request: Request,
    post_data: PostCreate,
    caller: Caller = Depends(get_required_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    """Create a post owned by the caller."""
    require(post_data.title, "title")
    require(post_data.content, "content")

    if post_data.slug:
        slug = check_slug(post_data.slug)
    else:
        slug = derive_slug(gateway, post_data.title)
    check_category(gateway, post_data.category_id)

    post = Post(
        title=post_data.title.strip(),
        content=post_data.content,
        excerpt=post_data.excerpt or make_excerpt(post_data.content),
        slug=slug,
        author_id=caller.id,
        category_id=post_data.category_id,
        status=post_data.status,
        cover_image_url=post_data.cover_image_url,
        view_count=0,
    )
    try:
        gateway.insert(post)
    except IntegrityError:
        conflict(f"Slug '{slug}' is already in use", {"field": "slug"})

    api_logger.info("Post created", post_id=post.id, slug=post.slug, author_id=caller.id)
    return created(post_to_dict(post), "Post created")


@router.put("/{post_id}")
@limiter.limit(settings.mutation_rate_limit)
def update_post(
    request: Request,
    post_id: int,
    post_update: PostUpdate,
    caller: Caller = Depends(get_required_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    """Partially update a post (author only)."""
    post = gateway.get(Post, post_id)
    if post is None:
        not_found("Post", post_id)
    require_owner(post.author_id, caller, "post")

    update_data = post_update.model_dump(exclude_unset=True)
    nullable = {"excerpt", "category_id", "cover_image_url"}

    if update_data.get("title") is not None:
        require(update_data["title"], "title")
    if update_data.get("content") is not None:
        require(update_data["content"], "content")
    if update_data.get("slug") is not None:
        check_slug(update_data["slug"])
    if "category_id" in update_data:
        check_category(gateway, update_data["category_id"])

    for key, value in update_data.items():
        if value is None and key not in nullable:
            continue
        setattr(post, key, value)
    post.updated_at = datetime.now(timezone.utc)

    try:
        gateway.save(post)
    except IntegrityError:
        conflict(f"Slug '{update_data.get('slug')}' is already in use", {"field": "slug"})

    return updated(post_to_dict(post), "Post updated")


@router.delete("/{post_id}")
@limiter.limit(settings.mutation_rate_limit)
def delete_post(
    request: Request,
    post_id: int,
    caller: Caller = Depends(get_required_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    """Delete a post with its comments and likes (author only)."""
    post = gateway.get(Post, post_id)
    if post is None:
        not_found("Post", post_id)
    require_owner(post.author_id, caller, "post")

    gateway.delete(post)
    api_logger.info("Post deleted", post_id=post_id, author_id=caller.id)
    return deleted("Post deleted")
