"""
Category routes. Categories are shared taxonomy with no owner.
"""
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from ..auth import Caller, get_current_caller
from ..config import get_settings
from ..gateway import StoreGateway, get_gateway
from ..limiter import limiter
from ..logging_config import api_logger
from ..models import Category, Post
from ..models.category import DEFAULT_CATEGORY_COLOR
from ..ownership import require_category_editor
from ..pagination import PageParams, get_page_params
from ..responses import conflict, created, deleted, not_found, paginated, require, success, updated, validation_error
from ..schemas.categories import CategoryCreate, CategoryResponse, CategoryUpdate
from ..text import is_valid_slug
from .posts import post_to_dict

settings = get_settings()

router = APIRouter(prefix="/api/categories", tags=["categories"])


def category_to_dict(category: Category) -> dict:
    return CategoryResponse.model_validate(category).model_dump(mode="json")


def find_by_slug(gateway: StoreGateway, slug: str) -> Category:
    category = gateway.first(gateway.query(Category).filter(Category.slug == slug))
    if category is None:
        not_found("Category", slug)
    return category


def report_duplicate(gateway: StoreGateway, name: Optional[str], slug: Optional[str], exclude_id: Optional[int] = None):
    """Turn a unique violation into a message naming the clashing field."""
    query = gateway.query(Category)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)

    if slug and gateway.first(query.filter(Category.slug == slug)) is not None:
        conflict(f"Category slug '{slug}' is already in use", {"field": "slug"})
    conflict(f"Category name '{name}' is already in use", {"field": "name"})


@router.get("")
def list_categories(
    include_post_count: bool = Query(False, alias="includePostCount"),
    gateway: StoreGateway = Depends(get_gateway),
):
    """List categories by name, optionally with their published post counts."""
    categories = gateway.all(gateway.query(Category).order_by(Category.name.asc()))
    data = [category_to_dict(c) for c in categories]

    if include_post_count:
        rows = gateway.all(
            gateway.query(Post.category_id, func.count(Post.id))
            .filter(Post.status == "published", Post.category_id.isnot(None))
            .group_by(Post.category_id)
        )
        counts = {category_id: count for category_id, count in rows}
        for item in data:
            item["post_count"] = counts.get(item["id"], 0)

    return success(data)


@router.get("/{slug}")
def get_category(slug: str, gateway: StoreGateway = Depends(get_gateway)):
    return success(category_to_dict(find_by_slug(gateway, slug)))


@router.get("/{slug}/posts")
def list_category_posts(
    slug: str,
    params: PageParams = Depends(get_page_params),
    gateway: StoreGateway = Depends(get_gateway),
):
    """Published posts of one category, newest first."""
    category = find_by_slug(gateway, slug)
    query = gateway.query(Post).filter(Post.category_id == category.id, Post.status == "published")

    total = gateway.count(query)
    posts = gateway.all(
        query.options(joinedload(Post.category))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset(params.offset)
        .limit(params.limit)
    )
    return paginated(
        [post_to_dict(p) for p in posts],
        total,
        params.page,
        params.limit,
        category=category_to_dict(category),
    )


@router.post("", status_code=201)
@limiter.limit(settings.mutation_rate_limit)
def create_category(
    request: Request,
    category_data: CategoryCreate,
    caller: Optional[Caller] = Depends(get_current_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    """Create a category."""
    require_category_editor(caller, settings)
    require(category_data.name, "name")
    require(category_data.slug, "slug")
    if not is_valid_slug(category_data.slug):
        validation_error("Invalid category slug", {"field": "slug"})

    category = Category(
        name=category_data.name.strip(),
        slug=category_data.slug,
        description=category_data.description or None,
        color=category_data.color or DEFAULT_CATEGORY_COLOR,
    )
    try:
        gateway.insert(category)
    except IntegrityError:
        report_duplicate(gateway, category.name, category.slug)

    api_logger.info("Category created", category_id=category.id, slug=category.slug, caller_id=caller.id)
    return created(category_to_dict(category), "Category created")


@router.put("/{category_id}")
@limiter.limit(settings.mutation_rate_limit)
def update_category(
    request: Request,
    category_id: int,
    category_update: CategoryUpdate,
    caller: Optional[Caller] = Depends(get_current_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    require_category_editor(caller, settings)
    category = gateway.get(Category, category_id)
    if category is None:
        not_found("Category", category_id)

    update_data = category_update.model_dump(exclude_unset=True)
    if update_data.get("name") is not None:
        require(update_data["name"], "name")
    if update_data.get("slug") is not None and not is_valid_slug(update_data["slug"]):
        validation_error("Invalid category slug", {"field": "slug"})

    for key, value in update_data.items():
        if value is None and key in ("name", "slug"):
            continue
        setattr(category, key, value)
    category.updated_at = datetime.now(timezone.utc)

    try:
        gateway.save(category)
    except IntegrityError:
        report_duplicate(gateway, update_data.get("name"), update_data.get("slug"), exclude_id=category_id)

    return updated(category_to_dict(category), "Category updated")


@router.delete("/{category_id}")
@limiter.limit(settings.mutation_rate_limit)
def delete_category(
    request: Request,
    category_id: int,
    caller: Optional[Caller] = Depends(get_current_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    """Delete a category; its posts become uncategorized."""
    require_category_editor(caller, settings)
    category = gateway.get(Category, category_id)
    if category is None:
        not_found("Category", category_id)

    gateway.delete(category)
    api_logger.info("Category deleted", category_id=category_id, caller_id=caller.id)
    return deleted("Category deleted")
