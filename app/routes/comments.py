"""
Comment routes. Anyone can read; signed-in users comment; authors edit and delete their own.
"""
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from ..auth import Caller, get_required_caller
from ..config import get_settings
from ..gateway import StoreGateway, get_gateway
from ..limiter import limiter
from ..logging_config import api_logger
from ..models import Comment, Post
from ..models.comment import COMMENT_MAX_LENGTH
from ..ownership import require_owner
from ..responses import created, deleted, not_found, success, updated, validation_error
from ..schemas.comments import CommentCreate, CommentResponse, CommentUpdate

settings = get_settings()

router = APIRouter(prefix="/api/comments", tags=["comments"])


def comment_to_dict(comment: Comment) -> dict:
    return CommentResponse.model_validate(comment).model_dump(mode="json")


def clean_content(content: str) -> str:
    """Trim comment text and enforce 1..COMMENT_MAX_LENGTH characters."""
    text = content.strip()
    if not text:
        validation_error("Comment content is required", {"field": "content"})
    if len(text) > COMMENT_MAX_LENGTH:
        validation_error(
            f"Comments are limited to {COMMENT_MAX_LENGTH} characters",
            {"field": "content", "length": len(text)},
        )
    return text


@router.get("")
def list_comments(
    post_id: Optional[int] = Query(None, alias="postId"),
    gateway: StoreGateway = Depends(get_gateway),
):
    """Comments on a post, newest first."""
    if post_id is None:
        validation_error("postId is required", {"field": "postId"})

    comments = gateway.all(
        gateway.query(Comment)
        .filter(Comment.post_id == post_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return success([comment_to_dict(c) for c in comments])


@router.post("", status_code=201)
@limiter.limit(settings.mutation_rate_limit)
def create_comment(
    request: Request,
    comment_data: CommentCreate,
    caller: Caller = Depends(get_required_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    content = clean_content(comment_data.content)
    if gateway.get(Post, comment_data.post_id) is None:
        not_found("Post", comment_data.post_id)

    comment = gateway.insert(Comment(post_id=comment_data.post_id, user_id=caller.id, content=content))
    api_logger.info("Comment created", comment_id=comment.id, post_id=comment.post_id, user_id=caller.id)
    return created(comment_to_dict(comment), "Comment created")


@router.put("/{comment_id}")
@limiter.limit(settings.mutation_rate_limit)
def update_comment(
    request: Request,
    comment_id: int,
    comment_update: CommentUpdate,
    caller: Caller = Depends(get_required_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    comment = gateway.get(Comment, comment_id)
    if comment is None:
        not_found("Comment", comment_id)
    require_owner(comment.user_id, caller, "comment")

    comment.content = clean_content(comment_update.content)
    comment.updated_at = datetime.now(timezone.utc)
    gateway.save(comment)
    return updated(comment_to_dict(comment), "Comment updated")


@router.delete("/{comment_id}")
@limiter.limit(settings.mutation_rate_limit)
def delete_comment(
    request: Request,
    comment_id: int,
    caller: Caller = Depends(get_required_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    comment = gateway.get(Comment, comment_id)
    if comment is None:
        not_found("Comment", comment_id)
    require_owner(comment.user_id, caller, "comment")

    gateway.delete(comment)
    return deleted("Comment deleted")
