"""
Like routes: a per-(post, user) toggle with a freshly counted total.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import IntegrityError

from ..auth import Caller, get_current_caller, get_required_caller
from ..config import get_settings
from ..gateway import StoreGateway, get_gateway
from ..limiter import limiter
from ..logging_config import db_logger
from ..models import Like, Post
from ..responses import not_found, success, validation_error
from ..schemas.likes import LikeState, LikeToggle

settings = get_settings()

router = APIRouter(prefix="/api/likes", tags=["likes"])


def ensure_post(gateway: StoreGateway, post_id: int) -> None:
    if gateway.get(Post, post_id) is None:
        not_found("Post", post_id)


def like_state(gateway: StoreGateway, post_id: int, liked: bool) -> dict:
    """Envelope data for a post's like state; the total is always re-read from the store."""
    total = gateway.count(gateway.query(Like).filter(Like.post_id == post_id))
    return LikeState(liked=liked, total_likes=total).model_dump(by_alias=True)


def find_like(gateway: StoreGateway, post_id: int, user_id: str) -> Optional[Like]:
    return gateway.first(
        gateway.query(Like).filter(Like.post_id == post_id, Like.user_id == user_id)
    )


@router.get("")
def get_like_status(
    post_id: Optional[int] = Query(None, alias="postId"),
    caller: Optional[Caller] = Depends(get_current_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    """Total likes for a post and whether the caller is one of them."""
    if post_id is None:
        validation_error("postId is required", {"field": "postId"})
    ensure_post(gateway, post_id)

    liked = caller is not None and find_like(gateway, post_id, caller.id) is not None
    return success(like_state(gateway, post_id, liked))


@router.post("")
@limiter.limit(settings.mutation_rate_limit)
def toggle_like(
    request: Request,
    body: LikeToggle,
    caller: Caller = Depends(get_required_caller),
    gateway: StoreGateway = Depends(get_gateway),
):
    """Like the post if the caller has not, otherwise remove the like."""
    ensure_post(gateway, body.post_id)

    existing = find_like(gateway, body.post_id, caller.id)
    if existing is not None:
        gateway.delete(existing)
        liked = False
    else:
        try:
            gateway.insert(Like(post_id=body.post_id, user_id=caller.id))
        except IntegrityError:
            # either a concurrent toggle inserted the row first or the post is gone
            if find_like(gateway, body.post_id, caller.id) is None:
                not_found("Post", body.post_id)
            db_logger.info("Like already recorded", post_id=body.post_id, user_id=caller.id)
        liked = True

    return success(like_state(gateway, body.post_id, liked))
