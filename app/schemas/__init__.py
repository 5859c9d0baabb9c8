from .posts import PostCreate, PostUpdate, PostResponse, CategorySummary, SlugRequest, SlugSuggestion
from .categories import CategoryCreate, CategoryUpdate, CategoryResponse
from .comments import CommentCreate, CommentUpdate, CommentResponse
from .likes import LikeToggle, LikeState

__all__ = [
    "PostCreate", "PostUpdate", "PostResponse", "CategorySummary", "SlugRequest", "SlugSuggestion",
    "CategoryCreate", "CategoryUpdate", "CategoryResponse",
    "CommentCreate", "CommentUpdate", "CommentResponse",
    "LikeToggle", "LikeState",
]
