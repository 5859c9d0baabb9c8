from .category import Category
from .post import Post
from .comment import Comment
from .like import Like

__all__ = [
    "Category",
    "Post",
    "Comment",
    "Like",
]
