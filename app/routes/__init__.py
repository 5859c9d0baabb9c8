from .posts import router as posts_router
from .categories import router as categories_router
from .comments import router as comments_router
from .likes import router as likes_router
from .health import router as health_router

__all__ = [
    "posts_router",
    "categories_router",
    "comments_router",
    "likes_router",
    "health_router",
]
