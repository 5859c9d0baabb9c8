from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime

PostStatus = Literal["draft", "published", "archived"]


class CategorySummary(BaseModel):
    id: int
    name: str
    slug: str
    color: Optional[str] = None

    class Config:
        from_attributes = True


class PostCreate(BaseModel):
    title: str = Field(..., max_length=200)
    content: str
    excerpt: Optional[str] = None
    slug: Optional[str] = None
    category_id: Optional[int] = None
    status: PostStatus = "published"
    cover_image_url: Optional[str] = Field(None, max_length=500)


class PostUpdate(BaseModel):
    """Partial update. Author, id, view count and timestamps are not writable."""
    title: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = None
    excerpt: Optional[str] = None
    slug: Optional[str] = None
    category_id: Optional[int] = None
    status: Optional[PostStatus] = None
    cover_image_url: Optional[str] = Field(None, max_length=500)


class PostResponse(BaseModel):
    id: int
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    status: str
    cover_image_url: Optional[str] = None
    view_count: int
    author_id: str
    category_id: Optional[int] = None
    category: Optional[CategorySummary] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SlugRequest(BaseModel):
    title: str


class SlugSuggestion(BaseModel):
    slug: str
    isUnique: bool
