from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class CommentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    post_id: int = Field(..., alias="postId")
    content: str


class CommentUpdate(BaseModel):
    content: str


class CommentResponse(BaseModel):
    id: int
    post_id: int
    user_id: str
    content: str
    parent_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
