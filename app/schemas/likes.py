from pydantic import BaseModel, ConfigDict, Field


class LikeToggle(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    post_id: int = Field(..., alias="postId")


class LikeState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    liked: bool
    total_likes: int = Field(..., alias="totalLikes")
