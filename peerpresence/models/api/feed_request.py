from typing import Any

from pydantic import Field

from peerpresence.models.api.base import ApiModel


class VoteRequest(ApiModel):
    value: Any = Field(default=None, description="1 or -1")


class CreatePostRequest(ApiModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    image_url: str = ""


class ReviewRequest(ApiModel):
    rating: Any = None
    comment: str = ""
