from datetime import datetime

from pydantic import BaseModel


class Post(BaseModel):
    """Feed post with aggregates computed for the viewing person."""

    id: str
    title: str
    description: str
    image_url: str = ""
    author_id: str | None = None
    score: int = 0
    my_vote: int = 0
    saved: bool = False
    favorites_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VoteResult(BaseModel):
    id: str
    score: int
    my_vote: int


class FavoriteResult(BaseModel):
    saved: bool
    favorites_count: int


class Course(BaseModel):
    id: str
    title: str
    description: str = ""
    image_url: str = ""
    created_at: datetime | None = None


class Subject(BaseModel):
    id: str
    name: str
    description: str = ""
    created_at: datetime | None = None
