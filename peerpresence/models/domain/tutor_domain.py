from datetime import datetime

from pydantic import BaseModel, Field


class TutorListing(BaseModel):
    """Public tutor profile, optionally backed by a Person."""

    id: str
    name: str
    email: str
    avatar: str = ""
    bio: str = ""
    subjects: list[str] = Field(default_factory=list)
    rating: float = 0.0
    reviews_count: int = 0
    person_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RatingStats(BaseModel):
    rating_avg: float = 0.0
    rating_count: int = 0


class ReviewAuthor(BaseModel):
    id: str
    name: str
    avatar_url: str = ""


class TutorReview(BaseModel):
    id: str
    tutor_id: str
    author: ReviewAuthor
    rating: int
    comment: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
