"""
Feed and catalog response models.
"""

from datetime import datetime

from peerpresence.models.api.base import ApiModel
from peerpresence.models.domain.feed_domain import (
    Course,
    FavoriteResult,
    Post,
    Subject,
    VoteResult,
)
from peerpresence.models.domain.tutor_domain import RatingStats, TutorListing, TutorReview


class PostResponse(ApiModel):
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

    @classmethod
    def from_domain(cls, post: Post) -> "PostResponse":
        return cls(**post.model_dump())


class VoteResponse(ApiModel):
    id: str
    score: int
    my_vote: int

    @classmethod
    def from_domain(cls, result: VoteResult) -> "VoteResponse":
        return cls(**result.model_dump())


class FavoriteResponse(ApiModel):
    saved: bool
    favorites_count: int

    @classmethod
    def from_domain(cls, result: FavoriteResult) -> "FavoriteResponse":
        return cls(**result.model_dump())


class TutorResponse(ApiModel):
    id: str
    name: str
    avatar: str = ""
    bio: str = ""
    subjects: list[str] = []
    rating: float = 0.0
    reviews_count: int = 0

    @classmethod
    def from_domain(cls, listing: TutorListing) -> "TutorResponse":
        return cls(**listing.model_dump(include=set(cls.model_fields)))


class TutorDetailResponse(TutorResponse):
    email: str = ""
    rating_avg: float = 0.0
    rating_count: int = 0

    @classmethod
    def from_detail(cls, listing: TutorListing, stats: RatingStats) -> "TutorDetailResponse":
        return cls(
            **listing.model_dump(include=set(TutorResponse.model_fields) | {"email"}),
            rating_avg=stats.rating_avg,
            rating_count=stats.rating_count,
        )


class ReviewAuthorResponse(ApiModel):
    id: str
    name: str
    avatar_url: str = ""


class ReviewResponse(ApiModel):
    id: str
    tutor_id: str
    author: ReviewAuthorResponse
    rating: int
    comment: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, review: TutorReview) -> "ReviewResponse":
        return cls(
            id=review.id,
            tutor_id=review.tutor_id,
            author=ReviewAuthorResponse(**review.author.model_dump()),
            rating=review.rating,
            comment=review.comment,
            created_at=review.created_at,
            updated_at=review.updated_at,
        )


class CourseResponse(ApiModel):
    id: str
    title: str
    description: str = ""
    image_url: str = ""
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, course: Course) -> "CourseResponse":
        return cls(**course.model_dump())


class SubjectResponse(ApiModel):
    id: str
    name: str
    description: str = ""

    @classmethod
    def from_domain(cls, subject: Subject) -> "SubjectResponse":
        return cls(id=subject.id, name=subject.name, description=subject.description)
