"""
catalog.py
----------
Public catalog: tutors (with reviews), courses, subjects and site search.
Only posting a review requires authentication.
"""

from fastapi import APIRouter, Depends, Query

from peerpresence.auth.verify import get_current_person_id
from peerpresence.models.api.feed_request import ReviewRequest
from peerpresence.models.api.feed_response import (
    CourseResponse,
    ReviewResponse,
    SubjectResponse,
    TutorDetailResponse,
    TutorResponse,
)
from peerpresence.services import catalog_service

tutors_router = APIRouter(prefix="/tutors", tags=["tutors"])
courses_router = APIRouter(prefix="/courses", tags=["courses"])
subjects_router = APIRouter(prefix="/subjects", tags=["subjects"])
search_router = APIRouter(prefix="/search", tags=["search"])


@tutors_router.get("", response_model=list[TutorResponse])
async def list_tutors(q: str | None = None):
    return [TutorResponse.from_domain(t) for t in await catalog_service.list_tutors(q)]


# Declared before /{tutor_id} so "search" is not taken for an id
@tutors_router.get("/search", response_model=list[TutorResponse])
async def search_tutors_by_subject(
    subject: str | None = None, q: str | None = None, limit: str | None = Query(default="5")
):
    tutors = await catalog_service.search_tutors_by_subject(subject or q, limit)
    return [TutorResponse.from_domain(t) for t in tutors]


@tutors_router.get("/{tutor_id}", response_model=TutorDetailResponse)
async def tutor_detail(tutor_id: str):
    listing, stats = await catalog_service.get_tutor(tutor_id)
    return TutorDetailResponse.from_detail(listing, stats)


@tutors_router.get("/{tutor_id}/reviews", response_model=list[ReviewResponse])
async def tutor_reviews(tutor_id: str):
    return [ReviewResponse.from_domain(r) for r in await catalog_service.list_reviews(tutor_id)]


@tutors_router.post("/{tutor_id}/reviews", response_model=ReviewResponse)
async def upsert_review(
    tutor_id: str, request: ReviewRequest, person_id: str = Depends(get_current_person_id)
):
    review = await catalog_service.upsert_review(tutor_id, person_id, request.rating, request.comment)
    return ReviewResponse.from_domain(review)


@courses_router.get("", response_model=list[CourseResponse])
async def list_courses():
    return [CourseResponse.from_domain(c) for c in await catalog_service.list_courses()]


@subjects_router.get("", response_model=list[SubjectResponse])
async def list_subjects():
    return [SubjectResponse.from_domain(s) for s in await catalog_service.list_subjects()]


@search_router.get("/tutors", response_model=list[TutorResponse])
async def search_tutors(q: str | None = None, limit: str | None = Query(default="5")):
    return [TutorResponse.from_domain(t) for t in await catalog_service.search_tutors(q, limit)]


@search_router.get("/subjects", response_model=list[SubjectResponse])
async def search_subjects(q: str | None = None, limit: str | None = Query(default="5")):
    return [SubjectResponse.from_domain(s) for s in await catalog_service.search_subjects(q, limit)]
