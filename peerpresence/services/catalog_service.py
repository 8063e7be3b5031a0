"""
Catalog reads: tutors, reviews, courses, subjects and site search.
"""

from peerpresence.db.helpers import UniqueViolationError
from peerpresence.errors import Conflict, NotFound, ValidationFailed
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.feed_domain import Course, Subject
from peerpresence.models.domain.tutor_domain import RatingStats, TutorListing, TutorReview
from peerpresence.repositories.catalog_repository import CourseRepository, SubjectRepository
from peerpresence.repositories.tutor_repository import TutorRepository
from peerpresence.services.identity_service import parse_id

logger = get_logger(__name__)

MIN_SEARCH_LENGTH = 2
SUBJECT_SEARCH_MAX = 5
SITE_SEARCH_MAX = 50
SITE_SEARCH_DEFAULT = 5


def _clamp(raw, default: int, upper: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return min(max(1, value), upper)


async def list_tutors(q: str | None = None) -> list[TutorListing]:
    return await TutorRepository.list_all((q or "").strip() or None)


async def search_tutors_by_subject(term: str | None, limit=SUBJECT_SEARCH_MAX) -> list[TutorListing]:
    """Tutors teaching a matching subject, best rated first."""
    term = (term or "").strip()
    if len(term) < MIN_SEARCH_LENGTH:
        return []
    return await TutorRepository.search_by_subject(term, _clamp(limit, SUBJECT_SEARCH_MAX, SUBJECT_SEARCH_MAX))


async def get_tutor(tutor_id: str) -> tuple[TutorListing, RatingStats]:
    tutor_id = parse_id(tutor_id, "Invalid tutor id")
    listing = await TutorRepository.get(tutor_id)
    if listing is None:
        raise NotFound("Tutor not found")
    return listing, await TutorRepository.rating_stats(tutor_id)


async def list_reviews(tutor_id: str) -> list[TutorReview]:
    return await TutorRepository.list_reviews(parse_id(tutor_id, "Invalid tutor id"))


async def upsert_review(tutor_id: str, author_id: str, rating, comment: str | None) -> TutorReview:
    tutor_id = parse_id(tutor_id, "Invalid tutor id")
    try:
        stars = int(rating)
    except (TypeError, ValueError):
        stars = 0
    if not 1 <= stars <= 5:
        raise ValidationFailed("Rating must be 1-5")

    if await TutorRepository.get(tutor_id) is None:
        raise NotFound("Tutor not found")

    try:
        review = await TutorRepository.upsert_review(tutor_id, author_id, stars, (comment or "").strip())
    except UniqueViolationError as e:
        raise Conflict("You already reviewed this tutor") from e
    logger.info("Tutor review saved", tutor_id=tutor_id, author_id=author_id, rating=stars)
    return review


def rank_tutor(listing: TutorListing, term: str) -> int:
    """Name prefix beats name substring beats subject hit beats bio hit."""
    needle = term.lower()
    name = listing.name.lower()
    if name.startswith(needle):
        return 100
    if needle in name:
        return 75
    if needle in " ".join(listing.subjects).lower():
        return 50
    if needle in listing.bio.lower():
        return 25
    return 0


async def search_tutors(q: str | None, limit=SITE_SEARCH_DEFAULT) -> list[TutorListing]:
    term = (q or "").strip()
    if len(term) < MIN_SEARCH_LENGTH:
        return []

    scored = [(rank_tutor(listing, term), listing) for listing in await TutorRepository.search_candidates(term)]
    ranked = sorted((pair for pair in scored if pair[0] > 0), key=lambda pair: pair[0], reverse=True)
    return [listing for _, listing in ranked[: _clamp(limit, SITE_SEARCH_DEFAULT, SITE_SEARCH_MAX)]]


async def search_subjects(q: str | None, limit=SITE_SEARCH_DEFAULT) -> list[Subject]:
    term = (q or "").strip()
    if len(term) < MIN_SEARCH_LENGTH:
        return []
    return await SubjectRepository.search(term, _clamp(limit, SITE_SEARCH_DEFAULT, SITE_SEARCH_MAX))


async def list_courses() -> list[Course]:
    return await CourseRepository.list_all()


async def list_subjects() -> list[Subject]:
    return await SubjectRepository.list_all()
