from unittest.mock import AsyncMock

from peerpresence.errors import Conflict, NotFound
from peerpresence.models.domain.feed_domain import Course, Subject
from peerpresence.models.domain.tutor_domain import RatingStats, ReviewAuthor, TutorListing, TutorReview
from tests.support import LISTING_ID, PERSON_A

SERVICE = "peerpresence.routes.catalog.catalog_service"


def _tutor() -> TutorListing:
    return TutorListing(
        id=LISTING_ID, name="Ada Tutor", email="ada@example.com", subjects=["Calculus"], rating=4.5, reviews_count=2
    )


def test_list_tutors_is_public(anonymous_client, monkeypatch):
    list_tutors = AsyncMock(return_value=[_tutor()])
    monkeypatch.setattr(f"{SERVICE}.list_tutors", list_tutors)

    [tutor] = anonymous_client.get("/api/tutors", params={"q": "ada"}).json()

    assert tutor["reviewsCount"] == 2
    assert "email" not in tutor
    list_tutors.assert_awaited_once_with("ada")


def test_search_route_is_not_taken_for_an_id(anonymous_client, monkeypatch):
    search = AsyncMock(return_value=[])
    monkeypatch.setattr(f"{SERVICE}.search_tutors_by_subject", search)

    response = anonymous_client.get("/api/tutors/search", params={"subject": "calc", "limit": "3"})

    assert response.status_code == 200
    search.assert_awaited_once_with("calc", "3")


def test_tutor_detail(anonymous_client, monkeypatch):
    monkeypatch.setattr(
        f"{SERVICE}.get_tutor", AsyncMock(return_value=(_tutor(), RatingStats(rating_avg=4.5, rating_count=2)))
    )

    body = anonymous_client.get(f"/api/tutors/{LISTING_ID}").json()

    assert body["ratingAvg"] == 4.5
    assert body["email"] == "ada@example.com"


def test_tutor_detail_not_found(anonymous_client, monkeypatch):
    monkeypatch.setattr(f"{SERVICE}.get_tutor", AsyncMock(side_effect=NotFound("Tutor not found")))

    assert anonymous_client.get(f"/api/tutors/{LISTING_ID}").status_code == 404


def test_post_review(client, monkeypatch):
    review = TutorReview(
        id="r1", tutor_id=LISTING_ID, author=ReviewAuthor(id=PERSON_A, name="Sam"), rating=5, comment="Great"
    )
    upsert = AsyncMock(return_value=review)
    monkeypatch.setattr(f"{SERVICE}.upsert_review", upsert)

    response = client.post(f"/api/tutors/{LISTING_ID}/reviews", json={"rating": 5, "comment": "Great"})

    assert response.json()["author"]["name"] == "Sam"
    upsert.assert_awaited_once_with(LISTING_ID, PERSON_A, 5, "Great")


def test_duplicate_review(client, monkeypatch):
    monkeypatch.setattr(
        f"{SERVICE}.upsert_review", AsyncMock(side_effect=Conflict("You already reviewed this tutor"))
    )

    response = client.post(f"/api/tutors/{LISTING_ID}/reviews", json={"rating": 5})

    assert response.status_code == 409


def test_review_requires_token(anonymous_client):
    assert anonymous_client.post(f"/api/tutors/{LISTING_ID}/reviews", json={"rating": 5}).status_code == 401


def test_courses_and_subjects(anonymous_client, monkeypatch):
    monkeypatch.setattr(f"{SERVICE}.list_courses", AsyncMock(return_value=[Course(id="c1", title="Algebra I")]))
    monkeypatch.setattr(f"{SERVICE}.list_subjects", AsyncMock(return_value=[Subject(id="s1", name="Physics")]))

    assert anonymous_client.get("/api/courses").json()[0]["title"] == "Algebra I"
    assert anonymous_client.get("/api/subjects").json() == [{"id": "s1", "name": "Physics", "description": ""}]


def test_site_search(anonymous_client, monkeypatch):
    tutors = AsyncMock(return_value=[_tutor()])
    subjects = AsyncMock(return_value=[])
    monkeypatch.setattr(f"{SERVICE}.search_tutors", tutors)
    monkeypatch.setattr(f"{SERVICE}.search_subjects", subjects)

    assert len(anonymous_client.get("/api/search/tutors", params={"q": "ada"}).json()) == 1
    assert anonymous_client.get("/api/search/subjects", params={"q": "ph"}).json() == []
    tutors.assert_awaited_once_with("ada", "5")
