"""
posts.py
--------
Social feed: list, create, vote, favorite.

The list is public; a valid bearer token personalises myVote and saved.
"""

from fastapi import APIRouter, Depends, status

from peerpresence.auth.verify import get_current_person_id, get_optional_person_id
from peerpresence.models.api.feed_request import CreatePostRequest, VoteRequest
from peerpresence.models.api.feed_response import FavoriteResponse, PostResponse, VoteResponse
from peerpresence.services import post_service

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=list[PostResponse])
async def list_posts(viewer_id: str | None = Depends(get_optional_person_id)):
    return [PostResponse.from_domain(post) for post in await post_service.list_posts(viewer_id)]


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(request: CreatePostRequest, person_id: str = Depends(get_current_person_id)):
    post = await post_service.create_post(
        person_id, request.title, request.description, request.image_url
    )
    return PostResponse.from_domain(post)


@router.get("/saved", response_model=list[PostResponse])
async def saved_posts(person_id: str = Depends(get_current_person_id)):
    return [PostResponse.from_domain(post) for post in await post_service.saved_posts(person_id)]


@router.patch("/{post_id}/vote", response_model=VoteResponse)
async def vote(post_id: str, request: VoteRequest, person_id: str = Depends(get_current_person_id)):
    return VoteResponse.from_domain(await post_service.vote(post_id, person_id, request.value))


@router.patch("/{post_id}/favorite", response_model=FavoriteResponse)
async def toggle_favorite(post_id: str, person_id: str = Depends(get_current_person_id)):
    return FavoriteResponse.from_domain(await post_service.toggle_favorite(post_id, person_id))
