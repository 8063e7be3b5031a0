"""
Feed posts: votes and favorites.

Vote and favorite toggles are read-modify-write without locking; two
simultaneous toggles by the same person can lose one of the updates.
"""

from peerpresence.errors import NotFound, ValidationFailed
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.feed_domain import FavoriteResult, Post, VoteResult
from peerpresence.repositories.post_repository import PostRepository
from peerpresence.services.identity_service import is_valid_id, parse_id

logger = get_logger(__name__)

VALID_VOTES = (1, -1)


async def list_posts(viewer_id: str | None) -> list[Post]:
    return await PostRepository.list_for_viewer(viewer_id)


async def saved_posts(person_id: str) -> list[Post]:
    return await PostRepository.list_saved(person_id)


async def create_post(author_id: str, title: str, description: str, image_url: str = "") -> Post:
    return await PostRepository.create(author_id, title.strip(), description.strip(), image_url or "")


async def _require_post(post_id: str) -> str:
    if not is_valid_id(post_id):
        raise NotFound("Post not found")
    post_id = parse_id(post_id)
    if not await PostRepository.exists(post_id):
        raise NotFound("Post not found")
    return post_id


async def vote(post_id: str, person_id: str, value) -> VoteResult:
    """
    Cast, flip or withdraw a vote.

    Voting the same value twice withdraws the vote.
    """
    if isinstance(value, bool) or value not in VALID_VOTES:
        raise ValidationFailed("value must be 1 or -1")

    post_id = await _require_post(post_id)

    current = await PostRepository.get_vote(post_id, person_id)
    if current == value:
        await PostRepository.delete_vote(post_id, person_id)
        my_vote = 0
    else:
        await PostRepository.set_vote(post_id, person_id, value)
        my_vote = value

    score = await PostRepository.score(post_id)
    logger.info("Post vote recorded", post_id=post_id, person_id=person_id, my_vote=my_vote)
    return VoteResult(id=post_id, score=score, my_vote=my_vote)


async def toggle_favorite(post_id: str, person_id: str) -> FavoriteResult:
    post_id = await _require_post(post_id)

    already = await PostRepository.is_favorite(post_id, person_id)
    if already:
        await PostRepository.remove_favorite(post_id, person_id)
    else:
        await PostRepository.add_favorite(post_id, person_id)

    return FavoriteResult(
        saved=not already, favorites_count=await PostRepository.favorites_count(post_id)
    )
