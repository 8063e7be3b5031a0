"""
Identity resolution.

Clients may address a peer either by Person id or by TutorListing id. Every
conversation and message is stored against Person ids, so a listing is
lazily backed by a Person the first time somebody contacts it.
"""

import time
import uuid

from peerpresence.db.helpers import UniqueViolationError
from peerpresence.errors import NotFound, ValidationFailed
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.tutor_domain import TutorListing
from peerpresence.repositories.person_repository import PersonRepository
from peerpresence.repositories.tutor_repository import TutorRepository
from peerpresence.security.passwords import hash_password, random_password

logger = get_logger(__name__)

SHADOW_EMAIL_DOMAIN = "noemail.peerpresence"
DEFAULT_TUTOR_NAME = "Tutor"


def parse_id(raw_ref, message: str = "Invalid id") -> str:
    """Canonical string form of a UUID reference, or ValidationFailed."""
    try:
        return str(uuid.UUID(str(raw_ref).strip()))
    except (AttributeError, TypeError, ValueError) as e:
        raise ValidationFailed(message) from e


def is_valid_id(raw_ref) -> bool:
    try:
        parse_id(raw_ref)
    except ValidationFailed:
        return False
    return True


async def resolve_person_id(raw_ref) -> str:
    """
    Map a Person id or TutorListing id to a Person id.

    A listing without a linked Person gets one (found by email or created)
    and is linked to it. Calling this twice for the same listing returns the
    same Person id.
    """
    ref = parse_id(raw_ref)

    if await PersonRepository.exists(ref):
        return ref

    listing = await TutorRepository.get(ref)
    if listing:
        return await ensure_listing_person(listing)

    logger.info("Peer reference did not resolve", ref=ref)
    raise NotFound("Peer not found as User or Tutor")


async def try_resolve_person_id(raw_ref) -> str | None:
    """Lookup-only variant: never creates or links anything."""
    if not is_valid_id(raw_ref):
        return None
    ref = parse_id(raw_ref)

    if await PersonRepository.exists(ref):
        return ref

    listing = await TutorRepository.get(ref)
    if listing and listing.person_id and await PersonRepository.exists(listing.person_id):
        return listing.person_id
    return None


async def ensure_listing_person(listing: TutorListing) -> str:
    if listing.person_id and await PersonRepository.exists(listing.person_id):
        return listing.person_id

    email = (listing.email or "").strip().lower()
    person = await PersonRepository.get_by_email(email) if email else None
    if person is None:
        person_id = await _create_shadow_person(listing, email)
    else:
        person_id = person.id

    try:
        winner = await TutorRepository.link_person(listing.id, person_id)
    except UniqueViolationError:
        # A person backs at most one listing; the email owner already has theirs
        logger.warning(
            "Email owner already linked to another listing, creating shadow person",
            listing_id=listing.id,
            person_id=person_id,
        )
        person_id = await _create_shadow_person(listing, "")
        winner = await TutorRepository.link_person(listing.id, person_id)

    if winner and winner != person_id:
        logger.info(
            "Tutor listing already linked by a concurrent request",
            listing_id=listing.id,
            person_id=winner,
            discarded_person_id=person_id,
        )
        return winner
    return winner or person_id


async def _create_shadow_person(listing: TutorListing, email: str) -> str:
    fields = {
        "name": listing.name or DEFAULT_TUTOR_NAME,
        "password_hash": hash_password(random_password()),
        "role": "tutor",
        "bio": listing.bio or "",
        "avatar_url": listing.avatar or "",
    }

    try:
        person = await PersonRepository.create(
            email=email or f"tutor_{listing.id}@{SHADOW_EMAIL_DOMAIN}", **fields
        )
    except UniqueViolationError:
        fallback = f"tutor_{listing.id}_{int(time.time() * 1000)}@{SHADOW_EMAIL_DOMAIN}"
        logger.warning("Shadow email taken, using fallback", listing_id=listing.id)
        person = await PersonRepository.create(email=fallback, **fields)

    logger.info("Shadow person created for tutor listing", listing_id=listing.id, person_id=person.id)
    return person.id
