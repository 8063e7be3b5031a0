"""
Account self-service: profile, password, deletion and subject history.
"""

from email_validator import EmailNotValidError, validate_email

from peerpresence.db.helpers import UniqueViolationError
from peerpresence.errors import NotFound, ValidationFailed
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.person_domain import Person, SubjectInterest
from peerpresence.repositories.person_repository import PersonRepository, SubjectHistoryRepository
from peerpresence.security.passwords import MAX_PASSWORD_BYTES, hash_password, verify_password

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


async def get_me(person_id: str) -> Person:
    person = await PersonRepository.get(person_id)
    if person is None:
        raise NotFound("User not found")
    return person


def _normalize_email(email: str) -> str:
    try:
        return validate_email(email.strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError as e:
        raise ValidationFailed("Invalid profile update") from e


async def update_me(person_id: str, updates: dict) -> Person:
    """Apply a partial edit of name, email, bio and avatar_url."""
    changes = {
        key: value
        for key, value in updates.items()
        if key in PersonRepository.EDITABLE_COLUMNS and value is not None
    }

    if "name" in changes and not changes["name"].strip():
        raise ValidationFailed("Invalid profile update")
    if "email" in changes:
        changes["email"] = _normalize_email(changes["email"])
        holder = await PersonRepository.get_by_email(changes["email"])
        if holder and holder.id != person_id:
            raise ValidationFailed("Email already in use")

    try:
        person = await PersonRepository.update_profile(person_id, changes)
    except UniqueViolationError as e:
        raise ValidationFailed("Email already in use") from e

    if person is None:
        raise NotFound("User not found")

    logger.info("Profile updated", person_id=person_id, fields=sorted(changes))
    return person


async def change_password(person_id: str, current_password: str | None, new_password: str | None) -> None:
    if not current_password or not new_password:
        raise ValidationFailed("Both current and new password required")

    stored = await PersonRepository.get_password_hash(person_id)
    if not verify_password(current_password, stored):
        raise ValidationFailed("Current password is incorrect")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(new_password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationFailed(f"New password must be at most {MAX_PASSWORD_BYTES} bytes")

    await PersonRepository.set_password_hash(person_id, hash_password(new_password))
    logger.info("Password changed", person_id=person_id)


async def delete_me(person_id: str) -> None:
    if not await PersonRepository.delete(person_id):
        raise NotFound("User not found")


async def subject_history(person_id: str) -> list[SubjectInterest]:
    return await SubjectHistoryRepository.list_for_person(person_id)
