"""
verify.py
---------
Purpose:
    Bearer JWT verification (HS256, shared secret).

Notes:
    - The person reference lives in the `id` claim; `sub` is accepted as a fallback.
    - `auth_dependency` returns the decoded claims.
    - `get_current_person_id` additionally requires the person to still exist.
    - `get_optional_person_id` is for public routes that personalise when a
      valid token happens to be present.
"""

import uuid

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from peerpresence.config import settings
from peerpresence.errors import Unauthorized
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.repositories.person_repository import PersonRepository

logger = get_logger(__name__)

_security = HTTPBearer(auto_error=False)


def verify_jwt(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": True},
        )
    except jwt.PyJWTError as e:
        logger.info("Rejected bearer token", error=str(e))
        raise Unauthorized("Unauthorized") from e


def person_id_from_claims(claims: dict) -> str:
    raw = claims.get("id") or claims.get("sub")
    try:
        return str(uuid.UUID(str(raw)))
    except (TypeError, ValueError) as e:
        raise Unauthorized("Unauthorized") from e


def auth_dependency(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
) -> dict:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("No token")
    return verify_jwt(credentials.credentials)


async def get_current_person_id(claims: dict = Depends(auth_dependency)) -> str:
    person_id = person_id_from_claims(claims)
    if not await PersonRepository.exists(person_id):
        raise Unauthorized("User not found")
    return person_id


async def get_optional_person_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
) -> str | None:
    if credentials is None or not credentials.credentials:
        return None
    try:
        return person_id_from_claims(verify_jwt(credentials.credentials))
    except Unauthorized:
        return None
