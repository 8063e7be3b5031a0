"""
account.py
----------
Self-service endpoints for the authenticated person.

Usage:
    1. GET /api/account/me - profile
    2. PATCH /api/account/me - edit name, email, bio, avatarUrl
    3. PATCH /api/account/password - change password
    4. DELETE /api/account/me - delete the account
    5. GET /api/account/subjects - booking-driven subject history
"""

from fastapi import APIRouter, Depends

from peerpresence.auth.verify import get_current_person_id
from peerpresence.models.api.account_request import PasswordChangeRequest, ProfileUpdateRequest
from peerpresence.models.api.account_response import (
    ProfileResponse,
    ProfileUpdateResponse,
    SubjectHistoryItem,
)
from peerpresence.models.api.base import OkResponse
from peerpresence.services import account_service

router = APIRouter(prefix="/account", tags=["account"])


@router.get("/me", response_model=ProfileResponse)
async def get_me(person_id: str = Depends(get_current_person_id)):
    return ProfileResponse.from_domain(await account_service.get_me(person_id))


@router.patch("/me", response_model=ProfileUpdateResponse)
async def update_me(request: ProfileUpdateRequest, person_id: str = Depends(get_current_person_id)):
    person = await account_service.update_me(person_id, request.model_dump(exclude_unset=True))
    return ProfileUpdateResponse(user=ProfileResponse.from_domain(person))


@router.patch("/password", response_model=OkResponse)
async def change_password(
    request: PasswordChangeRequest, person_id: str = Depends(get_current_person_id)
):
    await account_service.change_password(person_id, request.current_password, request.new_password)
    return OkResponse()


@router.delete("/me", response_model=OkResponse)
async def delete_me(person_id: str = Depends(get_current_person_id)):
    await account_service.delete_me(person_id)
    return OkResponse()


@router.get("/subjects", response_model=list[SubjectHistoryItem])
async def my_subjects(person_id: str = Depends(get_current_person_id)):
    return [SubjectHistoryItem.from_domain(row) for row in await account_service.subject_history(person_id)]
