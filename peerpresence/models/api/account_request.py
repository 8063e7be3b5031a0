from pydantic import Field

from peerpresence.models.api.base import ApiModel


class ProfileUpdateRequest(ApiModel):
    """Only these fields are editable; anything else in the body is ignored."""

    name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=254)
    bio: str | None = Field(default=None, max_length=2000)
    avatar_url: str | None = Field(default=None, max_length=2048)


class PasswordChangeRequest(ApiModel):
    current_password: str | None = None
    new_password: str | None = None
