from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Role = Literal["student", "tutor", "admin"]


class SubjectInterest(BaseModel):
    """One row of a person's booking-driven subject history."""

    name: str
    count: int = 1
    last_booked_at: datetime | None = None
    last_session: dict[str, Any] = Field(default_factory=dict)


class Person(BaseModel):
    """Registered account; the canonical identity for messaging."""

    id: str
    name: str
    email: str
    role: Role = "student"
    bio: str = ""
    avatar_url: str = ""
    subjects: list[SubjectInterest] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
