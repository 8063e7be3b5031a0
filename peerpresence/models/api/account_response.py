from datetime import datetime

from peerpresence.models.api.base import ApiModel
from peerpresence.models.domain.person_domain import Person, SubjectInterest


class ProfileResponse(ApiModel):
    id: str
    name: str
    email: str
    role: str
    bio: str = ""
    avatar_url: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, person: Person) -> "ProfileResponse":
        return cls(**person.model_dump(exclude={"subjects"}))


class SubjectHistoryItem(ApiModel):
    booking_id: str | None = None
    subject: str
    tutor_id: str | None = None
    tutor_name: str | None = None
    tutor_avatar: str = ""
    last_date: str = ""
    last_time: str = ""
    timezone: str = ""
    duration: int = 0
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, row: SubjectInterest) -> "SubjectHistoryItem":
        last = row.last_session or {}
        return cls(
            booking_id=last.get("bookingId"),
            subject=row.name,
            tutor_id=last.get("tutorId"),
            tutor_name=last.get("tutorName"),
            tutor_avatar=last.get("tutorAvatar") or "",
            last_date=last.get("date") or "",
            last_time=last.get("time") or "",
            timezone=last.get("timezone") or "",
            duration=last.get("duration") or 0,
            updated_at=row.last_booked_at,
        )


class ProfileUpdateResponse(ApiModel):
    ok: bool = True
    user: ProfileResponse
