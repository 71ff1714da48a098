from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, field_validator


class Sex(StrEnum):
    FEMALE = "female"
    MALE = "male"
    OTHER = "other"


class Participant(BaseModel):
    id: str
    name: str
    email: str = ""
    sex: Sex = Sex.OTHER
    partner_prefs: list[Sex] = []

    # Free-text profile, only read by the external ranking step
    about_me: str = ""
    looking_for: str = ""
    personality: str = ""

    @field_validator("sex", mode="before")
    @classmethod
    def _lower_sex(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("partner_prefs", mode="before")
    @classmethod
    def _wrap_prefs(cls, value):
        # Older rosters carry a single preference instead of a list
        if isinstance(value, str):
            value = [value]
        return [v.strip().lower() if isinstance(v, str) else v for v in value or []]


class MatchRecord(BaseModel):
    from_id: str
    to_id: str
    rank: int
    reason: str = ""


class ScheduledDate(BaseModel):
    participant_1: str
    participant_2: str
    time_slot: int
    session_id: str | None = None


class MatchingSession(BaseModel):
    id: str
    created_at: str = ""
    record_count: int = 0


class SlotResult(BaseModel):
    time_slot: int
    dates: list[ScheduledDate] = []
    unmatched: list[str] = []


class ScheduleResult(BaseModel):
    session_id: str | None = None
    total_slots: int
    slots: list[SlotResult] = []
    never_matched: list[str] = []
    total_dates: int = 0


class UserRanking(BaseModel):
    """A participant's post-date score and note for someone they met."""

    ranker_id: str
    ranked_id: str
    score: int
    note: str | None = None
    updated_at: str = ""
