from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import List, Optional

from ..models.models import ContestStatus
from .contest import ContestSummary
from .submission import SubmissionView


class JoinRequest(BaseModel):
    join_code: str
    nickname: str

    @field_validator("join_code", "nickname")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Join code and nickname are required")
        return value


class JoinResponse(BaseModel):
    contest_id: int
    participant_id: int
    session_id: str
    contest_title: str
    status: ContestStatus


class ParticipantStatus(BaseModel):
    id: int
    nickname: str
    created_at: Optional[datetime] = None
    has_submitted: bool = False
    has_voted: bool = False


class ParticipantView(BaseModel):
    contest: ContestSummary
    submissions: List[SubmissionView]
    has_submitted: bool
    has_voted: bool


class ManageView(BaseModel):
    contest: ContestSummary
    participants: List[ParticipantStatus]
    submissions: List[SubmissionView]
