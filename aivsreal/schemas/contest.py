from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional

from ..models.models import ContestStatus, ContestType


class ContestCreate(BaseModel):
    title: str
    classroom_id: int
    contest_type: ContestType = ContestType.STUDENT_UPLOAD

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value


class ContestSummary(BaseModel):
    id: int
    title: str
    join_code: str
    status: ContestStatus
    contest_type: ContestType
    classroom_id: int
    classroom_name: Optional[str] = None
    participant_count: int = 0
    submission_count: int = 0
    created_at: Optional[datetime] = None


class StatusUpdate(BaseModel):
    status: ContestStatus
    clear_round: bool = False


class StatusResponse(BaseModel):
    id: int
    status: ContestStatus

    class Config:
        from_attributes = True
