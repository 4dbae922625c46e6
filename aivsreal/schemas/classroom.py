from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import List, Optional

from .contest import ContestSummary


class ClassroomCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Classroom name is required")
        return value


class ClassroomUpdate(ClassroomCreate):
    pass


class ClassroomResponse(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None
    contest_count: int = 0


class ClassroomDetail(BaseModel):
    classroom: ClassroomResponse
    contests: List[ContestSummary]
