from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class VoteCreate(BaseModel):
    participant_id: int
    session_id: str
    submission_id: int


class VoteResponse(BaseModel):
    id: int
    participant_id: int
    submission_id: int
    contest_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
