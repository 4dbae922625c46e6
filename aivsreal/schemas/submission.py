from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class SubmissionCreate(BaseModel):
    participant_id: int
    session_id: str
    ai_image_url: str
    real_image_url: str


class TeacherUpload(BaseModel):
    ai_image_url: str
    real_image_url: str


class SubmissionResponse(BaseModel):
    id: int
    participant_id: int
    contest_id: int
    ai_image_url: str
    real_image_url: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubmissionView(BaseModel):
    id: int
    participant_id: int
    nickname: str
    ai_image_url: str
    real_image_url: str
    votes: int = 0


class ResultEntry(BaseModel):
    rank: int
    submission_id: int
    participant_nickname: str
    vote_count: int
    ai_image_url: str
    real_image_url: str
