from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from ..database import get_db
from ..dependencies import get_current_user, get_optional_user, get_session_id
from ..errors import Unauthorized
from ..models.models import User
from ..schemas.contest import (
    ContestCreate,
    ContestSummary,
    StatusResponse,
    StatusUpdate,
)
from ..schemas.participant import (
    JoinRequest,
    JoinResponse,
    ManageView,
    ParticipantView,
)
from ..schemas.submission import ResultEntry
from ..services import classrooms
from ..services.lifecycle import ContestLifecycle

router = APIRouter(prefix="/contests", tags=["Contests"])


@router.get("", response_model=List[ContestSummary])
def get_contests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get all contests of the teacher, newest first"""
    return classrooms.list_contests(db, current_user)


@router.post("", response_model=ContestSummary, status_code=201)
def create_contest(
    contest: ContestCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a new contest in one of the teacher's classrooms"""
    return classrooms.create_contest(
        db,
        current_user,
        contest.title,
        contest.classroom_id,
        contest.contest_type,
    )


@router.post("/join", response_model=JoinResponse)
def join_contest(request: JoinRequest, db: Session = Depends(get_db)):
    """Join a contest by code and receive a session id"""
    return ContestLifecycle(db).join_contest(
        request.join_code, request.nickname
    )


@router.get("/{contest_id}", response_model=ParticipantView)
def get_contest_state(
    contest_id: int,
    session_id: Optional[str] = Depends(get_session_id),
    db: Session = Depends(get_db),
):
    """Contest state polled by a participant's page"""
    if not session_id:
        raise Unauthorized("Session ID required")
    return ContestLifecycle(db).get_participant_view(contest_id, session_id)


@router.delete("/{contest_id}")
def delete_contest(
    contest_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a contest with its participants, submissions and votes"""
    classrooms.delete_contest(db, contest_id, current_user)
    return {"success": True}


@router.get("/{contest_id}/manage", response_model=ManageView)
def get_manage_view(
    contest_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Contest state for the teacher's dashboard"""
    return ContestLifecycle(db).get_manage_view(contest_id, current_user)


@router.patch("/{contest_id}/status", response_model=StatusResponse)
def update_status(
    contest_id: int,
    update: StatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Move the contest to another phase"""
    return ContestLifecycle(db).advance_status(
        contest_id, current_user, update.status, update.clear_round
    )


@router.delete("/{contest_id}/participants/{participant_id}")
def kick_participant(
    contest_id: int,
    participant_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Remove a participant along with their submission and vote"""
    ContestLifecycle(db).kick_participant(
        contest_id, current_user, participant_id
    )
    return {"success": True}


@router.get("/{contest_id}/results", response_model=List[ResultEntry])
def get_results(
    contest_id: int,
    session_id: Optional[str] = Depends(get_session_id),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Submissions ranked by votes received"""
    lifecycle = ContestLifecycle(db)
    lifecycle.authorize_viewer(contest_id, session_id, current_user)
    return lifecycle.get_results(contest_id)
