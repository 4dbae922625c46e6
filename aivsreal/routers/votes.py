from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..database import get_db
from ..schemas.vote import VoteCreate, VoteResponse
from ..services.lifecycle import ContestLifecycle

router = APIRouter(tags=["Votes"])


@router.post(
    "/contests/{contest_id}/votes",
    response_model=VoteResponse,
    status_code=201,
)
def vote_for_submission(
    contest_id: int,
    vote: VoteCreate,
    db: Session = Depends(get_db),
):
    """Cast a participant's single vote"""
    return ContestLifecycle(db).cast_vote(
        vote.participant_id,
        vote.session_id,
        vote.submission_id,
        contest_id=contest_id,
    )
