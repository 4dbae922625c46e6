from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..database import get_db
from ..dependencies import get_current_user
from ..models.models import User
from ..schemas.submission import (
    SubmissionCreate,
    SubmissionResponse,
    TeacherUpload,
)
from ..services.lifecycle import ContestLifecycle

router = APIRouter(tags=["Submissions"])


@router.post(
    "/contests/{contest_id}/submissions",
    response_model=SubmissionResponse,
    status_code=201,
)
def create_submission(
    contest_id: int,
    submission: SubmissionCreate,
    db: Session = Depends(get_db),
):
    """Submit a participant's AI and real image pair"""
    return ContestLifecycle(db).submit_images(
        submission.participant_id,
        submission.session_id,
        submission.ai_image_url,
        submission.real_image_url,
        contest_id=contest_id,
    )


@router.post(
    "/contests/{contest_id}/teacher-upload",
    response_model=SubmissionResponse,
    status_code=201,
)
def teacher_upload(
    contest_id: int,
    upload: TeacherUpload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add an image pair to a teacher upload contest"""
    return ContestLifecycle(db).teacher_upload_image_pair(
        contest_id, current_user, upload.ai_image_url, upload.real_image_url
    )


@router.delete("/contests/{contest_id}/submissions/{submission_id}")
def delete_submission(
    contest_id: int,
    submission_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a submission and the votes cast for it"""
    ContestLifecycle(db).delete_submission(
        contest_id, current_user, submission_id
    )
    return {"success": True, "message": "Submission deleted successfully"}
