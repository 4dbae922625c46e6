"""
Contest lifecycle: status state machine, admission of participants,
submissions and votes, and result ranking.

State flow:

    SUBMISSION -> VOTING -> RESULTS -> ENDED
        ^                     |  ^       |
        +------ reset --------+  +-------+

Uniqueness (one nickname per contest, one submission and one vote per
participant) is enforced by database constraints; an IntegrityError on
insert is what reports the duplicate.
"""
import logging
import secrets
from typing import Iterable, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import (
    Conflict,
    InvalidTransition,
    NotFound,
    PreconditionFailed,
    Unauthorized,
)
from ..models.models import (
    Contest,
    ContestStatus,
    ContestType,
    Participant,
    Submission,
    User,
    Vote,
)
from ..utils.codes import generate_session_id, normalize_join_code

logger = logging.getLogger(__name__)

TRANSITIONS = {
    ContestStatus.SUBMISSION: {ContestStatus.VOTING},
    ContestStatus.VOTING: {ContestStatus.RESULTS},
    ContestStatus.RESULTS: {ContestStatus.SUBMISSION, ContestStatus.ENDED},
    ContestStatus.ENDED: {ContestStatus.RESULTS},
}

JOINABLE_STATUSES = {ContestStatus.SUBMISSION, ContestStatus.VOTING}

TEACHER_UPLOAD_PREFIX = "Teacher Upload"


def can_transition(current: ContestStatus, target: ContestStatus) -> bool:
    return ContestStatus(target) in TRANSITIONS[ContestStatus(current)]


def count_by_contest(db: Session, column, contest_ids: Iterable[int]):
    """Map contest id -> number of rows of ``column``'s table"""
    contest_ids = list(contest_ids)
    if not contest_ids:
        return {}
    entity = column.class_
    query = db.query(entity.contest_id, func.count(column)).filter(
        entity.contest_id.in_(contest_ids)
    )
    if entity is Participant:
        query = query.filter(Participant.is_teacher_upload.is_(False))
    return dict(query.group_by(entity.contest_id).all())


def summarize_contests(db: Session, contests: List[Contest]) -> List[dict]:
    ids = [contest.id for contest in contests]
    participants = count_by_contest(db, Participant.id, ids)
    submissions = count_by_contest(db, Submission.id, ids)
    return [
        {
            "id": contest.id,
            "title": contest.title,
            "join_code": contest.join_code,
            "status": contest.status,
            "contest_type": contest.contest_type,
            "classroom_id": contest.classroom_id,
            "classroom_name": contest.classroom.name,
            "participant_count": participants.get(contest.id, 0),
            "submission_count": submissions.get(contest.id, 0),
            "created_at": contest.created_at,
        }
        for contest in contests
    ]


class ContestLifecycle:
    """Every contest operation a participant or teacher can request"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_contest(self, contest_id: int) -> Contest:
        contest = (
            self.db.query(Contest).filter(Contest.id == contest_id).first()
        )
        if not contest:
            raise NotFound("Contest not found")
        return contest

    def get_owned_contest(self, contest_id: int, teacher: User) -> Contest:
        contest = self.get_contest(contest_id)
        if contest.teacher_id != teacher.id:
            raise Unauthorized("Only the contest's teacher may do this")
        return contest

    def authenticate_participant(
        self,
        participant_id: int,
        session_id: str,
        contest_id: Optional[int] = None,
    ) -> Participant:
        participant = (
            self.db.query(Participant)
            .filter(Participant.id == participant_id)
            .first()
        )
        if (
            not participant
            or participant.is_teacher_upload
            or not secrets.compare_digest(
                participant.session_id.encode(), session_id.encode()
            )
            or (contest_id is not None and participant.contest_id != contest_id)
        ):
            raise Unauthorized("Invalid participant or session")
        return participant

    def participant_for_session(
        self, contest_id: int, session_id: str
    ) -> Participant:
        participant = (
            self.db.query(Participant)
            .filter(Participant.session_id == session_id)
            .first()
        )
        if (
            not participant
            or participant.is_teacher_upload
            or participant.contest_id != contest_id
        ):
            raise Unauthorized("Invalid session or contest")
        return participant

    def authorize_viewer(
        self,
        contest_id: int,
        session_id: Optional[str] = None,
        teacher: Optional[User] = None,
    ) -> Contest:
        """Allow the owning teacher or any participant of the contest"""
        if teacher is not None:
            return self.get_owned_contest(contest_id, teacher)
        if session_id:
            return self.participant_for_session(contest_id, session_id).contest
        raise Unauthorized("Session ID or teacher token required")

    def _commit_or_conflict(self, message: str, *instances):
        for instance in instances:
            self.db.add(instance)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict(message)
        for instance in instances:
            self.db.refresh(instance)

    # ------------------------------------------------------------------
    # Participant operations
    # ------------------------------------------------------------------

    def join_contest(self, join_code: str, nickname: str) -> dict:
        """Register a nickname in the contest behind ``join_code``"""
        code = normalize_join_code(join_code)
        contest = (
            self.db.query(Contest).filter(Contest.join_code == code).first()
        )
        if not contest:
            raise NotFound("Contest not found. Please check your code.")

        if contest.status not in JOINABLE_STATUSES:
            raise PreconditionFailed(
                "Contest is not accepting new participants"
            )

        nickname = nickname.strip()
        if nickname.lower().startswith(TEACHER_UPLOAD_PREFIX.lower()):
            raise Conflict("This nickname is reserved. Please choose another.")

        # Nicknames compare case-insensitively within a contest
        taken = (
            self.db.query(Participant.id)
            .filter(
                Participant.contest_id == contest.id,
                func.lower(Participant.nickname) == nickname.lower(),
            )
            .first()
        )
        if taken:
            raise Conflict(
                "This nickname is already taken. Please choose another."
            )

        participant = Participant(
            nickname=nickname,
            contest_id=contest.id,
            session_id=generate_session_id(),
        )
        self._commit_or_conflict(
            "This nickname is already taken. Please choose another.",
            participant,
        )
        logger.info(
            "Participant %s joined contest %s as %r",
            participant.id,
            contest.id,
            nickname,
        )

        return {
            "contest_id": contest.id,
            "participant_id": participant.id,
            "session_id": participant.session_id,
            "contest_title": contest.title,
            "status": contest.status,
        }

    def submit_images(
        self,
        participant_id: int,
        session_id: str,
        ai_image_url: str,
        real_image_url: str,
        contest_id: Optional[int] = None,
    ) -> Submission:
        participant = self.authenticate_participant(
            participant_id, session_id, contest_id
        )
        contest = participant.contest

        if contest.status != ContestStatus.SUBMISSION:
            raise PreconditionFailed("Contest is not accepting submissions")
        if contest.contest_type != ContestType.STUDENT_UPLOAD:
            raise PreconditionFailed(
                "Only the teacher uploads images in this contest"
            )

        submission = Submission(
            ai_image_url=ai_image_url,
            real_image_url=real_image_url,
            participant_id=participant.id,
            contest_id=contest.id,
        )
        self._commit_or_conflict(
            "You have already submitted images", submission
        )
        logger.info(
            "Participant %s submitted %s to contest %s",
            participant.id,
            submission.id,
            contest.id,
        )
        return submission

    def cast_vote(
        self,
        participant_id: int,
        session_id: str,
        submission_id: int,
        contest_id: Optional[int] = None,
    ) -> Vote:
        participant = self.authenticate_participant(
            participant_id, session_id, contest_id
        )
        contest = participant.contest

        if contest.status != ContestStatus.VOTING:
            raise PreconditionFailed("Contest is not in voting phase")

        submission = (
            self.db.query(Submission)
            .filter(
                Submission.id == submission_id,
                Submission.contest_id == contest.id,
            )
            .first()
        )
        if not submission:
            raise NotFound("Submission not found in this contest")

        if (
            contest.contest_type == ContestType.STUDENT_UPLOAD
            and submission.participant_id == participant.id
        ):
            raise PreconditionFailed("You cannot vote for your own submission")

        vote = Vote(
            participant_id=participant.id,
            submission_id=submission.id,
            contest_id=contest.id,
        )
        self._commit_or_conflict("You have already voted", vote)
        logger.info(
            "Participant %s voted for submission %s in contest %s",
            participant.id,
            submission.id,
            contest.id,
        )
        return vote

    # ------------------------------------------------------------------
    # Teacher operations
    # ------------------------------------------------------------------

    def _next_teacher_upload_nickname(self, contest_id: int) -> str:
        taken = {
            nickname
            for (nickname,) in self.db.query(Participant.nickname).filter(
                Participant.contest_id == contest_id,
                Participant.is_teacher_upload.is_(True),
            )
        }
        number = len(taken) + 1
        while f"{TEACHER_UPLOAD_PREFIX} #{number}" in taken:
            number += 1
        return f"{TEACHER_UPLOAD_PREFIX} #{number}"

    def teacher_upload_image_pair(
        self,
        contest_id: int,
        teacher: User,
        ai_image_url: str,
        real_image_url: str,
    ) -> Submission:
        """
        Add an image pair on the teacher's behalf.

        Each pair gets its own synthetic participant because a participant
        owns at most one submission.
        """
        contest = self.get_owned_contest(contest_id, teacher)
        if contest.contest_type != ContestType.TEACHER_UPLOAD:
            raise PreconditionFailed("Contest is not a teacher upload contest")
        if contest.status == ContestStatus.ENDED:
            raise PreconditionFailed("Contest has ended")

        participant = Participant(
            nickname=self._next_teacher_upload_nickname(contest.id),
            contest_id=contest.id,
            session_id=generate_session_id(),
            is_teacher_upload=True,
        )
        submission = Submission(
            ai_image_url=ai_image_url,
            real_image_url=real_image_url,
            participant=participant,
            contest_id=contest.id,
        )
        self._commit_or_conflict(
            "Another upload was added at the same time, please retry",
            participant,
            submission,
        )
        logger.info(
            "Teacher %s uploaded pair %s to contest %s",
            teacher.id,
            submission.id,
            contest.id,
        )
        return submission

    def advance_status(
        self,
        contest_id: int,
        teacher: User,
        target_status: ContestStatus,
        clear_round: bool = False,
    ) -> Contest:
        """
        Move the contest along one edge of the state machine.

        ``clear_round`` only applies to RESULTS -> SUBMISSION: it deletes
        the round's votes, and in student upload contests the submissions
        too.
        """
        contest = self.get_owned_contest(contest_id, teacher)
        current = ContestStatus(contest.status)
        target = ContestStatus(target_status)

        if not can_transition(current, target):
            raise InvalidTransition(
                f"Cannot change contest status from {current.value} "
                f"to {target.value}"
            )

        is_reset = (
            current == ContestStatus.RESULTS
            and target == ContestStatus.SUBMISSION
        )
        if clear_round and not is_reset:
            raise PreconditionFailed(
                "clear_round is only allowed when resetting to SUBMISSION"
            )

        if current == ContestStatus.SUBMISSION:
            submissions = (
                self.db.query(func.count(Submission.id))
                .filter(Submission.contest_id == contest.id)
                .scalar()
            )
            if not submissions:
                raise PreconditionFailed(
                    "At least one submission is required before voting"
                )

        # Compare-and-set so two teacher tabs cannot both advance
        updated = (
            self.db.query(Contest)
            .filter(Contest.id == contest.id, Contest.status == current)
            .update(
                {Contest.status: target, Contest.updated_at: func.now()},
                synchronize_session=False,
            )
        )
        if updated == 0:
            self.db.rollback()
            raise Conflict("Contest status was changed by another request")

        if clear_round:
            self._clear_round(contest)

        self.db.commit()
        self.db.refresh(contest)
        logger.info(
            "Contest %s moved from %s to %s%s",
            contest.id,
            current.value,
            target.value,
            " (round cleared)" if clear_round else "",
        )
        return contest

    def _clear_round(self, contest: Contest):
        self.db.query(Vote).filter(Vote.contest_id == contest.id).delete(
            synchronize_session=False
        )
        if contest.contest_type == ContestType.STUDENT_UPLOAD:
            self.db.query(Submission).filter(
                Submission.contest_id == contest.id
            ).delete(synchronize_session=False)

    def kick_participant(
        self, contest_id: int, teacher: User, participant_id: int
    ):
        """Remove a participant together with their submission and vote"""
        contest = self.get_owned_contest(contest_id, teacher)
        participant = (
            self.db.query(Participant)
            .filter(
                Participant.id == participant_id,
                Participant.contest_id == contest.id,
            )
            .first()
        )
        if not participant:
            raise NotFound("Participant not found in this contest")

        nickname = participant.nickname
        self.db.delete(participant)
        self.db.commit()
        logger.info(
            "Participant %s (%r) kicked from contest %s",
            participant_id,
            nickname,
            contest_id,
        )

    def delete_submission(
        self, contest_id: int, teacher: User, submission_id: int
    ):
        contest = self.get_owned_contest(contest_id, teacher)
        submission = (
            self.db.query(Submission)
            .filter(
                Submission.id == submission_id,
                Submission.contest_id == contest.id,
            )
            .first()
        )
        if not submission:
            raise NotFound("Submission not found")

        # Synthetic teacher upload participants go with their pair
        if submission.participant.is_teacher_upload:
            self.db.delete(submission.participant)
        else:
            self.db.delete(submission)
        self.db.commit()
        logger.info(
            "Submission %s deleted from contest %s", submission_id, contest_id
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _tally(self, contest_id: int):
        vote_count = func.count(Vote.id).label("vote_count")
        return (
            self.db.query(Submission, Participant.nickname, vote_count)
            .join(Participant, Participant.id == Submission.participant_id)
            .outerjoin(Vote, Vote.submission_id == Submission.id)
            .filter(Submission.contest_id == contest_id)
            .group_by(Submission.id, Participant.nickname)
        ), vote_count

    def get_results(self, contest_id: int) -> List[dict]:
        """
        Rank submissions by votes received.

        Ties go to the submission created first; the id breaks ties
        between rows created within the same clock tick.
        """
        self.get_contest(contest_id)
        query, vote_count = self._tally(contest_id)
        rows = query.order_by(
            vote_count.desc(),
            Submission.created_at.asc(),
            Submission.id.asc(),
        ).all()

        return [
            {
                "rank": rank,
                "submission_id": submission.id,
                "participant_nickname": nickname,
                "vote_count": votes,
                "ai_image_url": submission.ai_image_url,
                "real_image_url": submission.real_image_url,
            }
            for rank, (submission, nickname, votes) in enumerate(rows, start=1)
        ]

    def submission_views(self, contest_id: int) -> List[dict]:
        query, _ = self._tally(contest_id)
        rows = query.order_by(
            Submission.created_at.asc(), Submission.id.asc()
        ).all()
        return [
            {
                "id": submission.id,
                "participant_id": submission.participant_id,
                "nickname": nickname,
                "ai_image_url": submission.ai_image_url,
                "real_image_url": submission.real_image_url,
                "votes": votes,
            }
            for submission, nickname, votes in rows
        ]

    def get_participant_view(self, contest_id: int, session_id: str) -> dict:
        """State a participant's page polls for"""
        participant = self.participant_for_session(contest_id, session_id)
        contest = participant.contest
        return {
            "contest": summarize_contests(self.db, [contest])[0],
            "submissions": self.submission_views(contest.id),
            "has_submitted": participant.submission is not None,
            "has_voted": participant.vote is not None,
        }

    def get_manage_view(self, contest_id: int, teacher: User) -> dict:
        contest = self.get_owned_contest(contest_id, teacher)
        submitted = self._participant_ids(Submission, contest.id)
        voted = self._participant_ids(Vote, contest.id)
        participants = (
            self.db.query(Participant)
            .filter(
                Participant.contest_id == contest.id,
                Participant.is_teacher_upload.is_(False),
            )
            .order_by(Participant.created_at.asc(), Participant.id.asc())
            .all()
        )
        return {
            "contest": summarize_contests(self.db, [contest])[0],
            "participants": [
                {
                    "id": participant.id,
                    "nickname": participant.nickname,
                    "created_at": participant.created_at,
                    "has_submitted": participant.id in submitted,
                    "has_voted": participant.id in voted,
                }
                for participant in participants
            ],
            "submissions": self.submission_views(contest.id),
        }

    def _participant_ids(self, entity, contest_id: int) -> Set[int]:
        return {
            participant_id
            for (participant_id,) in self.db.query(
                entity.participant_id
            ).filter(entity.contest_id == contest_id)
        }
