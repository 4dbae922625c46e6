import logging
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import Conflict, NotFound
from ..models.models import Classroom, Contest, ContestType, User
from ..utils.codes import generate_join_code
from .lifecycle import summarize_contests

logger = logging.getLogger(__name__)

MAX_JOIN_CODE_ATTEMPTS = 20


def _classroom_dict(classroom: Classroom, contest_count: int) -> dict:
    return {
        "id": classroom.id,
        "name": classroom.name,
        "created_at": classroom.created_at,
        "contest_count": contest_count,
    }


def get_owned_classroom(
    db: Session, classroom_id: int, teacher: User
) -> Classroom:
    classroom = (
        db.query(Classroom)
        .filter(Classroom.id == classroom_id, Classroom.teacher_id == teacher.id)
        .first()
    )
    if not classroom:
        raise NotFound("Classroom not found or access denied")
    return classroom


def list_classrooms(db: Session, teacher: User) -> List[dict]:
    """Teacher's classrooms, newest first, with their contest counts"""
    rows = (
        db.query(Classroom, func.count(Contest.id))
        .outerjoin(Contest, Contest.classroom_id == Classroom.id)
        .filter(Classroom.teacher_id == teacher.id)
        .group_by(Classroom.id)
        .order_by(Classroom.created_at.desc(), Classroom.id.desc())
        .all()
    )
    return [_classroom_dict(classroom, count) for classroom, count in rows]


def create_classroom(db: Session, teacher: User, name: str) -> dict:
    classroom = Classroom(name=name.strip(), teacher_id=teacher.id)
    db.add(classroom)
    db.commit()
    db.refresh(classroom)
    logger.info("Teacher %s created classroom %s", teacher.id, classroom.id)
    return _classroom_dict(classroom, 0)


def get_classroom(db: Session, classroom_id: int, teacher: User) -> dict:
    classroom = get_owned_classroom(db, classroom_id, teacher)
    contests = (
        db.query(Contest)
        .filter(Contest.classroom_id == classroom.id)
        .order_by(Contest.created_at.desc(), Contest.id.desc())
        .all()
    )
    return {
        "classroom": _classroom_dict(classroom, len(contests)),
        "contests": summarize_contests(db, contests),
    }


def rename_classroom(
    db: Session, classroom_id: int, teacher: User, name: str
) -> dict:
    classroom = get_owned_classroom(db, classroom_id, teacher)
    classroom.name = name.strip()
    db.commit()
    db.refresh(classroom)
    contest_count = (
        db.query(func.count(Contest.id))
        .filter(Contest.classroom_id == classroom.id)
        .scalar()
    )
    return _classroom_dict(classroom, contest_count)


def delete_classroom(db: Session, classroom_id: int, teacher: User):
    """Delete a classroom along with every contest in it"""
    classroom = get_owned_classroom(db, classroom_id, teacher)
    db.delete(classroom)
    db.commit()
    logger.info("Teacher %s deleted classroom %s", teacher.id, classroom_id)


def list_contests(db: Session, teacher: User) -> List[dict]:
    contests = (
        db.query(Contest)
        .filter(Contest.teacher_id == teacher.id)
        .order_by(Contest.created_at.desc(), Contest.id.desc())
        .all()
    )
    return summarize_contests(db, contests)


def _unused_join_code(db: Session) -> str:
    for _ in range(MAX_JOIN_CODE_ATTEMPTS):
        code = generate_join_code()
        exists = db.query(Contest.id).filter(Contest.join_code == code).first()
        if not exists:
            return code
    raise Conflict("Could not generate a unique join code, please retry")


def create_contest(
    db: Session,
    teacher: User,
    title: str,
    classroom_id: int,
    contest_type: ContestType = ContestType.STUDENT_UPLOAD,
) -> dict:
    classroom = get_owned_classroom(db, classroom_id, teacher)

    contest = Contest(
        title=title.strip(),
        join_code=_unused_join_code(db),
        classroom_id=classroom.id,
        teacher_id=teacher.id,
        contest_type=contest_type,
    )
    db.add(contest)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Join code collision, please retry")
    db.refresh(contest)
    logger.info(
        "Teacher %s created %s contest %s with code %s",
        teacher.id,
        contest.contest_type.value,
        contest.id,
        contest.join_code,
    )
    return summarize_contests(db, [contest])[0]


def delete_contest(db: Session, contest_id: int, teacher: User):
    contest = (
        db.query(Contest)
        .filter(Contest.id == contest_id, Contest.teacher_id == teacher.id)
        .first()
    )
    if not contest:
        raise NotFound("Contest not found or access denied")
    db.delete(contest)
    db.commit()
    logger.info("Teacher %s deleted contest %s", teacher.id, contest_id)
