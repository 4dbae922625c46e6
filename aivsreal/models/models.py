import enum

from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    String,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class ContestStatus(str, enum.Enum):
    SUBMISSION = "SUBMISSION"
    VOTING = "VOTING"
    RESULTS = "RESULTS"
    ENDED = "ENDED"


class ContestType(str, enum.Enum):
    STUDENT_UPLOAD = "STUDENT_UPLOAD"
    TEACHER_UPLOAD = "TEACHER_UPLOAD"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(100))
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    classrooms = relationship(
        "Classroom", back_populates="teacher", cascade="all, delete"
    )
    contests = relationship(
        "Contest", back_populates="teacher", cascade="all, delete"
    )


class Classroom(Base):
    __tablename__ = "classrooms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    teacher_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    teacher = relationship("User", back_populates="classrooms")
    contests = relationship(
        "Contest", back_populates="classroom", cascade="all, delete"
    )


class Contest(Base):
    __tablename__ = "contests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    join_code = Column(String(16), unique=True, nullable=False, index=True)
    status = Column(
        Enum(ContestStatus, name="contest_status"),
        nullable=False,
        default=ContestStatus.SUBMISSION,
    )
    contest_type = Column(
        Enum(ContestType, name="contest_type"),
        nullable=False,
        default=ContestType.STUDENT_UPLOAD,
    )
    classroom_id = Column(
        Integer,
        ForeignKey("classrooms.id", ondelete="CASCADE"),
        nullable=False,
    )
    teacher_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    classroom = relationship("Classroom", back_populates="contests")
    teacher = relationship("User", back_populates="contests")
    participants = relationship(
        "Participant", back_populates="contest", cascade="all, delete"
    )
    submissions = relationship(
        "Submission", back_populates="contest", cascade="all, delete"
    )
    votes = relationship(
        "Vote", back_populates="contest", cascade="all, delete"
    )


class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nickname = Column(String(100), nullable=False)
    contest_id = Column(
        Integer, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False
    )
    session_id = Column(String(64), unique=True, nullable=False, index=True)
    is_teacher_upload = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())

    contest = relationship("Contest", back_populates="participants")
    submission = relationship(
        "Submission",
        back_populates="participant",
        uselist=False,
        cascade="all, delete",
    )
    vote = relationship(
        "Vote",
        back_populates="participant",
        uselist=False,
        cascade="all, delete",
    )

    __table_args__ = (
        UniqueConstraint(
            "contest_id", "nickname", name="unique_contest_nickname"
        ),
    )


# Nicknames are unique per contest regardless of case
Index(
    "unique_contest_nickname_ci",
    Participant.contest_id,
    func.lower(Participant.nickname),
    unique=True,
)


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ai_image_url = Column(String(1024), nullable=False)
    real_image_url = Column(String(1024), nullable=False)
    participant_id = Column(
        Integer,
        ForeignKey("participants.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    contest_id = Column(
        Integer, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, server_default=func.now())

    participant = relationship("Participant", back_populates="submission")
    contest = relationship("Contest", back_populates="submissions")
    votes = relationship(
        "Vote", back_populates="submission", cascade="all, delete"
    )


class Vote(Base):
    __tablename__ = "votes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    participant_id = Column(
        Integer,
        ForeignKey("participants.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    submission_id = Column(
        Integer,
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
    )
    contest_id = Column(
        Integer, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, server_default=func.now())

    participant = relationship("Participant", back_populates="vote")
    submission = relationship("Submission", back_populates="votes")
    contest = relationship("Contest", back_populates="votes")
