import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from aivsreal.database import Base, get_db
from aivsreal.main import app
from aivsreal.models.models import (
    Classroom,
    Contest,
    ContestStatus,
    ContestType,
    User,
)
from aivsreal.services.lifecycle import ContestLifecycle
from aivsreal.utils.security import create_access_token, get_password_hash

TEACHER_PASSWORD = "testpass123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_teacher(db, email):
    user = User(
        email=email,
        name=email.split("@")[0],
        password_hash=get_password_hash(TEACHER_PASSWORD),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def teacher(db):
    return _make_teacher(db, "teacher@example.com")


@pytest.fixture
def other_teacher(db):
    return _make_teacher(db, "other@example.com")


@pytest.fixture
def classroom(db, teacher):
    classroom = Classroom(name="Period 3", teacher_id=teacher.id)
    db.add(classroom)
    db.commit()
    db.refresh(classroom)
    return classroom


@pytest.fixture
def make_contest(db, teacher, classroom):
    codes = iter(f"CODE{n:02d}" for n in range(100))

    def factory(
        contest_type=ContestType.STUDENT_UPLOAD,
        status=ContestStatus.SUBMISSION,
        title="Spot the fake",
    ):
        contest = Contest(
            title=title,
            join_code=next(codes),
            classroom_id=classroom.id,
            teacher_id=teacher.id,
            contest_type=contest_type,
            status=status,
        )
        db.add(contest)
        db.commit()
        db.refresh(contest)
        return contest

    return factory


@pytest.fixture
def contest(make_contest):
    return make_contest()


@pytest.fixture
def lifecycle(db):
    return ContestLifecycle(db)


def auth_header(user):
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def teacher_headers(teacher):
    return auth_header(teacher)
