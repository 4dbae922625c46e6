"""Create a demo teacher and classroom: python -m aivsreal.seed"""
import logging

from .database import SessionLocal, init_db
from .models.models import Classroom, User
from .utils.security import get_password_hash

logger = logging.getLogger(__name__)

DEMO_EMAIL = "teacher@test.com"
DEMO_PASSWORD = "password123"
DEMO_CLASSROOM = "Test Classroom"


def seed(db):
    teacher = db.query(User).filter(User.email == DEMO_EMAIL).first()
    if not teacher:
        teacher = User(
            email=DEMO_EMAIL,
            name="Test Teacher",
            password_hash=get_password_hash(DEMO_PASSWORD),
        )
        db.add(teacher)
        db.commit()
        db.refresh(teacher)
    logger.info("Teacher ready: %s (id %s)", teacher.email, teacher.id)

    classroom = (
        db.query(Classroom)
        .filter(
            Classroom.teacher_id == teacher.id,
            Classroom.name == DEMO_CLASSROOM,
        )
        .first()
    )
    if not classroom:
        classroom = Classroom(name=DEMO_CLASSROOM, teacher_id=teacher.id)
        db.add(classroom)
        db.commit()
        db.refresh(classroom)
    logger.info("Classroom ready: %s (id %s)", classroom.name, classroom.id)

    return teacher, classroom


def main():
    logging.basicConfig(level=logging.INFO)
    init_db()
    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
