import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import timedelta
from ..database import get_db
from ..models.models import User
from ..schemas.user import UserCreate, UserLogin, UserResponse, Token
from ..utils.security import (
    get_password_hash,
    verify_password,
    create_access_token,
)
from ..config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["Authentication"])


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == email).first()


def _email_taken():
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Email already registered",
    )


@router.post("/register", response_model=UserResponse, status_code=201)
def register(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new teacher"""
    # Check if user exists
    if get_user_by_email(db, user.email):
        raise _email_taken()

    # Create new user
    db_user = User(
        email=user.email,
        name=user.name,
        password_hash=get_password_hash(user.password),
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        # Registered by a concurrent request after the check above
        db.rollback()
        raise _email_taken()
    db.refresh(db_user)
    logger.info("Registered teacher %s", db_user.id)

    return db_user


@router.post("/login", response_model=Token)
def login(user_credentials: UserLogin, db: Session = Depends(get_db)):
    """Authenticate a teacher and return an access token"""
    user = get_user_by_email(db, user_credentials.email)

    if not user or not verify_password(
        user_credentials.password, user.password_hash
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    access_token_expires = timedelta(
        minutes=settings.access_token_expire_minutes
    )
    access_token = create_access_token(
        data={"sub": str(user.id)}, expires_delta=access_token_expires
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": UserResponse.model_validate(user),
    }
