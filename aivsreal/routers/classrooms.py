from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from ..database import get_db
from ..dependencies import get_current_user
from ..models.models import User
from ..schemas.classroom import (
    ClassroomCreate,
    ClassroomDetail,
    ClassroomResponse,
    ClassroomUpdate,
)
from ..services import classrooms

router = APIRouter(prefix="/classrooms", tags=["Classrooms"])


@router.get("", response_model=List[ClassroomResponse])
def get_classrooms(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the teacher's classrooms, newest first"""
    return classrooms.list_classrooms(db, current_user)


@router.post("", response_model=ClassroomResponse, status_code=201)
def create_classroom(
    classroom: ClassroomCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a new classroom"""
    return classrooms.create_classroom(db, current_user, classroom.name)


@router.get("/{classroom_id}", response_model=ClassroomDetail)
def get_classroom(
    classroom_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get a classroom together with its contests"""
    return classrooms.get_classroom(db, classroom_id, current_user)


@router.patch("/{classroom_id}", response_model=ClassroomResponse)
def rename_classroom(
    classroom_id: int,
    classroom: ClassroomUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Rename a classroom"""
    return classrooms.rename_classroom(
        db, classroom_id, current_user, classroom.name
    )


@router.delete("/{classroom_id}")
def delete_classroom(
    classroom_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a classroom and every contest in it"""
    classrooms.delete_classroom(db, classroom_id, current_user)
    return {"success": True}
