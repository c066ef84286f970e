from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from .. import storage
from ..db import get_db
from ..models import User
from ..schemas import LessonIn, LessonOut
from .auth import get_current_user


router = APIRouter(prefix="/api/lessons", tags=["lessons"])


@router.get("", response_model=List[LessonOut])
def list_lessons(
    category: Optional[str] = Query(default=None),
    level: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    return storage.list_lessons(db, category=category, level=level)


@router.get("/{lesson_id}", response_model=LessonOut)
def get_lesson(lesson_id: int, db: Session = Depends(get_db)):
    lesson = storage.get_lesson(db, lesson_id)
    if lesson is None:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return lesson


@router.post("", response_model=LessonOut, status_code=201)
def create_lesson(req: LessonIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return storage.create_lesson(db, req)
