from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import services, storage
from ..db import get_db
from ..gamification import level_for_points
from ..models import User
from ..schemas import LessonCompletionOut, ProgressIn, ProgressOut
from .auth import get_current_user


router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.post("", response_model=LessonCompletionOut)
def record_progress(req: ProgressIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if req.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to record progress for another learner")
    lesson = storage.get_lesson(db, req.lesson_id)
    if lesson is None:
        raise HTTPException(status_code=404, detail="Lesson not found")
    if req.completed:
        return services.complete_lesson(db, user, lesson, req.score, req.time_spent)

    # Partial attempt: no rewards yet
    progress, _ = storage.record_progress(db, req)
    return LessonCompletionOut(
        progress=ProgressOut.model_validate(progress),
        first_completion=False,
        xp_gained=0,
        xp=user.xp,
        xp_level=level_for_points(user.xp),
        streak=user.streak,
    )
