from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import services, storage
from ..db import get_db
from ..models import User
from ..schemas import ChallengeStepOut, DailyChallengeOut
from ..seed import ensure_daily_challenge
from .auth import get_current_user


router = APIRouter(prefix="/api/daily-challenge", tags=["daily-challenge"])


@router.get("", response_model=DailyChallengeOut)
def today(db: Session = Depends(get_db)):
    return ensure_daily_challenge(db)


@router.post("/{challenge_id}/progress", response_model=ChallengeStepOut)
def add_progress(challenge_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    challenge = storage.get_challenge(db, challenge_id)
    if challenge is None:
        raise HTTPException(status_code=404, detail="Challenge not found")
    if challenge.date != date.today():
        raise HTTPException(status_code=409, detail="Challenge is no longer active")
    return services.complete_challenge_step(db, user, challenge)
