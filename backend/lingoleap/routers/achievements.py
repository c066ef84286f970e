from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import gamification, storage
from ..db import get_db
from ..models import User
from ..schemas import AchievementOut
from ..settings import settings
from .auth import get_current_user


router = APIRouter(prefix="/api/achievements", tags=["achievements"])


class StreakOut(BaseModel):
    streak: int
    longest_streak: int
    last_active_date: Optional[date] = None
    freezes_remaining: int


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    display_name: str
    score: int
    level: int


class ShareOut(BaseModel):
    achievement_id: int
    share_count: int
    message: str


def _streak_out(user: User) -> StreakOut:
    return StreakOut(
        streak=user.streak,
        longest_streak=user.longest_streak,
        last_active_date=user.last_active_date,
        freezes_remaining=max(0, settings.max_streak_freezes - user.streak_freezes_used),
    )


@router.get("", response_model=List[AchievementOut])
def list_achievements(db: Session = Depends(get_db)):
    return [a for a in storage.list_achievements(db) if not a.is_secret]


@router.get("/available", response_model=List[AchievementOut])
def available(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return gamification.available_achievements(db, user)


@router.post("/check", response_model=List[AchievementOut])
def check(
    activity_data: Optional[Dict[str, float]] = Body(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return gamification.check_and_unlock_achievements(db, user, activity_data)


@router.post("/streak", response_model=StreakOut)
def record_streak(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    gamification.record_daily_activity(db, user)
    db.commit()
    db.refresh(user)
    return _streak_out(user)


@router.post("/streak/freeze", response_model=StreakOut)
def freeze_streak(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if not gamification.use_streak_freeze(db, user):
        raise HTTPException(status_code=409, detail="No streak freezes available")
    db.refresh(user)
    return _streak_out(user)


@router.post("/{achievement_id}/share", response_model=ShareOut)
def share(achievement_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    result = gamification.share_achievement(db, user, achievement_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Achievement not earned")
    return result


@router.get("/leaderboard/{category}", response_model=List[LeaderboardEntry])
def leaderboard(category: str, limit: int = Query(default=50, ge=1, le=100), db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    try:
        return gamification.leaderboard(db, category, limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
