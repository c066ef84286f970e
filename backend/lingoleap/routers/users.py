from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import gamification, storage
from ..adaptive import AdaptiveRecommendation, LearningProfile, adaptive_engine
from ..db import get_db
from ..learning_path import learning_path_system
from ..models import User
from ..schemas import (
    ActivityOut,
    ProgressOut,
    UserAchievementOut,
    UserOut,
    UserStats,
    UserUpdate,
    UserVocabularyOut,
)
from ..settings import settings
from .auth import get_current_user, require_self


router = APIRouter(prefix="/api/users", tags=["users"])


class PracticeRequest(BaseModel):
    correct: bool


class AdaptiveRecommendationsResponse(BaseModel):
    profile: LearningProfile
    recommendations: List[AdaptiveRecommendation]
    generated_at: datetime


class AdaptiveDifficultyResponse(BaseModel):
    user_id: int
    optimal_difficulty: float
    calculated_at: datetime


@router.patch("/me", response_model=UserOut)
def update_me(req: UserUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user = storage.update_user(db, user, **req.model_dump(exclude_unset=True))
    learning_path_system.create_learning_path(user.id, user.level)
    return user


@router.get("/{username}", response_model=UserOut)
def get_user(username: str, db: Session = Depends(get_db)):
    user = storage.get_user_by_username(db, username)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/{user_id}/stats", response_model=UserStats)
def get_stats(user_id: int, user: User = Depends(require_self), db: Session = Depends(get_db)):
    return storage.get_user_stats(db, user)


@router.get("/{user_id}/activities", response_model=List[ActivityOut])
def get_activities(
    user_id: int,
    limit: int = Query(default=settings.activity_feed_limit, ge=1, le=100),
    user: User = Depends(require_self),
    db: Session = Depends(get_db),
):
    return storage.list_activities(db, user.id, limit)


@router.get("/{user_id}/progress", response_model=List[ProgressOut])
def get_progress(user_id: int, user: User = Depends(require_self), db: Session = Depends(get_db)):
    return storage.list_progress(db, user.id)


@router.get("/{user_id}/achievements", response_model=List[UserAchievementOut])
def get_achievements(user_id: int, user: User = Depends(require_self), db: Session = Depends(get_db)):
    return storage.get_user_achievements(db, user.id)


@router.get("/{user_id}/vocabulary", response_model=List[UserVocabularyOut])
def get_vocabulary(user_id: int, user: User = Depends(require_self), db: Session = Depends(get_db)):
    return storage.get_user_vocabulary(db, user.id)


@router.post("/{user_id}/vocabulary/{vocabulary_id}/practice", response_model=UserVocabularyOut)
def practice_word(
    user_id: int,
    vocabulary_id: int,
    req: PracticeRequest,
    user: User = Depends(require_self),
    db: Session = Depends(get_db),
):
    if storage.get_vocabulary(db, vocabulary_id) is None:
        raise HTTPException(status_code=404, detail="Word not found")
    row = storage.practice_vocabulary(db, user.id, vocabulary_id, req.correct)
    if row.mastered:
        gamification.check_and_unlock_achievements(db, user)
    return row


@router.get("/{user_id}/learning-profile", response_model=LearningProfile)
def get_learning_profile(user_id: int, user: User = Depends(require_self), db: Session = Depends(get_db)):
    return adaptive_engine.analyze_user_performance(user, storage.list_progress(db, user.id), storage.list_lessons(db))


@router.get("/{user_id}/recommendations", response_model=AdaptiveRecommendationsResponse)
def get_recommendations(user_id: int, user: User = Depends(require_self), db: Session = Depends(get_db)):
    progress = storage.list_progress(db, user.id)
    lessons = storage.list_lessons(db)
    profile = adaptive_engine.analyze_user_performance(user, progress, lessons)
    return AdaptiveRecommendationsResponse(
        profile=profile,
        recommendations=adaptive_engine.generate_recommendations(profile, lessons, progress),
        generated_at=datetime.now(timezone.utc),
    )


@router.post("/{user_id}/adaptive-difficulty", response_model=AdaptiveDifficultyResponse)
def adaptive_difficulty(user_id: int, user: User = Depends(require_self), db: Session = Depends(get_db)):
    progress = sorted(
        storage.list_progress(db, user.id),
        key=lambda p: p.completed_at or datetime.min,
        reverse=True,
    )
    return AdaptiveDifficultyResponse(
        user_id=user.id,
        optimal_difficulty=adaptive_engine.calculate_optimal_difficulty(progress),
        calculated_at=datetime.now(timezone.utc),
    )
