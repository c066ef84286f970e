from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..learning_path import (
    AIInsight,
    LearningActivity,
    LearningActivityInput,
    LearningGoal,
    LearningGoalInput,
    LearningPathData,
    LearningPreferences,
    LearningRecommendation,
    SkillLevel,
    learning_path_system,
)
from ..models import User
from .auth import require_self


router = APIRouter(prefix="/api/learning-path", tags=["learning-path"])


class PreferencesUpdate(BaseModel):
    preferred_learning_time: Optional[str] = None
    session_duration: Optional[int] = Field(default=None, ge=1)
    difficulty_preference: Optional[Literal["adaptive", "challenging", "comfortable"]] = None
    learning_style: Optional[Literal["visual", "auditory", "kinesthetic", "mixed"]] = None
    focus_areas: Optional[List[str]] = None
    motivation_factors: Optional[List[str]] = None
    avoidance_topics: Optional[List[str]] = None


class AssessRequest(BaseModel):
    skill_area: str
    score: float = Field(ge=0, le=100)


def _path_for(user: User) -> LearningPathData:
    # Paths live in process memory; learners without one get a baseline path
    return learning_path_system.create_learning_path(user.id, user.level)


@router.get("/{user_id}", response_model=LearningPathData)
def get_path(user_id: int, user: User = Depends(require_self)):
    return _path_for(user)


@router.post("/{user_id}/activities", response_model=LearningActivity, status_code=201)
def record_activity(user_id: int, req: LearningActivityInput, user: User = Depends(require_self)):
    _path_for(user)
    return learning_path_system.record_learning_activity(user.id, req)


@router.get("/{user_id}/recommendations", response_model=List[LearningRecommendation])
def recommendations(user_id: int, user: User = Depends(require_self)):
    _path_for(user)
    return learning_path_system.generate_personalized_recommendations(user.id)


@router.get("/{user_id}/next", response_model=LearningRecommendation)
def next_recommendation(user_id: int, user: User = Depends(require_self)):
    _path_for(user)
    recommendation = learning_path_system.get_next_recommendation(user.id)
    if recommendation is None:
        raise HTTPException(status_code=404, detail="No recommendations available")
    return recommendation


@router.get("/{user_id}/insights", response_model=List[AIInsight])
def insights(user_id: int, user: User = Depends(require_self)):
    _path_for(user)
    return learning_path_system.generate_ai_insights(user.id)


@router.patch("/{user_id}/preferences", response_model=LearningPreferences)
def update_preferences(user_id: int, req: PreferencesUpdate, user: User = Depends(require_self)):
    path = _path_for(user)
    # An explicit null leaves the stored preference as it is
    learning_path_system.update_learning_preferences(user.id, req.model_dump(exclude_none=True))
    return path.preferences


@router.post("/{user_id}/goals", response_model=LearningGoal, status_code=201)
def create_goal(user_id: int, req: LearningGoalInput, user: User = Depends(require_self)):
    _path_for(user)
    return learning_path_system.create_learning_goal(user.id, req)


@router.post("/{user_id}/assess", response_model=SkillLevel)
def assess(user_id: int, req: AssessRequest, user: User = Depends(require_self)):
    _path_for(user)
    try:
        return learning_path_system.assess_skill_level(user.id, req.skill_area, req.score)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
