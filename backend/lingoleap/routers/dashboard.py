from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..dashboard import (
    DailyRecommendation,
    DashboardAchievement,
    DashboardGoal,
    DashboardGoalInput,
    LearningInsight,
    StudyStreak,
    dashboard,
)
from ..errors import GoalNotFoundError
from ..models import User
from .auth import get_current_user, require_self


router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


class GoalProgressRequest(BaseModel):
    progress: float = Field(ge=0)


@router.post("/goals", response_model=DashboardGoal, status_code=201)
def create_goal(req: DashboardGoalInput, user: User = Depends(get_current_user)):
    return dashboard.create_goal(user.id, req)


@router.get("/goals/{user_id}", response_model=List[DashboardGoal])
def list_goals(user_id: int, user: User = Depends(require_self)):
    return dashboard.get_user_goals(user_id)


@router.patch("/goals/{goal_id}/progress", response_model=DashboardGoal)
def update_goal(goal_id: str, req: GoalProgressRequest, user: User = Depends(get_current_user)):
    goal = dashboard.get_goal(goal_id)
    if goal is None or goal.user_id != user.id:
        raise HTTPException(status_code=404, detail=f"Goal {goal_id} not found")
    try:
        return dashboard.update_goal_progress(goal_id, req.progress)
    except GoalNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/recommendations/{user_id}", response_model=List[DailyRecommendation])
def recommendations(user_id: int, user: User = Depends(require_self)):
    return dashboard.get_daily_recommendations(user_id)


@router.get("/insights/{user_id}", response_model=List[LearningInsight])
def insights(user_id: int, user: User = Depends(require_self)):
    return dashboard.get_learning_insights(user_id)


@router.post("/streak/{user_id}", response_model=StudyStreak)
def update_streak(user_id: int, user: User = Depends(require_self)):
    return dashboard.update_study_streak(user_id)


@router.get("/achievements/{user_id}", response_model=List[DashboardAchievement])
def achievements(user_id: int, user: User = Depends(require_self)):
    return dashboard.check_achievements(user_id)
