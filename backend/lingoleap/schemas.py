"""Pydantic response/request models for the persisted tables."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    first_name: str
    last_name: str
    level: str
    xp: int
    streak: int
    longest_streak: int = 0
    last_active_date: Optional[date] = None
    preferences: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    level: Optional[str] = Field(default=None, pattern="^(beginner|intermediate|advanced)$")
    preferences: Optional[Dict[str, Any]] = None


class LessonIn(BaseModel):
    title: str
    description: str
    category: str
    level: str = Field(pattern="^(beginner|intermediate|advanced|expert)$")
    topic: str
    content: Dict[str, Any] = Field(default_factory=dict)
    xp_reward: int = Field(default=25, ge=0)
    estimated_minutes: int = Field(default=15, ge=1)
    is_offline_available: bool = True


class LessonOut(LessonIn):
    model_config = ConfigDict(from_attributes=True)

    id: int


class ProgressIn(BaseModel):
    user_id: int
    lesson_id: int
    completed: bool = False
    score: Optional[int] = Field(default=None, ge=0, le=100)
    time_spent: Optional[int] = Field(default=None, ge=0)


class ProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    lesson_id: int
    completed: bool
    score: Optional[int] = None
    completed_at: Optional[datetime] = None
    time_spent: Optional[int] = None
    attempts: int


class AchievementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    icon: str
    category: str
    requirement: List[Dict[str, Any]] = Field(default_factory=list)
    prerequisites: List[int] = Field(default_factory=list)
    xp_reward: int
    is_secret: bool


class UserAchievementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    achievement_id: int
    earned_at: datetime
    share_count: int = 0


class VocabularyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    word: str
    definition: str
    pronunciation: Optional[str] = None
    level: str
    topic: str
    example_sentence: Optional[str] = None
    translation: Optional[str] = None


class UserVocabularyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    vocabulary_id: int
    mastered: bool
    last_practiced: Optional[datetime] = None
    practice_count: int
    mastery_level: int
    streak_count: int
    next_review_at: Optional[datetime] = None


class DailyChallengeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    date: date
    content: Dict[str, Any] = Field(default_factory=dict)
    xp_reward: int
    completion_requirement: Dict[str, Any] = Field(default_factory=dict)


class UserDailyChallengeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    challenge_id: int
    current_count: int
    completed: bool
    completed_at: Optional[datetime] = None


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: str
    title: str
    description: Optional[str] = None
    xp_gained: int
    created_at: datetime


class UserStats(BaseModel):
    level: str
    xp: int
    xp_level: int
    streak: int
    longest_streak: int
    lessons_completed: int
    achievements_earned: int
    vocabulary_mastered: int


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str


class LessonCompletionOut(BaseModel):
    progress: ProgressOut
    first_completion: bool
    xp_gained: int
    xp: int
    xp_level: int
    streak: int
    achievements_unlocked: List[AchievementOut] = Field(default_factory=list)
    challenge: Optional[UserDailyChallengeOut] = None


class ChallengeStepOut(BaseModel):
    progress: UserDailyChallengeOut
    target: int
    just_completed: bool
    xp_gained: int
