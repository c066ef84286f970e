from __future__ import annotations

import logging
import math
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .adaptive import review_interval_days
from .errors import GoalNotFoundError
from .learning_path import SKILLS, AILearningPathSystem, learning_path_system


logger = logging.getLogger(__name__)

PRIORITY_RANK: Dict[str, int] = {"high": 0, "medium": 1, "low": 2}
WEEKLY_GOAL = 5


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DashboardGoalInput(BaseModel):
    type: Literal["vocabulary", "grammar", "speaking", "writing", "listening", "reading", "pronunciation"]
    title: str
    description: str = ""
    target_value: float = Field(gt=0)
    deadline: datetime
    priority: Literal["low", "medium", "high"] = "medium"


class DashboardGoal(DashboardGoalInput):
    id: str
    user_id: int
    current_value: float = 0
    status: Literal["active", "completed", "paused"] = "active"
    created_at: datetime = Field(default_factory=_now)


class StudyStreak(BaseModel):
    user_id: int
    current_streak: int
    longest_streak: int
    last_study_date: date
    weekly_goal: int = WEEKLY_GOAL
    weekly_progress: int


class DailyRecommendation(BaseModel):
    id: str
    user_id: int
    type: Literal["lesson", "exercise", "review", "practice"]
    title: str
    description: str
    estimated_time: int
    priority: float
    reasoning: str
    content: Dict[str, Any] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=_now)


class WeaknessAnalysis(BaseModel):
    skill: str
    confidence: float
    level: float
    improvement_rate: float
    recommended_actions: List[str] = Field(default_factory=list)


class LearningInsight(BaseModel):
    type: Literal["strength", "weakness", "trend", "achievement"]
    title: str
    description: str
    actionable: bool
    suggestions: List[str] = Field(default_factory=list)
    data_points: List[Any] = Field(default_factory=list)


class DashboardAchievement(BaseModel):
    id: str
    title: str
    description: str
    type: str
    xp_reward: int


def _week_start(day: date) -> date:
    # Weeks start on Sunday
    return day - timedelta(days=(day.weekday() + 1) % 7)


class PersonalizedDashboard:
    """Goals, study streaks and daily recommendations for the learner home page."""

    def __init__(self, paths: AILearningPathSystem) -> None:
        self.paths = paths
        self.goals: Dict[str, DashboardGoal] = {}
        self.streaks: Dict[int, StudyStreak] = {}
        self.recommendations: Dict[int, List[DailyRecommendation]] = {}
        self.insights: Dict[int, List[LearningInsight]] = {}
        self._insights_generated: Dict[int, date] = {}

    def reset(self) -> None:
        self.goals.clear()
        self.streaks.clear()
        self.recommendations.clear()
        self.insights.clear()
        self._insights_generated.clear()

    # Goals
    def create_goal(self, user_id: int, goal: DashboardGoalInput) -> DashboardGoal:
        new_goal = DashboardGoal(id=f"goal-{uuid.uuid4().hex[:12]}-{user_id}", user_id=user_id, **goal.model_dump())
        self.goals[new_goal.id] = new_goal
        return new_goal

    def update_goal_progress(self, goal_id: str, progress: float) -> DashboardGoal:
        goal = self.goals.get(goal_id)
        if goal is None:
            raise GoalNotFoundError(goal_id)
        goal.current_value = min(goal.target_value, progress)
        if goal.current_value >= goal.target_value:
            goal.status = "completed"
            logger.info("goal %s completed for user %s", goal.id, goal.user_id)
        return goal

    def get_goal(self, goal_id: str) -> Optional[DashboardGoal]:
        return self.goals.get(goal_id)

    def get_user_goals(self, user_id: int) -> List[DashboardGoal]:
        goals = [g for g in self.goals.values() if g.user_id == user_id]
        return sorted(goals, key=lambda g: (g.status != "active", PRIORITY_RANK[g.priority]))

    # Streaks
    def update_study_streak(self, user_id: int, today: Optional[date] = None) -> StudyStreak:
        today = today or _now().date()
        streak = self.streaks.get(user_id)
        if streak is None:
            streak = StudyStreak(
                user_id=user_id,
                current_streak=1,
                longest_streak=1,
                last_study_date=today,
                weekly_progress=1,
            )
            self.streaks[user_id] = streak
            return streak

        last_study = streak.last_study_date
        days = (today - last_study).days
        if days <= 0:
            return streak
        if days == 1:
            streak.current_streak += 1
            streak.longest_streak = max(streak.longest_streak, streak.current_streak)
        else:
            logger.debug("study streak for user %s reset after %d days", user_id, days)
            streak.current_streak = 1

        streak.last_study_date = today
        if last_study < _week_start(today):
            streak.weekly_progress = 1
        else:
            streak.weekly_progress += 1
        return streak

    def get_study_streak(self, user_id: int) -> Optional[StudyStreak]:
        return self.streaks.get(user_id)

    # Analysis drawn from the learner's learning path
    def analyze_weaknesses(self, user_id: int) -> List[WeaknessAnalysis]:
        path = self.paths.get_learning_path(user_id)
        if path is None:
            return []
        skills = [(name, path.skill_assessment.skill(name)) for name in SKILLS]
        skills.sort(key=lambda item: (item[1].level, item[1].confidence))
        return [
            WeaknessAnalysis(
                skill=name,
                confidence=skill.confidence,
                level=skill.level,
                improvement_rate=skill.improvement / 100,
                recommended_actions=[f"Practice {topic.replace('_', ' ')}" for topic in skill.struggling_topics],
            )
            for name, skill in skills[:2]
        ]

    def get_items_for_review(self, user_id: int, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        path = self.paths.get_learning_path(user_id)
        if path is None:
            return []
        now = now or _now()
        latest: Dict[tuple, Any] = {}
        for activity in path.learning_history:
            latest[(activity.skill_area, activity.topic)] = activity
        items = []
        for (skill_area, topic), activity in latest.items():
            completed_at = _aware(activity.completed_at)
            days_since = (now - completed_at) / timedelta(days=1)
            if days_since >= review_interval_days(activity.score):
                items.append({"type": skill_area, "topic": topic, "last_reviewed": completed_at.isoformat()})
        return items

    # Recommendations
    def generate_daily_recommendations(self, user_id: int) -> List[DailyRecommendation]:
        recommendations: List[DailyRecommendation] = []

        for index, weakness in enumerate(self.analyze_weaknesses(user_id)[:2]):
            recommendations.append(DailyRecommendation(
                id=f"rec-{uuid.uuid4().hex[:8]}-{index}",
                user_id=user_id,
                type="practice",
                title=f"Improve {weakness.skill}",
                description=f"Focus on {weakness.skill} to address identified gaps",
                estimated_time=15,
                priority=round(0.9 - index * 0.1, 2),
                reasoning=f"Your {weakness.skill} needs attention based on recent performance",
                content={"skill": weakness.skill, "exercises": weakness.recommended_actions},
            ))

        active_goals = [g for g in self.get_user_goals(user_id) if g.status == "active"]
        for index, goal in enumerate(active_goals[:2]):
            percent = goal.current_value / goal.target_value * 100
            days_left = math.ceil((_aware(goal.deadline) - _now()) / timedelta(days=1))
            recommendations.append(DailyRecommendation(
                id=f"rec-goal-{uuid.uuid4().hex[:8]}-{index}",
                user_id=user_id,
                type="lesson",
                title=f"Work towards: {goal.title}",
                description=f"Continue progress on your {goal.type} goal",
                estimated_time=20,
                priority=round(0.8 - index * 0.1, 2),
                reasoning=f"{percent:.0f}% complete with {days_left} days remaining",
                content={"goal_id": goal.id, "type": goal.type},
            ))

        review_items = self.get_items_for_review(user_id)
        if review_items:
            recommendations.append(DailyRecommendation(
                id=f"rec-review-{uuid.uuid4().hex[:8]}",
                user_id=user_id,
                type="review",
                title="Review Previous Content",
                description=f"Review {len(review_items)} items to strengthen memory",
                estimated_time=10,
                priority=0.7,
                reasoning="Spaced repetition improves long-term retention",
                content={"items": review_items},
            ))

        recommendations.sort(key=lambda r: r.priority, reverse=True)
        self.recommendations[user_id] = recommendations[:5]
        return self.recommendations[user_id]

    def get_daily_recommendations(self, user_id: int) -> List[DailyRecommendation]:
        existing = self.recommendations.get(user_id)
        today = _now().date()
        if existing and any(rec.generated_at.date() == today for rec in existing):
            return existing
        return self.generate_daily_recommendations(user_id)

    # Insights
    def generate_learning_insights(self, user_id: int) -> List[LearningInsight]:
        insights: List[LearningInsight] = []
        streak = self.get_study_streak(user_id)
        goals = self.get_user_goals(user_id)
        weaknesses = self.analyze_weaknesses(user_id)

        if streak is not None and streak.current_streak >= 7:
            insights.append(LearningInsight(
                type="achievement",
                title="Great Study Streak!",
                description=f"You've maintained a {streak.current_streak}-day study streak",
                actionable=True,
                suggestions=["Keep the momentum going", "Set a higher weekly goal"],
                data_points=[{"streak": streak.current_streak}],
            ))

        completed = [g for g in goals if g.status == "completed"]
        if completed:
            insights.append(LearningInsight(
                type="achievement",
                title="Goals Achieved",
                description=f"You've completed {len(completed)} learning goals",
                actionable=True,
                suggestions=["Set new challenging goals", "Celebrate your progress"],
                data_points=[g.model_dump(mode="json") for g in completed],
            ))

        improving = [w for w in weaknesses if w.improvement_rate > 0.05]
        if improving:
            insights.append(LearningInsight(
                type="trend",
                title="Skills Improving",
                description=f"Your {' and '.join(w.skill for w in improving)} are getting better",
                actionable=True,
                suggestions=["Continue focused practice", "Track your improvement"],
                data_points=[w.model_dump() for w in improving],
            ))

        needs_attention = [w for w in weaknesses if w.confidence < 0.7]
        if needs_attention:
            insights.append(LearningInsight(
                type="weakness",
                title="Areas for Focus",
                description=f"Consider spending more time on {' and '.join(w.skill for w in needs_attention)}",
                actionable=True,
                suggestions=[action for w in needs_attention for action in w.recommended_actions],
                data_points=[w.model_dump() for w in needs_attention],
            ))

        self.insights[user_id] = insights
        self._insights_generated[user_id] = _now().date()
        return insights

    def get_learning_insights(self, user_id: int) -> List[LearningInsight]:
        if self._insights_generated.get(user_id) == _now().date():
            return self.insights[user_id]
        return self.generate_learning_insights(user_id)

    def check_achievements(self, user_id: int) -> List[DashboardAchievement]:
        achievements: List[DashboardAchievement] = []
        streak = self.get_study_streak(user_id)
        if streak is not None:
            if streak.current_streak == 7:
                achievements.append(DashboardAchievement(
                    id="week-streak", title="Week Warrior",
                    description="Studied for 7 consecutive days", type="streak", xp_reward=100,
                ))
            if streak.current_streak == 30:
                achievements.append(DashboardAchievement(
                    id="month-streak", title="Monthly Master",
                    description="Studied for 30 consecutive days", type="streak", xp_reward=500,
                ))
        completed = [g for g in self.get_user_goals(user_id) if g.status == "completed"]
        if len(completed) >= 5:
            achievements.append(DashboardAchievement(
                id="goal-achiever", title="Goal Crusher",
                description="Completed 5 learning goals", type="goals", xp_reward=250,
            ))
        return achievements


dashboard = PersonalizedDashboard(learning_path_system)
