"""Flows that touch several stores at once: finishing lessons and challenge steps."""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from . import gamification, storage
from .adaptive import get_difficulty_score
from .dashboard import dashboard
from .learning_path import SKILLS, LearningActivityInput, learning_path_system
from .models import DailyChallenge, Lesson, User
from .schemas import (
    AchievementOut,
    ChallengeStepOut,
    LessonCompletionOut,
    ProgressIn,
    ProgressOut,
    UserDailyChallengeOut,
)


logger = logging.getLogger(__name__)


def complete_challenge_step(db: Session, user: User, challenge: DailyChallenge, now: Optional[datetime] = None) -> ChallengeStepOut:
    row, just_completed = storage.advance_challenge(db, user.id, challenge, now)
    xp_gained = 0
    if just_completed:
        gamification.award_xp(
            db, user, challenge.xp_reward, f'Completed daily challenge "{challenge.title}"',
            activity_type="challenge_completed", description=challenge.description,
        )
        db.commit()
        xp_gained = challenge.xp_reward
        logger.info("user %s completed daily challenge %s", user.username, challenge.id)
    return ChallengeStepOut(
        progress=UserDailyChallengeOut.model_validate(row),
        target=int((challenge.completion_requirement or {}).get("count", 1)),
        just_completed=just_completed,
        xp_gained=xp_gained,
    )


def _feed_learning_path(user: User, lesson: Lesson, score: int, time_spent: int) -> None:
    skill_area = (lesson.category or "").lower()
    if skill_area not in SKILLS:
        return
    learning_path_system.create_learning_path(user.id, user.level)
    learning_path_system.record_learning_activity(user.id, LearningActivityInput(
        type="lesson",
        topic=lesson.topic,
        skill_area=skill_area,
        difficulty=round(get_difficulty_score(lesson) * 100),
        time_spent=time_spent,
        score=score,
        accuracy=score,
    ))


def complete_lesson(
    db: Session,
    user: User,
    lesson: Lesson,
    score: Optional[int] = None,
    time_spent: Optional[int] = None,
    today: Optional[date] = None,
) -> LessonCompletionOut:
    """Record a finished lesson and everything that follows from it.

    XP, streak, the activity feed and today's matching challenge only move on
    the first completion of a lesson. Every completion feeds the learning path
    when the lesson category is one of the tracked skills.
    """
    progress, first_completion = storage.record_progress(db, ProgressIn(
        user_id=user.id,
        lesson_id=lesson.id,
        completed=True,
        score=score,
        time_spent=time_spent,
    ))

    xp_gained = 0
    challenge_out = None
    if first_completion:
        gamification.award_xp(
            db, user, lesson.xp_reward, f'Completed "{lesson.title}" lesson',
            activity_type="lesson_completed", description=f"+{lesson.xp_reward} XP",
        )
        gamification.record_daily_activity(db, user, today)
        db.commit()
        db.refresh(user)
        xp_gained = lesson.xp_reward
        dashboard.update_study_streak(user.id, today)

        challenge = storage.get_daily_challenge(db, today)
        requirement = (challenge.completion_requirement or {}) if challenge is not None else {}
        if challenge is not None and requirement.get("type") == (lesson.category or "").lower():
            step = complete_challenge_step(db, user, challenge)
            challenge_out = step.progress
            xp_gained += step.xp_gained

    _feed_learning_path(user, lesson, score or 0, time_spent if time_spent is not None else lesson.estimated_minutes)

    # e.g. {"lesson_score": 92, "speaking_score": 92}
    activity_data = {"lesson_score": score or 0, f"{(lesson.category or '').lower()}_score": score or 0}
    unlocked = gamification.check_and_unlock_achievements(db, user, activity_data)
    xp_gained += sum(a.xp_reward for a in unlocked)
    db.refresh(user)

    return LessonCompletionOut(
        progress=ProgressOut.model_validate(progress),
        first_completion=first_completion,
        xp_gained=xp_gained,
        xp=user.xp,
        xp_level=gamification.level_for_points(user.xp),
        streak=user.streak,
        achievements_unlocked=[AchievementOut.model_validate(a) for a in unlocked],
        challenge=challenge_out,
    )
