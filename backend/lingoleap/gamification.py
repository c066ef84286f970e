from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from .models import Achievement, Activity, User, UserAchievement, UserProgress
from .settings import settings
from . import storage


logger = logging.getLogger(__name__)

LEADERBOARD_CATEGORIES = ("xp", "streak", "lessons")
STREAK_MILESTONES = (7, 30, 100)


class StreakState(NamedTuple):
    streak: int
    longest: int
    last_date: date


def level_for_points(xp: int) -> int:
    return int(math.floor(math.sqrt(max(0, xp) / 50))) + 1


def advance_streak(streak: int, longest: int, last_date: Optional[date], activity_date: date) -> StreakState:
    """Apply one day of activity to a streak.

    The streak grows only when ``activity_date`` is the calendar day after
    ``last_date``. Same-day or backdated activity leaves it untouched; a gap
    restarts it at 1.
    """
    if last_date is None:
        return StreakState(1, max(longest, 1), activity_date)
    days = (activity_date - last_date).days
    if days <= 0:
        return StreakState(streak, longest, last_date)
    if days == 1:
        streak += 1
        return StreakState(streak, max(longest, streak), activity_date)
    return StreakState(1, max(longest, 1), activity_date)


def requirements_met(requirements: Sequence[Mapping[str, Any]], metrics: Mapping[str, float]) -> bool:
    return all(metrics.get(req.get("metric"), 0) >= req.get("target", 0) for req in requirements)


def award_xp(db: Session, user: User, amount: int, reason: str, *, activity_type: str = "xp_awarded", description: Optional[str] = None) -> Activity:
    # Caller commits
    user.xp = (user.xp or 0) + amount
    db.add(user)
    return storage.add_activity(db, user.id, activity_type, reason, description=description, xp_gained=amount, commit=False)


def record_daily_activity(db: Session, user: User, activity_date: Optional[date] = None) -> StreakState:
    activity_date = activity_date or date.today()
    before = user.streak or 0
    state = advance_streak(before, user.longest_streak or 0, user.last_active_date, activity_date)
    user.streak, user.longest_streak, user.last_active_date = state.streak, state.longest, state.last_date
    db.add(user)
    if state.streak < before:
        logger.info("streak for %s reset from %d", user.username, before)
    elif state.streak > before and state.streak in STREAK_MILESTONES:
        storage.add_activity(
            db, user.id, "streak_milestone", f"Reached a {state.streak}-day streak",
            description="Keep it going!", commit=False,
        )
    return state


def use_streak_freeze(db: Session, user: User) -> bool:
    if user.last_active_date is None or (user.streak_freezes_used or 0) >= settings.max_streak_freezes:
        return False
    user.streak_freezes_used = (user.streak_freezes_used or 0) + 1
    user.last_active_date = user.last_active_date + timedelta(days=1)
    db.add(user)
    db.commit()
    return True


def user_metrics(db: Session, user: User) -> Dict[str, float]:
    stats = storage.get_user_stats(db, user)
    return {
        "xp": stats.xp,
        "streak": stats.streak,
        "longest_streak": stats.longest_streak,
        "lessons_completed": stats.lessons_completed,
        "achievements_earned": stats.achievements_earned,
        "vocabulary_mastered": stats.vocabulary_mastered,
    }


def _earned_ids(db: Session, user_id: int) -> set[int]:
    return {ua.achievement_id for ua in storage.get_user_achievements(db, user_id)}


def check_and_unlock_achievements(db: Session, user: User, activity_data: Optional[Mapping[str, float]] = None) -> List[Achievement]:
    earned = _earned_ids(db, user.id)
    metrics = user_metrics(db, user)
    for key, value in (activity_data or {}).items():
        metrics[key] = max(metrics.get(key, 0), value)

    unlocked: List[Achievement] = []
    for achievement in storage.list_achievements(db):
        if achievement.id in earned:
            continue
        if not all(prereq in earned for prereq in achievement.prerequisites or []):
            continue
        if not requirements_met(achievement.requirement or [], metrics):
            continue
        db.add(UserAchievement(user_id=user.id, achievement_id=achievement.id))
        award_xp(
            db, user, achievement.xp_reward, f'Earned "{achievement.title}" badge',
            activity_type="badge_earned", description=achievement.description,
        )
        earned.add(achievement.id)
        unlocked.append(achievement)
        logger.info("user %s unlocked achievement %s", user.username, achievement.title)
    db.commit()
    return unlocked


def available_achievements(db: Session, user: User) -> List[Achievement]:
    earned = _earned_ids(db, user.id)
    return [
        a for a in storage.list_achievements(db)
        if a.id not in earned and (not a.is_secret or all(p in earned for p in a.prerequisites or []))
    ]


def leaderboard(db: Session, category: str, limit: int = 50) -> List[Dict[str, Any]]:
    if category not in LEADERBOARD_CATEGORIES:
        raise ValueError(f"category must be one of {', '.join(LEADERBOARD_CATEGORIES)}")
    if category == "lessons":
        lessons = (
            db.query(UserProgress.user_id, func.count(UserProgress.id))
            .filter(UserProgress.completed.is_(True))
            .group_by(UserProgress.user_id)
            .all()
        )
        counts = dict(lessons)
        users = db.query(User).all()
        scored = [(u, counts.get(u.id, 0)) for u in users]
    else:
        column = User.xp if category == "xp" else User.streak
        scored = [(u, getattr(u, category)) for u in db.query(User).order_by(column.desc()).all()]

    scored.sort(key=lambda item: item[1], reverse=True)
    return [
        {
            "rank": rank,
            "user_id": user.id,
            "display_name": f"{user.first_name} {user.last_name}".strip() or user.username,
            "score": score,
            "level": level_for_points(user.xp or 0),
        }
        for rank, (user, score) in enumerate(scored[:limit], start=1)
    ]


def share_achievement(db: Session, user: User, achievement_id: int) -> Optional[Dict[str, Any]]:
    row = (
        db.query(UserAchievement)
        .filter(UserAchievement.user_id == user.id, UserAchievement.achievement_id == achievement_id)
        .first()
    )
    if row is None:
        return None
    achievement = db.get(Achievement, achievement_id)
    row.share_count += 1
    db.add(row)
    db.commit()
    return {
        "achievement_id": achievement_id,
        "share_count": row.share_count,
        "message": f'I just earned the "{achievement.title}" badge on LingoLeap! {achievement.description}.',
    }
