from __future__ import annotations
import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from .models import (
	Achievement,
	Activity,
	DailyChallenge,
	Lesson,
	User,
	UserAchievement,
	UserDailyChallenge,
	UserProgress,
	UserVocabulary,
	Vocabulary,
)
from .schemas import LessonIn, ProgressIn, UserStats


logger = logging.getLogger(__name__)

MASTERY_GAIN = 10
MASTERY_LOSS = 5
MASTERY_MAX = 100
MAX_REVIEW_DAYS = 30
MISS_REVIEW_DELAY = timedelta(hours=4)


# Users
def get_user(db: Session, user_id: int) -> Optional[User]:
	return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> Optional[User]:
	return db.query(User).filter(User.username == username).first()


def create_user(db: Session, username: str, first_name: str, last_name: str, level: str = "beginner", password_hash: Optional[str] = None) -> User:
	row = User(
		username=username,
		first_name=first_name,
		last_name=last_name,
		level=level,
		preferences={},
		password_hash=password_hash,
	)
	db.add(row)
	db.commit()
	db.refresh(row)
	logger.info("created user %s", username)
	return row


def update_user(db: Session, user: User, **changes) -> User:
	for key, value in changes.items():
		if value is not None:
			setattr(user, key, value)
	db.add(user)
	db.commit()
	db.refresh(user)
	return user


# Lessons
def list_lessons(db: Session, category: Optional[str] = None, level: Optional[str] = None) -> List[Lesson]:
	query = db.query(Lesson)
	if category:
		query = query.filter(Lesson.category == category)
	if level:
		query = query.filter(Lesson.level == level)
	return query.order_by(Lesson.id).all()


def get_lesson(db: Session, lesson_id: int) -> Optional[Lesson]:
	return db.get(Lesson, lesson_id)


def create_lesson(db: Session, data: LessonIn) -> Lesson:
	row = Lesson(**data.model_dump())
	db.add(row)
	db.commit()
	db.refresh(row)
	return row


# Progress
def list_progress(db: Session, user_id: int) -> List[UserProgress]:
	return db.query(UserProgress).filter(UserProgress.user_id == user_id).order_by(UserProgress.id).all()


def get_progress(db: Session, user_id: int, lesson_id: int) -> Optional[UserProgress]:
	return (
		db.query(UserProgress)
		.filter(UserProgress.user_id == user_id, UserProgress.lesson_id == lesson_id)
		.first()
	)


def record_progress(db: Session, data: ProgressIn, now: Optional[datetime] = None) -> Tuple[UserProgress, bool]:
	"""Upsert the progress row for a lesson attempt.

	Returns the row and whether this attempt is the first completion. The
	completion timestamp is set once and kept on later attempts.
	"""
	now = now or datetime.utcnow()
	row = get_progress(db, data.user_id, data.lesson_id)
	if row is None:
		row = UserProgress(user_id=data.user_id, lesson_id=data.lesson_id, completed=False, attempts=1)
	else:
		row.attempts = (row.attempts or 0) + 1
	first_completion = data.completed and not row.completed
	if data.completed:
		row.completed = True
	if data.score is not None:
		row.score = data.score
	if data.time_spent is not None:
		row.time_spent = data.time_spent
	if first_completion:
		row.completed_at = now
	db.add(row)
	db.commit()
	db.refresh(row)
	return row, first_completion


# Achievements
def list_achievements(db: Session) -> List[Achievement]:
	return db.query(Achievement).order_by(Achievement.id).all()


def get_user_achievements(db: Session, user_id: int) -> List[UserAchievement]:
	return (
		db.query(UserAchievement)
		.filter(UserAchievement.user_id == user_id)
		.order_by(UserAchievement.earned_at, UserAchievement.id)
		.all()
	)


# Vocabulary
def list_vocabulary(db: Session, level: Optional[str] = None, topic: Optional[str] = None) -> List[Vocabulary]:
	query = db.query(Vocabulary)
	if level:
		query = query.filter(Vocabulary.level == level)
	if topic:
		query = query.filter(Vocabulary.topic == topic)
	return query.order_by(Vocabulary.id).all()


def get_vocabulary(db: Session, vocabulary_id: int) -> Optional[Vocabulary]:
	return db.get(Vocabulary, vocabulary_id)


def get_user_vocabulary(db: Session, user_id: int) -> List[UserVocabulary]:
	return db.query(UserVocabulary).filter(UserVocabulary.user_id == user_id).order_by(UserVocabulary.id).all()


def due_vocabulary(db: Session, user_id: int, now: Optional[datetime] = None) -> List[Vocabulary]:
	now = now or datetime.utcnow()
	return (
		db.query(Vocabulary)
		.join(UserVocabulary, UserVocabulary.vocabulary_id == Vocabulary.id)
		.filter(UserVocabulary.user_id == user_id, UserVocabulary.next_review_at <= now)
		.order_by(UserVocabulary.next_review_at)
		.all()
	)


def review_delay(mastery_level: int, correct: bool) -> timedelta:
	if not correct:
		return MISS_REVIEW_DELAY
	return timedelta(days=min(MAX_REVIEW_DAYS, 2 ** (mastery_level // 20)))


def practice_vocabulary(db: Session, user_id: int, vocabulary_id: int, correct: bool, now: Optional[datetime] = None) -> UserVocabulary:
	now = now or datetime.utcnow()
	row = (
		db.query(UserVocabulary)
		.filter(UserVocabulary.user_id == user_id, UserVocabulary.vocabulary_id == vocabulary_id)
		.first()
	)
	if row is None:
		row = UserVocabulary(user_id=user_id, vocabulary_id=vocabulary_id, practice_count=0, mastery_level=0, streak_count=0, mastered=False)
	row.practice_count = (row.practice_count or 0) + 1
	if correct:
		row.mastery_level = min(MASTERY_MAX, (row.mastery_level or 0) + MASTERY_GAIN)
		row.streak_count = (row.streak_count or 0) + 1
	else:
		row.mastery_level = max(0, (row.mastery_level or 0) - MASTERY_LOSS)
		row.streak_count = 0
	row.mastered = row.mastery_level >= MASTERY_MAX
	row.last_practiced = now
	row.next_review_at = now + review_delay(row.mastery_level, correct)
	db.add(row)
	db.commit()
	db.refresh(row)
	return row


# Daily challenges
def get_daily_challenge(db: Session, day: Optional[date] = None) -> Optional[DailyChallenge]:
	day = day or date.today()
	return db.query(DailyChallenge).filter(DailyChallenge.date == day).order_by(DailyChallenge.id).first()


def get_challenge(db: Session, challenge_id: int) -> Optional[DailyChallenge]:
	return db.get(DailyChallenge, challenge_id)


def get_user_challenge(db: Session, user_id: int, challenge_id: int) -> Optional[UserDailyChallenge]:
	return (
		db.query(UserDailyChallenge)
		.filter(UserDailyChallenge.user_id == user_id, UserDailyChallenge.challenge_id == challenge_id)
		.first()
	)


def advance_challenge(db: Session, user_id: int, challenge: DailyChallenge, now: Optional[datetime] = None) -> Tuple[UserDailyChallenge, bool]:
	"""Count one step toward ``challenge``; returns the row and whether it just completed."""
	now = now or datetime.utcnow()
	row = get_user_challenge(db, user_id, challenge.id)
	if row is None:
		row = UserDailyChallenge(user_id=user_id, challenge_id=challenge.id, current_count=0, completed=False)
	if row.completed:
		return row, False
	target = int((challenge.completion_requirement or {}).get("count", 1))
	row.current_count = min(target, (row.current_count or 0) + 1)
	just_completed = row.current_count >= target
	if just_completed:
		row.completed = True
		row.completed_at = now
	db.add(row)
	db.commit()
	db.refresh(row)
	return row, just_completed


# Activity feed
def add_activity(db: Session, user_id: int, activity_type: str, title: str, description: Optional[str] = None, xp_gained: int = 0, commit: bool = True) -> Activity:
	row = Activity(user_id=user_id, type=activity_type, title=title, description=description, xp_gained=xp_gained)
	db.add(row)
	if commit:
		db.commit()
		db.refresh(row)
	return row


def list_activities(db: Session, user_id: int, limit: int = 10) -> List[Activity]:
	return (
		db.query(Activity)
		.filter(Activity.user_id == user_id)
		.order_by(Activity.created_at.desc(), Activity.id.desc())
		.limit(limit)
		.all()
	)


def get_user_stats(db: Session, user: User) -> UserStats:
	from .gamification import level_for_points

	lessons_completed = (
		db.query(UserProgress)
		.filter(UserProgress.user_id == user.id, UserProgress.completed.is_(True))
		.count()
	)
	achievements_earned = db.query(UserAchievement).filter(UserAchievement.user_id == user.id).count()
	vocabulary_mastered = (
		db.query(UserVocabulary)
		.filter(UserVocabulary.user_id == user.id, UserVocabulary.mastered.is_(True))
		.count()
	)
	return UserStats(
		level=user.level,
		xp=user.xp or 0,
		xp_level=level_for_points(user.xp or 0),
		streak=user.streak or 0,
		longest_streak=user.longest_streak or 0,
		lessons_completed=lessons_completed,
		achievements_earned=achievements_earned,
		vocabulary_mastered=vocabulary_mastered,
	)
