from __future__ import annotations
from datetime import datetime
from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from .db import Base


class User(Base):
	__tablename__ = "users"
	id = Column(Integer, primary_key=True, index=True)
	username = Column(String(128), unique=True, nullable=False, index=True)
	first_name = Column(String(128), nullable=False)
	last_name = Column(String(128), nullable=False)
	# beginner, intermediate, advanced
	level = Column(String(32), default="beginner", nullable=False)
	xp = Column(Integer, default=0, nullable=False)
	streak = Column(Integer, default=0, nullable=False)
	longest_streak = Column(Integer, default=0, nullable=False)
	streak_freezes_used = Column(Integer, default=0, nullable=False)
	last_active_date = Column(Date, nullable=True)
	preferences = Column(JSON, default=dict, nullable=False)
	# Null for sample accounts that cannot sign in
	password_hash = Column(String(256), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	session_id = Column(String(64), primary_key=True)
	username = Column(String(128), nullable=False, index=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Lesson(Base):
	__tablename__ = "lessons"
	id = Column(Integer, primary_key=True, index=True)
	title = Column(String(256), nullable=False)
	description = Column(Text, nullable=False)
	# vocabulary, grammar, speaking, listening, reading, writing, pronunciation, cultural, ...
	category = Column(String(64), nullable=False, index=True)
	level = Column(String(32), nullable=False, index=True)
	# food, travel, technology, etc.
	topic = Column(String(64), nullable=False)
	content = Column(JSON, default=dict, nullable=False)
	xp_reward = Column(Integer, default=25, nullable=False)
	estimated_minutes = Column(Integer, default=15, nullable=False)
	is_offline_available = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserProgress(Base):
	__tablename__ = "user_progress"
	__table_args__ = (UniqueConstraint("user_id", "lesson_id", name="uq_user_lesson"),)
	id = Column(Integer, primary_key=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	lesson_id = Column(Integer, ForeignKey("lessons.id"), nullable=False)
	completed = Column(Boolean, default=False, nullable=False)
	score = Column(Integer, nullable=True)  # percentage score if applicable
	completed_at = Column(DateTime, nullable=True)
	time_spent = Column(Integer, nullable=True)  # in minutes
	attempts = Column(Integer, default=1, nullable=False)


class Achievement(Base):
	__tablename__ = "achievements"
	id = Column(Integer, primary_key=True)
	title = Column(String(128), nullable=False, unique=True)
	description = Column(Text, nullable=False)
	icon = Column(String(64), nullable=False)
	# speaking, vocabulary, streak, milestone, ...
	category = Column(String(64), nullable=False)
	# list of {"metric": str, "target": number}
	requirement = Column(JSON, default=list, nullable=False)
	# achievement ids that must be earned first
	prerequisites = Column(JSON, default=list, nullable=False)
	xp_reward = Column(Integer, default=50, nullable=False)
	is_secret = Column(Boolean, default=False, nullable=False)


class UserAchievement(Base):
	__tablename__ = "user_achievements"
	__table_args__ = (UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),)
	id = Column(Integer, primary_key=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	achievement_id = Column(Integer, ForeignKey("achievements.id"), nullable=False)
	earned_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	share_count = Column(Integer, default=0, nullable=False)


class Vocabulary(Base):
	__tablename__ = "vocabulary"
	id = Column(Integer, primary_key=True)
	word = Column(String(128), nullable=False)
	definition = Column(Text, nullable=False)
	pronunciation = Column(String(128), nullable=True)
	level = Column(String(32), nullable=False, index=True)
	topic = Column(String(64), nullable=False)
	example_sentence = Column(Text, nullable=True)
	translation = Column(String(256), nullable=True)  # Chinese translation


class UserVocabulary(Base):
	__tablename__ = "user_vocabulary"
	__table_args__ = (UniqueConstraint("user_id", "vocabulary_id", name="uq_user_vocabulary"),)
	id = Column(Integer, primary_key=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	vocabulary_id = Column(Integer, ForeignKey("vocabulary.id"), nullable=False)
	mastered = Column(Boolean, default=False, nullable=False)
	last_practiced = Column(DateTime, nullable=True)
	practice_count = Column(Integer, default=0, nullable=False)
	mastery_level = Column(Integer, default=0, nullable=False)  # 0-100
	streak_count = Column(Integer, default=0, nullable=False)
	next_review_at = Column(DateTime, nullable=True)


class DailyChallenge(Base):
	__tablename__ = "daily_challenges"
	id = Column(Integer, primary_key=True)
	title = Column(String(128), nullable=False)
	description = Column(Text, nullable=False)
	date = Column(Date, nullable=False, index=True)
	content = Column(JSON, default=dict, nullable=False)
	xp_reward = Column(Integer, default=50, nullable=False)
	# {"type": "speaking", "count": 3}
	completion_requirement = Column(JSON, default=dict, nullable=False)


class UserDailyChallenge(Base):
	__tablename__ = "user_daily_challenges"
	__table_args__ = (UniqueConstraint("user_id", "challenge_id", name="uq_user_challenge"),)
	id = Column(Integer, primary_key=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	challenge_id = Column(Integer, ForeignKey("daily_challenges.id"), nullable=False)
	current_count = Column(Integer, default=0, nullable=False)
	completed = Column(Boolean, default=False, nullable=False)
	completed_at = Column(DateTime, nullable=True)


class Activity(Base):
	__tablename__ = "activities"
	id = Column(Integer, primary_key=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	# lesson_completed, badge_earned, challenge_completed, streak_milestone, ...
	type = Column(String(64), nullable=False)
	title = Column(String(256), nullable=False)
	description = Column(Text, nullable=True)
	xp_gained = Column(Integer, default=0, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
