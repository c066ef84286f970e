from __future__ import annotations
import logging
from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from .settings import settings


logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url or "sqlite:///./lingoleap.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
_engine_kwargs = {}
# In-memory SQLite lives inside a single connection; share it across sessions
if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
	_engine_kwargs["poolclass"] = StaticPool

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True, **_engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


# Best-effort lightweight migrations for development (SQLite-friendly)
def ensure_schema() -> None:
	try:
		inspector = inspect(engine)
		tables = set(inspector.get_table_names())
	except SQLAlchemyError:
		logger.warning("schema inspection failed; skipping column upgrades", exc_info=True)
		return
	if "users" in tables:
		cols = {c["name"] for c in inspector.get_columns("users")}
		with engine.begin() as conn:
			if "longest_streak" not in cols:
				conn.exec_driver_sql("ALTER TABLE users ADD COLUMN longest_streak INTEGER DEFAULT 0 NOT NULL")
			if "streak_freezes_used" not in cols:
				conn.exec_driver_sql("ALTER TABLE users ADD COLUMN streak_freezes_used INTEGER DEFAULT 0 NOT NULL")
	if "user_achievements" in tables:
		cols = {c["name"] for c in inspector.get_columns("user_achievements")}
		if "share_count" not in cols:
			with engine.begin() as conn:
				conn.exec_driver_sql("ALTER TABLE user_achievements ADD COLUMN share_count INTEGER DEFAULT 0 NOT NULL")
	if "user_vocabulary" in tables:
		cols = {c["name"] for c in inspector.get_columns("user_vocabulary")}
		with engine.begin() as conn:
			if "mastery_level" not in cols:
				conn.exec_driver_sql("ALTER TABLE user_vocabulary ADD COLUMN mastery_level INTEGER DEFAULT 0 NOT NULL")
			if "streak_count" not in cols:
				conn.exec_driver_sql("ALTER TABLE user_vocabulary ADD COLUMN streak_count INTEGER DEFAULT 0 NOT NULL")
			if "next_review_at" not in cols:
				conn.exec_driver_sql("ALTER TABLE user_vocabulary ADD COLUMN next_review_at DATETIME")
