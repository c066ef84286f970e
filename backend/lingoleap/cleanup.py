from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .learning_path import learning_path_system
from .models import Activity, AuthSession
from .settings import settings


logger = logging.getLogger(__name__)


def purge_stale_records(db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
	now = now or datetime.utcnow()
	session_threshold = now - timedelta(days=settings.session_retention_days)
	activity_threshold = now - timedelta(days=settings.activity_retention_days)

	# Sessions idle past retention can no longer authenticate
	res = db.execute(delete(AuthSession).where(AuthSession.last_activity_at < session_threshold))
	sessions = res.rowcount or 0
	res = db.execute(delete(Activity).where(Activity.created_at < activity_threshold))
	activities = res.rowcount or 0
	db.commit()

	recommendations = learning_path_system.purge_expired_recommendations(now.replace(tzinfo=timezone.utc))
	removed = {"sessions": sessions, "activities": activities, "recommendations": recommendations}
	if any(removed.values()):
		logger.info("purged stale records: %s", removed)
	return removed
