import asyncio
import logging

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .cleanup import purge_stale_records
from .db import Base, SessionLocal, engine, ensure_schema
from .seed import ensure_daily_challenge, seed_sample_data
from .settings import settings
from .translation import translation_service
from .routers import health, auth, users, lessons, progress, achievements, vocabulary, challenges
from .routers import learning_path, dashboard, translate

logging.basicConfig(
	level=settings.log_level.upper(),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=__version__)
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(lessons.router)
app.include_router(progress.router)
app.include_router(achievements.router)
app.include_router(vocabulary.router)
app.include_router(challenges.router)
app.include_router(learning_path.router)
app.include_router(dashboard.router)
app.include_router(translate.router)


@app.get("/info")
def info():
	return {
		"status": "ok",
		"app": settings.app_name,
		"version": __version__,
		"translation_providers": translation_service.available_providers(),
	}


def _run_cleanup() -> None:
	db = SessionLocal()
	try:
		purge_stale_records(db)
	except SQLAlchemyError:
		logger.exception("stale record cleanup failed")
		db.rollback()
	finally:
		db.close()


async def _cleanup_watcher():
	# Startup already ran one pass
	while True:
		await asyncio.sleep(settings.cleanup_interval_hours * 60 * 60)
		_run_cleanup()


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	# Apply lightweight dev migrations
	ensure_schema()
	db = SessionLocal()
	try:
		if settings.seed_sample_data:
			seed_sample_data(db)
			ensure_daily_challenge(db)
	finally:
		db.close()
	_run_cleanup()
	# Start periodic cleanup loop
	asyncio.create_task(_cleanup_watcher())
