from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	app_name: str = Field(default="LingoLeap API", validation_alias="APP_NAME")
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")
	# Seed sample lessons, badges, vocabulary and today's challenge into an empty database
	seed_sample_data: bool = Field(default=True, validation_alias="SEED_SAMPLE_DATA")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=120, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# Translation providers; the demo phrasebook is always available
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash-lite", validation_alias="GEMINI_MODEL")
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")
	google_translate_api_key: str | None = Field(default=None, validation_alias="GOOGLE_TRANSLATE_API_KEY")
	translation_timeout_seconds: float = Field(default=15.0, validation_alias="TRANSLATION_TIMEOUT_SECONDS")

	# Housekeeping
	session_retention_days: int = Field(default=30, validation_alias="SESSION_RETENTION_DAYS")
	activity_retention_days: int = Field(default=90, validation_alias="ACTIVITY_RETENTION_DAYS")
	cleanup_interval_hours: int = Field(default=24, validation_alias="CLEANUP_INTERVAL_HOURS")

	# Gamification
	max_streak_freezes: int = Field(default=3, validation_alias="MAX_STREAK_FREEZES")
	activity_feed_limit: int = Field(default=10, validation_alias="ACTIVITY_FEED_LIMIT")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
