"""Domain errors raised by the learning engines.

Routers translate these into HTTP responses; engines themselves never import
FastAPI.
"""
from __future__ import annotations


class ProfileNotFoundError(LookupError):
	def __init__(self, user_id: int) -> None:
		super().__init__(f"No learning path for user {user_id}")
		self.user_id = user_id


class GoalNotFoundError(LookupError):
	def __init__(self, goal_id: str) -> None:
		super().__init__(f"Goal {goal_id} not found")
		self.goal_id = goal_id


class TranslationUnavailableError(RuntimeError):
	"""No configured provider could translate the text."""
