from __future__ import annotations
import httpx
from typing import Any, Dict, List, Optional
from .settings import settings


AI_STUDIO_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
VERTEX_URL = "https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{model}:generateContent"


def _candidate_text(data: Dict[str, Any]) -> str:
	blocked = (data.get("promptFeedback") or {}).get("blockReason")
	if blocked:
		raise RuntimeError(f"Gemini blocked the prompt: {blocked}")
	parts: List[Dict[str, Any]] = data["candidates"][0]["content"]["parts"]
	return "".join(part.get("text", "") for part in parts)


class GeminiClient:
	"""Thin async client for Gemini ``generateContent``.

	AI Studio takes the key as a query parameter; Vertex takes it in the
	``x-goog-api-key`` header. Use as ``async with GeminiClient() as client``.
	"""

	def __init__(self, api_key: Optional[str] = None, *, model: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		if self.provider == "vertex":
			self.url = VERTEX_URL.format(
				region=settings.vertex_region,
				project=settings.vertex_project or "placeholder-project",
				model=self.model,
			)
		else:
			self.url = AI_STUDIO_URL.format(model=self.model)
		self._client = httpx.AsyncClient(timeout=settings.translation_timeout_seconds, transport=transport)

	async def __aenter__(self) -> "GeminiClient":
		return self

	async def __aexit__(self, *exc_info) -> None:
		await self.aclose()

	def _auth(self) -> tuple[Dict[str, str], Dict[str, str]]:
		if self.provider == "vertex":
			return {}, {"x-goog-api-key": self.api_key}
		return {"key": self.api_key}, {}

	async def generate(
		self,
		prompt: str,
		*,
		system_instruction: Optional[str] = None,
		temperature: Optional[float] = None,
		max_output_tokens: Optional[int] = None,
	) -> str:
		payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
		if system_instruction:
			payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
		config: Dict[str, Any] = {}
		if temperature is not None:
			config["temperature"] = temperature
		if max_output_tokens is not None:
			config["maxOutputTokens"] = max_output_tokens
		if config:
			payload["generationConfig"] = config

		params, headers = self._auth()
		r = await self._client.post(self.url, params=params, headers=headers, json=payload)
		r.raise_for_status()
		try:
			return _candidate_text(r.json())
		except (KeyError, IndexError, TypeError, ValueError) as err:
			raise RuntimeError(f"Unexpected Gemini response: {r.text}") from err

	async def aclose(self) -> None:
		await self._client.aclose()
