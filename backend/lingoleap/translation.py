from __future__ import annotations

import logging
from typing import Dict, List, Optional

import httpx
from pydantic import BaseModel

from .errors import TranslationUnavailableError
from .gemini_client import GeminiClient
from .settings import settings


logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES: Dict[str, str] = {
    "en": "English",
    "zh": "Chinese",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "ja": "Japanese",
    "ko": "Korean",
    "it": "Italian",
}

GOOGLE_TRANSLATE_URL = "https://translation.googleapis.com/language/translate/v2"
GEMINI_SYSTEM_INSTRUCTION = (
    "You translate short texts for English learners. "
    "Reply with the translation only, without quotes, notes or romanization."
)


class TranslationResult(BaseModel):
    translated_text: str
    confidence: float
    provider: str


def _check_language(code: str) -> None:
    if code not in SUPPORTED_LANGUAGES:
        raise ValueError(f"unsupported language: {code}")


class GeminiTranslationProvider:
    name = "Gemini"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(settings.gemini_api_key)

    async def translate(self, text: str, source: str, target: str) -> TranslationResult:
        prompt = f"Translate from {SUPPORTED_LANGUAGES[source]} to {SUPPORTED_LANGUAGES[target]}:\n\n{text}"
        async with GeminiClient(transport=self._transport) as client:
            translated = await client.generate(
                prompt,
                system_instruction=GEMINI_SYSTEM_INSTRUCTION,
                temperature=0.2,
                max_output_tokens=1024,
            )
        translated = translated.strip()
        if not translated:
            raise RuntimeError("Gemini returned an empty translation")
        return TranslationResult(translated_text=translated, confidence=0.9, provider=self.name)


class GoogleTranslateProvider:
    name = "Google Translate"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(settings.google_translate_api_key)

    async def translate(self, text: str, source: str, target: str) -> TranslationResult:
        payload = {"q": text, "source": source, "target": target, "format": "text"}
        async with httpx.AsyncClient(timeout=settings.translation_timeout_seconds, transport=self._transport) as client:
            r = await client.post(GOOGLE_TRANSLATE_URL, params={"key": settings.google_translate_api_key}, json=payload)
            r.raise_for_status()
            data = r.json()
        return TranslationResult(
            translated_text=data["data"]["translations"][0]["translatedText"],
            confidence=0.95,
            provider=self.name,
        )


class DemoTranslationProvider:
    """Small offline phrasebook, always available as the last resort."""

    name = "Demo Translation"

    PHRASES: Dict[str, Dict[str, str]] = {
        "hello": {"zh": "你好", "es": "hola", "fr": "bonjour", "de": "hallo", "ja": "こんにちは", "ko": "안녕하세요", "it": "ciao"},
        "good morning": {"zh": "早上好", "es": "buenos días", "fr": "bonjour", "de": "guten Morgen", "ja": "おはようございます", "ko": "좋은 아침", "it": "buongiorno"},
        "thank you": {"zh": "谢谢", "es": "gracias", "fr": "merci", "de": "danke", "ja": "ありがとう", "ko": "감사합니다", "it": "grazie"},
        "how are you": {"zh": "你好吗", "es": "¿cómo estás?", "fr": "comment allez-vous?", "de": "wie geht es dir?", "ja": "元気ですか？", "ko": "어떻게 지내세요?", "it": "come stai?"},
        "goodbye": {"zh": "再见", "es": "adiós", "fr": "au revoir", "de": "auf wiedersehen", "ja": "さようなら", "ko": "안녕히 가세요", "it": "arrivederci"},
        "please": {"zh": "请", "es": "por favor", "fr": "s'il vous plaît", "de": "bitte", "ja": "お願いします", "ko": "부탁합니다", "it": "per favore"},
        "excuse me": {"zh": "对不起", "es": "disculpe", "fr": "excusez-moi", "de": "entschuldigung", "ja": "すみません", "ko": "실례합니다", "it": "scusi"},
        "where is": {"zh": "在哪里", "es": "¿dónde está?", "fr": "où est", "de": "wo ist", "ja": "どこですか", "ko": "어디에 있습니까", "it": "dove è"},
    }

    def is_configured(self) -> bool:
        return True

    def _lookup(self, text: str, source: str, target: str) -> Optional[str]:
        phrase = text.strip().lower()
        if source == "en":
            return self.PHRASES.get(phrase, {}).get(target)
        # Into English: search the phrasebook backwards
        for english, translations in self.PHRASES.items():
            if translations.get(source, "").lower() == phrase:
                return english if target == "en" else translations.get(target)
        return None

    async def translate(self, text: str, source: str, target: str) -> TranslationResult:
        translated = self._lookup(text, source, target)
        if translated is None:
            raise TranslationUnavailableError(
                f'Translation not available for: "{text}". Available phrases: {", ".join(self.PHRASES)}'
            )
        return TranslationResult(translated_text=translated, confidence=0.95, provider=self.name)


class TranslationService:
    def __init__(self, providers: Optional[List[object]] = None) -> None:
        self.providers = providers if providers is not None else [
            GeminiTranslationProvider(),
            GoogleTranslateProvider(),
            DemoTranslationProvider(),
        ]

    async def translate(self, text: str, source: str, target: str) -> TranslationResult:
        _check_language(source)
        _check_language(target)
        if source == target:
            return TranslationResult(translated_text=text, confidence=1.0, provider="identity")

        last_error: Optional[Exception] = None
        for provider in self.providers:
            if not provider.is_configured():
                continue
            try:
                return await provider.translate(text, source, target)
            except (httpx.HTTPError, RuntimeError, KeyError, IndexError, ValueError) as err:
                last_error = err
                logger.warning("translation failed with %s: %s", provider.name, err)
        if isinstance(last_error, TranslationUnavailableError):
            raise last_error
        raise TranslationUnavailableError(str(last_error) if last_error else "No translation providers available")

    def available_providers(self) -> List[str]:
        return [provider.name for provider in self.providers if provider.is_configured()]

    def configuration_status(self) -> Dict[str, bool]:
        return {
            "gemini": bool(settings.gemini_api_key),
            "google": bool(settings.google_translate_api_key),
            "demo": True,
        }


translation_service = TranslationService()
