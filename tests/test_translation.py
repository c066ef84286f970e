"""Tests for the translation service and endpoint."""

import asyncio
import json

import httpx
import pytest

from lingoleap.errors import TranslationUnavailableError
from lingoleap.settings import settings
from lingoleap.translation import (
    DemoTranslationProvider,
    GeminiTranslationProvider,
    GoogleTranslateProvider,
    TranslationService,
)


def translate(service, text, source, target):
    return asyncio.run(service.translate(text, source, target))


class TestDemoProvider:
    """Tests for the offline phrasebook."""

    def test_english_to_chinese(self):
        """Known phrases translate case-insensitively."""
        result = translate(TranslationService([DemoTranslationProvider()]), "Hello", "en", "zh")
        assert result.translated_text == "你好"
        assert result.provider == "Demo Translation"

    def test_reverse_lookup(self):
        """Phrases translate back into English."""
        result = translate(TranslationService([DemoTranslationProvider()]), "谢谢", "zh", "en")
        assert result.translated_text == "thank you"

    def test_unknown_phrase(self):
        """Phrases outside the phrasebook are unavailable."""
        with pytest.raises(TranslationUnavailableError):
            translate(TranslationService([DemoTranslationProvider()]), "the weather is nice", "en", "fr")


class TestTranslationService:
    """Tests for language checks and provider fallback."""

    def test_unsupported_language(self):
        with pytest.raises(ValueError):
            translate(TranslationService([DemoTranslationProvider()]), "hello", "en", "xx")

    def test_same_language(self):
        """Same source and target returns the text untouched."""
        result = translate(TranslationService([]), "anything", "en", "en")
        assert (result.translated_text, result.provider) == ("anything", "identity")

    def test_no_providers(self):
        with pytest.raises(TranslationUnavailableError):
            translate(TranslationService([]), "hello", "en", "zh")

    def test_google_provider(self, monkeypatch):
        """Configured Google Translate is used before the phrasebook."""
        monkeypatch.setattr(settings, "google_translate_api_key", "test-key")
        seen = {}

        def handler(request):
            seen["key"] = request.url.params["key"]
            return httpx.Response(200, json={"data": {"translations": [{"translatedText": "Bonjour le monde"}]}})

        service = TranslationService([GoogleTranslateProvider(transport=httpx.MockTransport(handler)), DemoTranslationProvider()])
        result = translate(service, "hello world", "en", "fr")
        assert result.translated_text == "Bonjour le monde"
        assert result.provider == "Google Translate"
        assert seen["key"] == "test-key"

    def test_gemini_provider(self, monkeypatch):
        """Gemini goes first when a key is configured; the key rides in the query."""
        monkeypatch.setattr(settings, "gemini_api_key", "gem-key")
        monkeypatch.setattr(settings, "gemini_provider", "ai_studio")
        seen = {}

        def handler(request):
            seen["key"] = request.url.params["key"]
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": " Hallo Welt \n"}]}}]})

        service = TranslationService([GeminiTranslationProvider(transport=httpx.MockTransport(handler)), DemoTranslationProvider()])
        result = translate(service, "hello world", "en", "de")
        assert (result.translated_text, result.provider) == ("Hallo Welt", "Gemini")
        assert seen["key"] == "gem-key"
        assert seen["path"].endswith(":generateContent")
        assert "English learners" in seen["body"]["systemInstruction"]["parts"][0]["text"]
        assert seen["body"]["generationConfig"]["temperature"] == 0.2

    def test_gemini_vertex_uses_header(self, monkeypatch):
        """Vertex requests carry the key in a header."""
        monkeypatch.setattr(settings, "gemini_api_key", "gem-key")
        monkeypatch.setattr(settings, "gemini_provider", "vertex")
        seen = {}

        def handler(request):
            seen["header"] = request.headers.get("x-goog-api-key")
            seen["host"] = request.url.host
            return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "Ciao"}, {"text": " mondo"}]}}]})

        service = TranslationService([GeminiTranslationProvider(transport=httpx.MockTransport(handler))])
        assert translate(service, "hello world", "en", "it").translated_text == "Ciao mondo"
        assert seen["header"] == "gem-key"
        assert seen["host"].endswith("aiplatform.googleapis.com")

    def test_gemini_bad_response_falls_back(self, monkeypatch):
        monkeypatch.setattr(settings, "gemini_api_key", "gem-key")
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"candidates": []}))
        service = TranslationService([GeminiTranslationProvider(transport=transport), DemoTranslationProvider()])
        assert translate(service, "please", "en", "it").translated_text == "per favore"

    def test_falls_back_on_provider_error(self, monkeypatch):
        """A failing provider hands over to the next one."""
        monkeypatch.setattr(settings, "google_translate_api_key", "test-key")
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        service = TranslationService([GoogleTranslateProvider(transport=transport), DemoTranslationProvider()])
        assert translate(service, "goodbye", "en", "de").translated_text == "auf wiedersehen"

    def test_unconfigured_providers_are_skipped(self):
        service = TranslationService([GoogleTranslateProvider(), DemoTranslationProvider()])
        assert service.available_providers() == ["Demo Translation"]
        assert service.configuration_status() == {"gemini": False, "google": False, "demo": True}


class TestTranslateApi:
    """Tests for the translation endpoints."""

    def test_translate(self, client):
        response = client.post("/api/translate", json={"text": "good morning", "source_language": "en", "target_language": "es"})
        assert response.status_code == 200
        assert response.json()["translated_text"] == "buenos días"

    def test_demo_mode_limit(self, client):
        """Unknown phrases without API keys report limited demo mode."""
        response = client.post("/api/translate", json={"text": "see you tomorrow", "source_language": "en", "target_language": "es"})
        assert response.status_code == 503
        body = response.json()
        assert body["error"] == "LIMITED_DEMO_MODE"
        assert body["available_providers"] == ["Demo Translation"]

    def test_bad_language(self, client):
        response = client.post("/api/translate", json={"text": "hello", "source_language": "en", "target_language": "klingon"})
        assert response.status_code == 400

    def test_status(self, client):
        status = client.get("/api/translation/status").json()
        assert status["configuration_status"]["demo"] is True
        assert {"code": "zh", "name": "Chinese"} in status["supported_languages"]
