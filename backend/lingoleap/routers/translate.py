from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..errors import TranslationUnavailableError
from ..translation import SUPPORTED_LANGUAGES, translation_service


router = APIRouter(prefix="/api", tags=["translation"])


class TranslateRequest(BaseModel):
    text: str = Field(min_length=1, max_length=5000)
    source_language: str
    target_language: str


class TranslateResponse(BaseModel):
    translated_text: str
    confidence: float
    provider: str
    source_language: str
    target_language: str
    timestamp: datetime


class Language(BaseModel):
    code: str
    name: str


class TranslationStatus(BaseModel):
    available_providers: List[str]
    configuration_status: dict
    supported_languages: List[Language]


@router.post("/translate", response_model=TranslateResponse)
async def translate(req: TranslateRequest):
    try:
        result = await translation_service.translate(req.text, req.source_language, req.target_language)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TranslationUnavailableError as e:
        return JSONResponse(status_code=503, content={
            "detail": "For full translation capabilities, external API keys are needed",
            "error": "LIMITED_DEMO_MODE",
            "details": str(e),
            "available_providers": translation_service.available_providers(),
            "configuration_status": translation_service.configuration_status(),
        })
    return TranslateResponse(
        translated_text=result.translated_text,
        confidence=result.confidence,
        provider=result.provider,
        source_language=req.source_language,
        target_language=req.target_language,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/translation/status", response_model=TranslationStatus)
async def status():
    return TranslationStatus(
        available_providers=translation_service.available_providers(),
        configuration_status=translation_service.configuration_status(),
        supported_languages=[Language(code=code, name=name) for code, name in SUPPORTED_LANGUAGES.items()],
    )
