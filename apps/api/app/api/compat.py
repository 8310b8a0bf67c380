from typing import Any

from fastapi import APIRouter

from app.core.rate_limit import limiter
from app.services.compat.generation_service import (
    compat_chapter as service_chapter,
    compat_flashcards as service_flashcards,
    compat_forecast as service_forecast,
    compat_generate_roadmap as service_generate_roadmap,
    compat_quiz as service_quiz,
    compat_validate_key as service_validate_key,
    compat_weakness as service_weakness,
)
from app.services.compat.schemas import (
    ChapterRequest,
    FlashcardsRequest,
    ForecastRequest,
    QuizRequest,
    RoadmapRequest,
    ValidateKeyRequest,
    WeaknessRequest,
)


router = APIRouter(prefix="/api", tags=["public"])


@router.post("/validate-key")
@limiter.exempt
def compat_validate_key(payload: ValidateKeyRequest) -> dict[str, Any]:
    return service_validate_key(payload)


@router.post("/generate-roadmap")
def compat_generate_roadmap(payload: RoadmapRequest) -> dict[str, Any]:
    return service_generate_roadmap(payload)


@router.post("/chapter")
def compat_chapter(payload: ChapterRequest) -> dict[str, Any]:
    return service_chapter(payload)


@router.post("/quiz")
def compat_quiz(payload: QuizRequest) -> dict[str, Any]:
    return service_quiz(payload)


@router.post("/forecast")
def compat_forecast(payload: ForecastRequest) -> dict[str, Any]:
    return service_forecast(payload)


@router.post("/flashcards")
def compat_flashcards(payload: FlashcardsRequest) -> dict[str, Any]:
    return service_flashcards(payload)


@router.post("/weakness")
def compat_weakness(payload: WeaknessRequest) -> dict[str, Any]:
    return service_weakness(payload)
