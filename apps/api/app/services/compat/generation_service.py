from functools import lru_cache
from typing import Any

from fastapi import HTTPException
import structlog

from app.core.config import get_settings
from app.domain.ai import CompletionClient, build_completion_client
from app.domain.ai.providers.base import CompletionFailure, FailureKind
from app.domain.forecast import FALLBACK_NARRATIVE, compute_forecast, merge_narrative
from app.services.compat.error_policy import MISSING_KEY_MESSAGE
from app.services.compat.pipeline_runtime import (
    PipelineFailure,
    raise_pipeline_http_exception,
    run_json,
    run_text,
    unwrap_list,
)
from app.services.compat.prompts import (
    build_chapter_prompt,
    build_flashcards_prompt,
    build_forecast_prompt,
    build_quiz_prompt,
    build_roadmap_prompt,
    build_validate_key_prompt,
    build_weakness_prompt,
    forecast_inputs,
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


settings = get_settings()
logger = structlog.get_logger(__name__)


@lru_cache(maxsize=1)
def _get_completion_client() -> CompletionClient:
    return build_completion_client(settings)


def _require_structured(value: Any, expected: type, pipeline: str) -> Any:
    if isinstance(value, expected):
        return value
    failure = CompletionFailure(
        kind=FailureKind.MALFORMED_OUTPUT,
        detail=f"ai_response_shape_unexpected:{type(value).__name__}",
    )
    raise_pipeline_http_exception(PipelineFailure(pipeline=pipeline, failure=failure))


def compat_validate_key(payload: ValidateKeyRequest) -> dict[str, Any]:
    api_key = payload.apiKey.strip()
    if not api_key:
        raise HTTPException(status_code=401, detail=MISSING_KEY_MESSAGE)
    if not api_key.startswith(settings.api_key_prefix):
        raise HTTPException(status_code=400, detail="Invalid API key format")

    try:
        run_text(_get_completion_client(), api_key, build_validate_key_prompt(), pipeline="validate_key")
    except PipelineFailure as failure:
        raise_pipeline_http_exception(failure)
    return {"valid": True}


def compat_generate_roadmap(payload: RoadmapRequest) -> dict[str, Any]:
    try:
        raw = run_json(_get_completion_client(), payload.apiKey, build_roadmap_prompt(payload), pipeline="roadmap")
    except PipelineFailure as failure:
        raise_pipeline_http_exception(failure)
    return {"success": True, "roadmap": _require_structured(raw, dict, "roadmap")}


def compat_chapter(payload: ChapterRequest) -> dict[str, Any]:
    try:
        content = run_text(_get_completion_client(), payload.apiKey, build_chapter_prompt(payload), pipeline="chapter")
    except PipelineFailure as failure:
        raise_pipeline_http_exception(failure)
    return {"success": True, "content": content}


def compat_quiz(payload: QuizRequest) -> dict[str, Any]:
    try:
        raw = run_json(_get_completion_client(), payload.apiKey, build_quiz_prompt(payload), pipeline="quiz")
    except PipelineFailure as failure:
        raise_pipeline_http_exception(failure)
    questions = unwrap_list(raw, "questions", "quiz")
    return {"success": True, "questions": _require_structured(questions, list, "quiz")}


def compat_flashcards(payload: FlashcardsRequest) -> dict[str, Any]:
    try:
        raw = run_json(
            _get_completion_client(),
            payload.apiKey,
            build_flashcards_prompt(payload),
            pipeline="flashcards",
        )
    except PipelineFailure as failure:
        raise_pipeline_http_exception(failure)
    cards = unwrap_list(raw, "cards", "flashcards")
    return {"success": True, "cards": _require_structured(cards, list, "flashcards")}


def compat_weakness(payload: WeaknessRequest) -> dict[str, Any]:
    try:
        raw = run_json(_get_completion_client(), payload.apiKey, build_weakness_prompt(payload), pipeline="weakness")
    except PipelineFailure as failure:
        raise_pipeline_http_exception(failure)
    return {"success": True, "analysis": _require_structured(raw, dict, "weakness")}


def compat_forecast(payload: ForecastRequest) -> dict[str, Any]:
    metrics = compute_forecast(forecast_inputs(payload))

    # The numbers never depend on the provider; any failure only costs the narrative.
    narrative: Any = FALLBACK_NARRATIVE
    try:
        narrative = run_json(
            _get_completion_client(),
            payload.apiKey,
            build_forecast_prompt(payload, metrics),
            pipeline="forecast",
        )
    except PipelineFailure as failure:
        logger.warning(
            "forecast_narrative_fallback",
            failure_kind=failure.failure.kind.value,
            provider_status=failure.failure.status_code,
        )
    except Exception:
        logger.exception("forecast_narrative_fallback")

    return {"success": True, "forecast": merge_narrative(metrics, narrative)}
