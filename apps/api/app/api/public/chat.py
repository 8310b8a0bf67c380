from functools import lru_cache
from typing import Any

from fastapi import APIRouter

from app.core.config import get_settings
from app.domain.ai import CompletionClient, build_completion_client
from app.services.compat.pipeline_runtime import (
    PipelineFailure,
    raise_pipeline_http_exception,
    run_text,
)
from app.services.compat.prompts import (
    PromptRequest,
    build_chat_prompt,
    build_explain_prompt,
    build_tutor_prompt,
)
from app.services.compat.schemas import ChatRequest, ExplainRequest, TutorRequest


router = APIRouter(prefix="/api", tags=["public"])
settings = get_settings()


@lru_cache(maxsize=1)
def _get_completion_client() -> CompletionClient:
    return build_completion_client(settings)


def _reply(api_key: str, prompt: PromptRequest, pipeline: str) -> dict[str, Any]:
    try:
        reply = run_text(_get_completion_client(), api_key, prompt, pipeline=pipeline)
    except PipelineFailure as failure:
        raise_pipeline_http_exception(failure)
    return {"success": True, "reply": reply}


@router.post("/tutor")
def compat_tutor(payload: TutorRequest) -> dict[str, Any]:
    return _reply(payload.apiKey, build_tutor_prompt(payload), "tutor")


@router.post("/explain")
def compat_explain(payload: ExplainRequest) -> dict[str, Any]:
    return _reply(payload.apiKey, build_explain_prompt(payload), "explain")


@router.post("/chat")
def compat_chat(payload: ChatRequest) -> dict[str, Any]:
    return _reply(payload.apiKey, build_chat_prompt(payload), "chat")
