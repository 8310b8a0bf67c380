from typing import Any, NoReturn

from fastapi import HTTPException
import structlog

from app.domain.ai.providers.base import CompletionFailure, CompletionSuccess, FailureKind
from app.domain.ai.providers.common import MalformedOutputError, extract_json
from app.domain.ai.service import CompletionClient
from app.services.compat.error_policy import classify
from app.services.compat.prompts import PromptRequest


logger = structlog.get_logger(__name__)


class PipelineFailure(RuntimeError):
    def __init__(self, *, pipeline: str, failure: CompletionFailure) -> None:
        self.pipeline = pipeline
        self.failure = failure
        super().__init__(f"{pipeline}:{failure.kind.value}:{failure.detail}")


def run_text(
    client: CompletionClient,
    api_key: str | None,
    prompt: PromptRequest,
    *,
    pipeline: str,
) -> str:
    result = client.complete(
        api_key,
        prompt.messages,
        max_tokens=prompt.max_tokens,
        json_mode=prompt.json_mode,
    )
    if isinstance(result, CompletionSuccess):
        return result.text
    raise PipelineFailure(pipeline=pipeline, failure=result)


def run_json(
    client: CompletionClient,
    api_key: str | None,
    prompt: PromptRequest,
    *,
    pipeline: str,
) -> Any:
    text = run_text(client, api_key, prompt, pipeline=pipeline)
    try:
        return extract_json(text)
    except MalformedOutputError as exc:
        raise PipelineFailure(
            pipeline=pipeline,
            failure=CompletionFailure(kind=FailureKind.MALFORMED_OUTPUT, detail=str(exc)),
        ) from exc


def unwrap_list(value: Any, *keys: str) -> Any:
    """Return the list a model wrapped in an object, e.g. ``{"questions": [...]}``."""
    if not isinstance(value, dict):
        return value
    for key in keys:
        if isinstance(value.get(key), list):
            return value[key]
    lists = [item for item in value.values() if isinstance(item, list)]
    if len(lists) == 1:
        return lists[0]
    return value


def raise_pipeline_http_exception(failure: PipelineFailure) -> NoReturn:
    status, message = classify(failure.failure)
    logger.warning(
        "ai_pipeline_failed",
        pipeline=failure.pipeline,
        failure_kind=failure.failure.kind.value,
        provider_status=failure.failure.status_code,
        status=status,
    )
    raise HTTPException(status_code=status, detail=message) from failure
