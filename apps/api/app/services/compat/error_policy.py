from typing import Any, NamedTuple

from starlette.exceptions import HTTPException

from app.domain.ai.providers.base import CompletionFailure, FailureKind


MISSING_KEY_MESSAGE = "API key required"
INVALID_KEY_MESSAGE = "Invalid API key"
RATE_LIMITED_MESSAGE = "Rate limit hit. Try again in a moment."
UNEXPECTED_ERROR_MESSAGE = "Unexpected server error"


class ClassifiedError(NamedTuple):
    status: int
    message: str


def classify(failure: CompletionFailure) -> ClassifiedError:
    # Order matters: a missing key wins over whatever status came with it.
    if failure.kind is FailureKind.MISSING_CREDENTIAL:
        return ClassifiedError(401, MISSING_KEY_MESSAGE)
    if failure.kind is FailureKind.UNAUTHORIZED or failure.status_code == 401:
        return ClassifiedError(401, INVALID_KEY_MESSAGE)
    if failure.kind is FailureKind.RATE_LIMITED or failure.status_code == 429:
        return ClassifiedError(429, RATE_LIMITED_MESSAGE)
    return ClassifiedError(500, _normalize_message(failure.detail))


def _normalize_message(value: Any) -> str:
    text = " ".join(str(value or "").split()).strip()
    return text[:300] or "AI provider request failed"


def build_error_payload(message: Any) -> dict[str, Any]:
    return {"error": _normalize_message(message)}


def build_http_error_payload(exc: HTTPException) -> dict[str, Any]:
    detail = exc.detail
    if isinstance(detail, dict) and "error" in detail:
        return build_error_payload(detail["error"])
    return build_error_payload(detail)


def build_unexpected_error_payload() -> dict[str, Any]:
    return {"error": UNEXPECTED_ERROR_MESSAGE}
