import json
from typing import Any
from urllib import error, request

from app.domain.ai.providers.base import (
    CompletionFailure,
    CompletionResult,
    CompletionSuccess,
    FailureKind,
    Message,
)


class GroqProvider:
    """One Groq chat-completions session, bound to the caller's key for a single request."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str,
        timeout_sec: int = 30,
    ) -> None:
        if not api_key:
            raise ValueError("groq_api_key_missing")
        if not base_url:
            raise ValueError("groq_base_url_missing")

        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec

    def build_payload(
        self,
        messages: list[Message],
        *,
        max_tokens: int,
        json_mode: bool = False,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [dict(message) for message in messages],
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def complete(
        self,
        messages: list[Message],
        *,
        max_tokens: int,
        json_mode: bool = False,
    ) -> CompletionResult:
        endpoint = f"{self.base_url}/chat/completions"
        payload = self.build_payload(messages, max_tokens=max_tokens, json_mode=json_mode)

        req = request.Request(
            endpoint,
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
            method="POST",
        )

        try:
            with request.urlopen(req, timeout=self.timeout_sec) as response:
                body = response.read().decode("utf-8")
        except error.HTTPError as exc:
            return failure_from_http_error(exc.code, _read_error_body(exc))
        except Exception as exc:  # pragma: no cover - network boundary
            return CompletionFailure(kind=FailureKind.UNKNOWN, detail=f"groq_request_failed:{exc}")

        try:
            text = self._extract_text(json.loads(body))
        except (ValueError, RuntimeError) as exc:
            return CompletionFailure(kind=FailureKind.UNKNOWN, detail=str(exc))
        return CompletionSuccess(text=text)

    @staticmethod
    def _extract_text(response_json: dict[str, Any]) -> str:
        choices = response_json.get("choices")
        if not isinstance(choices, list) or not choices:
            raise RuntimeError("groq_choices_missing")

        first = choices[0]
        message = first.get("message", {}) if isinstance(first, dict) else {}
        content = message.get("content")

        if isinstance(content, str):
            return content

        raise RuntimeError("groq_content_missing")


def _read_error_body(exc: error.HTTPError) -> str:
    try:
        return exc.read().decode("utf-8", errors="replace")
    except Exception:  # pragma: no cover - network boundary
        return ""


def failure_from_http_error(status_code: int, body: str) -> CompletionFailure:
    message = ""
    try:
        decoded = json.loads(body) if body else {}
    except ValueError:
        decoded = {}
    if isinstance(decoded, dict):
        err = decoded.get("error")
        if isinstance(err, dict):
            message = str(err.get("message") or "")
        elif isinstance(err, str):
            message = err
    message = " ".join(message.split()) or f"groq_http_error:{status_code}"

    if status_code == 401:
        kind = FailureKind.UNAUTHORIZED
    elif status_code == 429:
        kind = FailureKind.RATE_LIMITED
    else:
        kind = FailureKind.UNKNOWN
    return CompletionFailure(kind=kind, detail=message, status_code=status_code)
