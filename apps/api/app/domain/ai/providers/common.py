import json
import re
from typing import Any


_CODE_FENCE_PATTERN = re.compile(r"```(?:json)?")


class MalformedOutputError(ValueError):
    pass


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE_PATTERN.sub("", text or "").strip()


def extract_json(text: str) -> Any:
    """Recover the single JSON object or array embedded in a model reply.

    Best effort only: the slice runs from the first ``{``/``[`` to the last
    ``}``/``]``, so replies holding several JSON values, or prose containing
    stray brackets after the payload, are not recovered.
    """
    cleaned = strip_code_fences(text)

    starts = [idx for idx in (cleaned.find("{"), cleaned.find("[")) if idx != -1]
    end = max(cleaned.rfind("}"), cleaned.rfind("]"))
    if not starts or end == -1:
        raise MalformedOutputError("ai_response_json_missing")

    start = min(starts)
    if end < start:
        raise MalformedOutputError("ai_response_json_missing")

    try:
        return json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as exc:
        raise MalformedOutputError(f"ai_response_json_invalid:{exc.msg}") from exc
