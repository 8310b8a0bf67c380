from dataclasses import dataclass
from enum import Enum
from typing import Literal, Protocol, TypedDict


class Message(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


class FailureKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    MALFORMED_OUTPUT = "malformed_output"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CompletionSuccess:
    text: str


@dataclass(frozen=True)
class CompletionFailure:
    kind: FailureKind
    detail: str
    # HTTP status reported by the provider, when there was a response at all.
    status_code: int | None = None


CompletionResult = CompletionSuccess | CompletionFailure


class CompletionProvider(Protocol):
    """A provider session bound to one caller credential."""

    def complete(
        self,
        messages: list[Message],
        *,
        max_tokens: int,
        json_mode: bool = False,
    ) -> CompletionResult:
        ...
