from typing import Callable

from app.domain.ai.providers.base import (
    CompletionFailure,
    CompletionProvider,
    CompletionResult,
    FailureKind,
    Message,
)


ProviderFactory = Callable[[str], CompletionProvider]


class CompletionClient:
    """Outbound completion contract: one provider session per call, never reused."""

    def __init__(self, *, model: str, provider_factory: ProviderFactory) -> None:
        self.model = model
        self._provider_factory = provider_factory

    def complete(
        self,
        credential: str | None,
        conversation: list[Message],
        *,
        max_tokens: int,
        json_mode: bool = False,
    ) -> CompletionResult:
        if not credential or not credential.strip():
            return CompletionFailure(kind=FailureKind.MISSING_CREDENTIAL, detail="api_key_missing")

        provider = self._provider_factory(credential.strip())
        return provider.complete(conversation, max_tokens=max_tokens, json_mode=json_mode)
