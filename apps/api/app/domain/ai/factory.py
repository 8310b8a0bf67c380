from app.core.config import Settings
from app.domain.ai.providers.groq import GroqProvider
from app.domain.ai.service import CompletionClient


def build_completion_client(settings: Settings) -> CompletionClient:
    def _provider_for(api_key: str) -> GroqProvider:
        return GroqProvider(
            api_key=api_key,
            model=settings.groq_model,
            base_url=settings.groq_base_url,
            timeout_sec=settings.ai_request_timeout_sec,
        )

    return CompletionClient(model=settings.groq_model, provider_factory=_provider_for)
